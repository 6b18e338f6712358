"""Decoding of the inverter's alarm (event) log."""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from dtukit.statistics import LastCommandSuccess, Parser

ALARM_LOG_ENTRY_COUNT = 15
ALARM_LOG_ENTRY_SIZE = 12
ALARM_LOG_PAYLOAD_SIZE = ALARM_LOG_ENTRY_COUNT * ALARM_LOG_ENTRY_SIZE + 4

_HALF_DAY = 12 * 60 * 60


class AlarmMessageType(Enum):
    """Inverter family a message text applies to."""

    ALL = 0
    HMT = 1


class AlarmMessageLocale(Enum):
    EN = 0
    DE = 1
    FR = 2


_UNKNOWN_TEXT = {
    AlarmMessageLocale.EN: "Unknown",
    AlarmMessageLocale.DE: "Unbekannt",
    AlarmMessageLocale.FR: "Inconnu",
}


@dataclass(frozen=True)
class AlarmMessage:
    """Text of one alarm code in every supported language."""

    inverter_type: AlarmMessageType
    message_id: int
    message_en: str
    message_de: str
    message_fr: str

    def text(self, locale: AlarmMessageLocale) -> str:
        """Return the text for ``locale``, falling back to English when missing."""
        if locale is AlarmMessageLocale.DE:
            return self.message_de or self.message_en
        if locale is AlarmMessageLocale.FR:
            return self.message_fr or self.message_en
        return self.message_en


@dataclass
class AlarmLogEntry:
    message_id: int
    message: str
    start_time: int
    end_time: int


_A = AlarmMessageType.ALL
_H = AlarmMessageType.HMT

ALARM_MESSAGES: tuple[AlarmMessage, ...] = tuple(
    AlarmMessage(*row)
    for row in (
        (_A, 1, "Inverter start", "Wechselrichter gestartet", "L'onduleur a démarré"),
        (_A, 2, "Time calibration", "", ""),
        (_A, 3, "EEPROM reading and writing error during operation", "", ""),
        (_A, 4, "Offline", "Offline", "Non connecté"),
        (_A, 11, "Grid voltage surge", "", ""),
        (_A, 12, "Grid voltage sharp drop", "", ""),
        (_A, 13, "Grid frequency mutation", "", ""),
        (_A, 14, "Grid phase mutation", "", ""),
        (_A, 15, "Grid transient fluctuation", "", ""),
        (_A, 36, "INV overvoltage or overcurrent", "", ""),
        (_A, 46, "FB overvoltage", "FB Überspannung", ""),
        (_A, 47, "FB overcurrent", "FB Überstrom", ""),
        (_A, 48, "FB clamp overvoltage", "", ""),
        (_A, 49, "FB clamp overvoltage", "", ""),
        (_A, 61, "Calibration parameter error", "", ""),
        (_A, 62, "System configuration parameter error", "", ""),
        (_A, 63, "Abnormal power generation data", "", ""),
        (_A, 71, "Grid overvoltage load reduction (VW) function enable", "", ""),
        (_A, 72, "Power grid over-frequency load reduction (FW) function enable", "", ""),
        (_A, 73, "Over-temperature load reduction (TW) function enable", "", ""),
        (_A, 95, "PV-1: Module in suspected shadow", "", ""),
        (_A, 96, "PV-2: Module in suspected shadow", "", ""),
        (_A, 97, "PV-3: Module in suspected shadow", "", ""),
        (_A, 98, "PV-4: Module in suspected shadow", "", ""),
        (_A, 121, "Over temperature protection", "Übertemperaturschutz", "Protection antisurchauffe"),
        (_A, 122, "Microinverter is suspected of being stolen", "", ""),
        (_A, 123, "Locked by remote control", "", ""),
        (_A, 124, "Shut down by remote control", "Durch Fernsteuerung abgeschaltet", "Arrêt par télécommande"),
        (_A, 125, "Grid configuration parameter error",
         "Parameterfehler bei der Konfiguration des Elektrizitätsnetzes",
         "Erreur de paramètre de configuration du réseau"),
        (_A, 126, "Software error code 126", "", ""),
        (_A, 127, "Firmware error", "Firmwarefehler", "Erreur du micrologiciel"),
        (_A, 128, "Hardware configuration error", "", ""),
        (_A, 129, "Abnormal bias", "Abnormaler Trend", "Polarisation anormale"),
        (_A, 130, "Offline", "Offline", "Non connecté"),
        (_A, 141, "Grid: Grid overvoltage", "Netz: Netzüberspannung", "Réseau: Surtension du réseau"),
        (_A, 142, "Grid: 10 min value grid overvoltage",
         "Netz: 10 Minuten-Mittelwert der Netzüberspannung",
         "Réseau: Valeur de surtension du réseau pendant 10 min"),
        (_A, 143, "Grid: Grid undervoltage", "Netz: Netzunterspannung", "Réseau: Sous-tension du réseau"),
        (_A, 144, "Grid: Grid overfrequency", "Netz: Netzüberfrequenz", "Réseau: Surfréquence du réseau"),
        (_A, 145, "Grid: Grid underfrequency", "Netz: Netzunterfrequenz", "Réseau: Sous-fréquence du réseau"),
        (_A, 146, "Grid: Rapid grid frequency change rate",
         "Netz: Schnelle Wechselrate der Netzfrequenz",
         "Réseau: Taux de fluctuation rapide de la fréquence du réseau"),
        (_A, 147, "Grid: Power grid outage", "Netz: Eletrizitätsnetzausfall",
         "Réseau: Panne du réseau électrique"),
        (_A, 148, "Grid: Grid disconnection", "Netz: Netztrennung", "Réseau: Déconnexion du réseau"),
        (_A, 149, "Grid: Island detected", "Netz: Inselbetrieb festgestellt", "Réseau: Détection d’îlots"),
        (_A, 150, "DCI exceeded", "", ""),
        (_H, 171, "Grid: Abnormal phase difference between phase to phase", "", ""),
        (_A, 181, "Abnormal insulation impedance", "", ""),
        (_A, 182, "Abnormal grounding", "", ""),
        (_A, 205, "MPPT-A: Input overvoltage", "MPPT-A: Eingangsüberspannung", "MPPT-A: Surtension d’entrée"),
        (_A, 206, "MPPT-B: Input overvoltage", "MPPT-B: Eingangsüberspannung", "MPPT-B: Surtension d’entrée"),
        (_A, 207, "MPPT-A: Input undervoltage", "MPPT-A: Eingangsunterspannung", "MPPT-A: Sous-tension d’entrée"),
        (_A, 208, "MPPT-B: Input undervoltage", "MPPT-B: Eingangsunterspannung", "MPPT-B: Sous-tension d’entrée"),
        (_A, 209, "PV-1: No input", "PV-1: Kein Eingang", "PV-1: Aucune entrée"),
        (_A, 210, "PV-2: No input", "PV-2: Kein Eingang", "PV-2: Aucune entrée"),
        (_A, 211, "PV-3: No input", "PV-3: Kein Eingang", "PV-3: Aucune entrée"),
        (_A, 212, "PV-4: No input", "PV-4: Kein Eingang", "PV-4: Aucune entrée"),
        (_A, 213, "MPPT-A: PV-1 & PV-2 abnormal wiring", "MPPT-A: Verdrahtungsfehler bei PV-1 und PV-2",
         "MPPT-A: Câblages photovoltaïques 1 et 2 anormaux"),
        (_A, 214, "MPPT-B: PV-3 & PV-4 abnormal wiring", "MPPT-B: Verdrahtungsfehler bei PV-3 und PV-4",
         "MPPT-B: Câblages photovoltaïques 3 et 4 anormaux"),
        (_A, 215, "PV-1: Input overvoltage", "PV-1: Eingangsüberspannung", "PV-1: Surtension d’entrée"),
        (_H, 215, "MPPT-C: Input overvoltage", "MPPT-C: Eingangsüberspannung", "MPPT-C: Surtension d’entrée"),
        (_A, 216, "PV-1: Input undervoltage", "PV-1: Eingangsunterspannung", "PV-1: Sous-tension d’entrée"),
        (_H, 216, "MPPT-C: Input undervoltage", "MPPT-C: Eingangsunterspannung", "MPPT-C: Sous-tension d’entrée"),
        (_A, 217, "PV-2: Input overvoltage", "PV-2: Eingangsüberspannung", "PV-2: Surtension d’entrée"),
        (_H, 217, "PV-5: No input", "PV-5: Kein  Eingang", "PV-5: Aucune entrée"),
        (_A, 218, "PV-2: Input undervoltage", "PV-2: Eingangsunterspannung", "PV-2: Sous-tension d’entrée"),
        (_H, 218, "PV-6: No input", "PV-6: Kein Eingang", "PV-6: Aucune entrée"),
        (_A, 219, "PV-3: Input overvoltage", "PV-3: Eingangsüberspannung", "PV-3: Surtension d’entrée"),
        (_H, 219, "MPPT-C: PV-5 & PV-6 abnormal wiring", "", ""),
        (_A, 220, "PV-3: Input undervoltage", "PV-3: Eingangsunterspannung", "PV-3: Sous-tension d’entrée"),
        (_A, 221, "PV-4: Input overvoltage", "PV-4: Eingangsüberspannung", "PV-4: Surtension d’entrée"),
        (_H, 221, "Abnormal wiring of grid neutral line", "", ""),
        (_A, 222, "PV-4: Input undervoltage", "PV-4: Eingangsunterspannung", "PV-4: Sous-tension d’entrée"),
        (_A, 301, "FB-A: internal short circuit failure", "", ""),
        (_A, 302, "FB-B: internal short circuit failure", "", ""),
        (_A, 303, "FB-A: overcurrent protection failure", "", ""),
        (_A, 304, "FB-B: overcurrent protection failure", "", ""),
        (_A, 305, "FB-A: clamp circuit failure", "", ""),
        (_A, 306, "FB-B: clamp circuit failure", "", ""),
        (_A, 307, "INV power device failure", "", ""),
        (_A, 308, "INV overcurrent or overvoltage protection failure", "", ""),
        (_A, 309, "Hardware error code 309", "Hardwarefehlercode 309", ""),
        (_A, 310, "Hardware error code 310", "Hardwarefehlercode 310", ""),
        (_A, 311, "Hardware error code 311", "Hardwarefehlercode 311", ""),
        (_A, 312, "Hardware error code 312", "Hardwarefehlercode 312", ""),
        (_A, 313, "Hardware error code 313", "Hardwarefehlercode 313", ""),
        (_A, 314, "Hardware error code 314", "Hardwarefehlercode 314", ""),
        (_A, 1111, "Repeater", "", ""),
        (_A, 2000, "Standby", "", ""),
        (_A, 2001, "Standby", "", ""),
        (_A, 2002, "Standby", "", ""),
        (_A, 2003, "Standby", "", ""),
        (_A, 2004, "Standby", "", ""),
        (_A, 3001, "Reset", "", ""),
        (_A, 3002, "Reset", "", ""),
        (_A, 3003, "Reset", "", ""),
        (_A, 3004, "Reset", "", ""),
        (_A, 5011, "PV-1: MOSFET overcurrent (II)", "PV-1: MOSFET Überstrom (II)", ""),
        (_A, 5012, "PV-2: MOSFET overcurrent (II)", "PV-2: MOSFET Überstrom (II)", ""),
        (_A, 5013, "PV-3: MOSFET overcurrent (II)", "PV-3: MOSFET Überstrom (II)", ""),
        (_A, 5014, "PV-4: MOSFET overcurrent (II)", "PV-4: MOSFET Überstrom (II)", ""),
        (_A, 5020, "H-bridge MOSFET overcurrent or H-bridge overvoltage",
         "H-Brücken-MOSFET-Überstrom oder H-Brücken-Überspannung", ""),
        (_A, 5041, "PV-1: current overcurrent (II)", "", ""),
        (_A, 5042, "PV-2: current overcurrent (II)", "", ""),
        (_A, 5043, "PV-3: current overcurrent (II)", "", ""),
        (_A, 5044, "PV-4: current overcurrent (II)", "", ""),
        (_A, 5051, "PV-1: Overvoltage/Undervoltage", "", ""),
        (_A, 5052, "PV-2: Overvoltage/Undervoltage", "", ""),
        (_A, 5053, "PV-3: Overvoltage/Undervoltage", "", ""),
        (_A, 5054, "PV-4: Overvoltage/Undervoltage", "", ""),
        (_A, 5060, "Abnormal bias", "Abnormaler Trend", "Polarisation anormale"),
        (_A, 5070, "Over temperature protection", "Übertemperaturschutz", "Protection antisurchauffe"),
        (_A, 5080, "Grid Overvoltage/Undervoltage", "", ""),
        (_A, 5090, "Grid Overfrequency/Underfrequency", "", ""),
        (_A, 5100, "Island detected", "Inselbetrieb festgestellt", "Détection d’îlots"),
        (_A, 5110, "GFDI failure", "", ""),
        (_A, 5120, "EEPROM reading and writing error", "", ""),
        (_A, 5141, "FB clamp overvoltage", "", ""),
        (_A, 5142, "FB clamp overvoltage", "", ""),
        (_A, 5143, "FB clamp overvoltage", "", ""),
        (_A, 5144, "FB clamp overvoltage", "", ""),
        (_A, 5150, "10 min value grid overvoltage", "10 Minuten-Mittelwert der Netzüberspannung",
         "Valeur de surtension du réseau pendant 10 min"),
        (_A, 5160, "Grid transient fluctuation", "", ""),
        (_A, 5200, "Firmware error", "Firmwarefehler", "Erreur du micrologiciel"),
        (_A, 5511, "PV-1: MOSFET overcurrent-H", "PV-1: MOSFET Überstrom-H", ""),
        (_A, 5512, "PV-2: MOSFET overcurrent-H", "PV-2: MOSFET Überstrom-H", ""),
        (_A, 5513, "PV-3: MOSFET overcurrent-H", "PV-3: MOSFET Überstrom-H", ""),
        (_A, 5514, "PV-4: MOSFET overcurrent-H", "PV-4: MOSFET Überstrom-H", ""),
        (_A, 5520, "H-bridge MOSFET overcurrent or H-bridge overvoltage",
         "H-Brücken-MOSFET-Überstrom oder H-Brücken-Überspannung", ""),
        (_A, 8310, "Shut down by remote control", "Durch Fernsteuerung abgeschaltet", "Arrêt par télécommande"),
        (_A, 8320, "Locked by remote control", "", ""),
        (_A, 9000, "Microinverter is suspected of being stolen", "", ""),
    )
)


def timezone_offset() -> int:
    """Offset of local time from UTC in seconds, honouring daylight saving."""
    rawtime = int(time.time())
    gm = time.gmtime(rawtime)
    gmt = time.mktime(time.struct_time((*gm[:8], -1)))
    return int(rawtime - gmt)


class AlarmLogParser(Parser):
    """Holds the alarm log payload and decodes its entries."""

    def __init__(self, timezone: Optional[Callable[[], int]] = None) -> None:
        super().__init__()
        self._timezone = timezone or timezone_offset
        self._payload = bytearray(ALARM_LOG_PAYLOAD_SIZE)
        self._alarm_log_length = 0
        # NOK so that the log is fetched at startup.
        self.last_alarm_request_success = LastCommandSuccess.NOK
        self.message_type = AlarmMessageType.ALL

    def clear_buffer(self) -> None:
        """Zero the payload and forget how much was received."""
        self._payload[:] = bytes(ALARM_LOG_PAYLOAD_SIZE)
        self._alarm_log_length = 0

    def append_fragment(self, offset: int, payload: bytes) -> None:
        """Copy a received fragment into the payload at ``offset``."""
        if offset + len(payload) > ALARM_LOG_PAYLOAD_SIZE:
            raise ValueError(
                f"alarm log packet too large for buffer "
                f"({offset + len(payload)} > {ALARM_LOG_PAYLOAD_SIZE})"
            )
        self._payload[offset:offset + len(payload)] = payload
        self._alarm_log_length += len(payload)

    def entry_count(self) -> int:
        """Number of complete entries received."""
        if self._alarm_log_length < 2:
            return 0
        return (self._alarm_log_length - 2) // ALARM_LOG_ENTRY_SIZE

    def get_log_entry(
        self, entry_id: int, locale: AlarmMessageLocale = AlarmMessageLocale.EN
    ) -> AlarmLogEntry:
        """Decode one entry of the log."""
        start = 2 + entry_id * ALARM_LOG_ENTRY_SIZE
        if entry_id < 0 or start + 8 > ALARM_LOG_PAYLOAD_SIZE:
            raise IndexError(f"alarm log entry {entry_id} out of range")

        tz = self._timezone()

        with self._lock:
            raw = bytes(self._payload[start:start + 8])

        wcode = (raw[0] << 8) | raw[1]
        start_offset = _HALF_DAY if (wcode >> 13) & 0x01 else 0
        end_offset = _HALF_DAY if (wcode >> 12) & 0x01 else 0

        message_id = raw[1]
        start_time = ((raw[4] << 8) | raw[5]) + start_offset + tz
        end_time = (raw[6] << 8) | raw[7]
        if end_time > 0:
            end_time += end_offset + tz

        message = _UNKNOWN_TEXT[locale]
        for msg in ALARM_MESSAGES:
            if msg.message_id != message_id:
                continue
            if msg.inverter_type == self.message_type:
                message = msg.text(locale)
                break
            if msg.inverter_type is AlarmMessageType.ALL:
                message = msg.text(locale)

        return AlarmLogEntry(message_id, message, start_time, end_time)