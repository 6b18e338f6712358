"""Decoding of the grid profile (grid code parameters) payload."""

from __future__ import annotations

from dataclasses import dataclass, field

from dtukit.statistics import Parser

GRID_PROFILE_SIZE = 141

# (low index, high index) of the profile header -> profile name
_PROFILE_TYPES: dict[tuple[int, int], str] = {
    (0x02, 0x00): "no data (yet)",
    (0x03, 0x00): "Germany - DE_VDE4105_2018",
    (0x0A, 0x00): "European - EN 50549-1:2019",
    (0x0C, 0x00): "AT Tor - EU_EN50438",
    (0x0D, 0x04): "France",
    (0x12, 0x00): "Poland - EU_EN50438",
    (0x37, 0x00): "Swiss - CH_NA EEA-NE7-CH2020",
}

_SECTION_NAMES: dict[int, str] = {
    0x00: "Voltage (H/LVRT)",
    0x10: "Frequency (H/LFRT)",
    0x20: "Island Detection (ID)",
    0x30: "Reconnection (RT)",
    0x40: "Ramp Rates (RR)",
    0x50: "Frequency Watt (FW)",
    0x60: "Volt Watt (VW)",
    0x70: "Active Power Control (APC)",
    0x80: "Volt Var (VV)",
    0x90: "Specified Power Factor (SPF)",
    0xA0: "Reactive Power Control (RPC)",
    0xB0: "Watt Power Factor (WPF)",
}

# item id -> (name, unit, divider)
_ITEM_DEFINITIONS: dict[int, tuple[str, str, int]] = {
    0x01: ("Nominale Voltage (NV)", "V", 10),
    0x02: ("Low Voltage 1 (LV1)", "V", 10),
    0x03: ("LV1 Maximum Trip Time (MTT)", "s", 10),
    0x04: ("High Voltage 1 (HV1)", "V", 10),
    0x05: ("HV1 Maximum Trip Time (MTT)", "s", 10),
    0x06: ("Low Voltage 2 (LV2)", "V", 10),
    0x07: ("LV2 Maximum Trip Time (MTT)", "s", 10),
    0x08: ("High Voltage 2 (HV2)", "V", 10),
    0x09: ("HV2 Maximum Trip Time (MTT)", "s", 10),
    0x0A: ("10mins Average High Voltage (AHV)", "V", 10),
    0x0B: ("High Voltage 3 (HV3)", "V", 10),
    0x0C: ("HV3 Maximum Trip Time (MTT)", "s", 10),
    0x0D: ("Nominal Frequency", "Hz", 100),
    0x0E: ("Low Frequency 1 (LF1)", "Hz", 100),
    0x0F: ("LF1 Maximum Trip Time (MTT)", "s", 10),
    0x10: ("High Frequency 1 (HF1)", "Hz", 100),
    0x11: ("HF1 Maximum Trip time (MTT)", "s", 10),
    0x12: ("Low Frequency 2 (LF2)", "Hz", 100),
    0x13: ("LF2 Maximum Trip Time (MTT)", "s", 10),
    0x14: ("High Frequency 2 (HF2)", "Hz", 100),
    0x15: ("HF2 Maximum Trip time (MTT)", "s", 10),
    0x16: ("ID Function Activated", "bool", 1),
    0x17: ("Reconnect Time (RT)", "s", 10),
    0x18: ("Reconnect High Voltage (RHV)", "V", 10),
    0x19: ("Reconnect Low Voltage (RLV)", "V", 10),
    0x1A: ("Reconnect High Frequency (RHF)", "Hz", 100),
    0x1B: ("Reconnect Low Frequency (RLF)", "Hz", 100),
    0x1C: ("Normal Ramp up Rate(RUR_NM)", "Rated%/s", 100),
    0x1D: ("Soft Start Ramp up Rate (RUR_SS)", "Rated%/s", 100),
    0x1E: ("FW Function Activated", "bool", 1),
    0x1F: ("Start of Frequency Watt Droop (Fstart)", "Hz", 100),
    0x20: ("FW Droop Slope (Kpower_Freq)", "Pn%/Hz", 10),
    0x21: ("Recovery Ramp Rate (RRR)", "Pn%/s", 100),
    0x22: ("Recovery High Frequency (RVHF)", "Hz", 100),
    0x23: ("Recovery Low Frequency (RVLF)", "Hz", 100),
    0x24: ("VW Function Activated", "bool", 1),
    0x25: ("Start of Voltage Watt Droop (Vstart)", "V", 10),
    0x26: ("End of Voltage Watt Droop (Vend)", "V", 10),
    0x27: ("Droop Slope (Kpower_Volt)", "Pn%/V", 100),
    0x28: ("APC Function Activated", "bool", 1),
    0x29: ("Power Ramp Rate (PRR)", "Pn%/s", 100),
    0x2A: ("VV Function Activated", "bool", 1),
    0x2B: ("Voltage Set Point V1", "V", 10),
    0x2C: ("Reactive Set Point Q1", "%Pn", 10),
    0x2D: ("Voltage Set Point V2", "V", 10),
    0x2E: ("Voltage Set Point V3", "V", 10),
    0x2F: ("Voltage Set Point V4", "V", 10),
    0x30: ("Reactive Set Point Q4", "%Pn", 10),
    0x31: ("Setting Time (Tr)", "s", 10),
    0x32: ("SPF Function Activated", "bool", 1),
    0x33: ("Power Factor (PF)", "", 100),
    0x34: ("RPC Function Activated", "bool", 1),
    0x35: ("Reactive Power (VAR)", "%Sn", 1),
    0x36: ("WPF Function Activated", "bool", 1),
    0x37: ("Start of Power of WPF (Pstart)", "%Pn", 10),
    0x38: ("Power Factor ar Rated Power (PFRP)", "", 100),
    0xFF: ("Unkown Value", "", 1),
}

# (section id, section version) -> item ids in payload order
_SECTION_LAYOUT: dict[tuple[int, int], tuple[int, ...]] = {
    (0x00, 0x00): (0x01, 0x02, 0x03, 0x04, 0x05),
    (0x00, 0x03): (0x01, 0x02, 0x03, 0x05, 0x06, 0x07, 0x08, 0x09),
    (0x00, 0x08): (0x01, 0x02, 0x03, 0x04, 0x05, 0xFF),
    (0x00, 0x0A): (0x01, 0x02, 0x03, 0x04, 0x05, 0x06, 0x07, 0x0A),
    (0x00, 0x0B): (0x01, 0x02, 0x03, 0x04, 0x05, 0x06, 0x07, 0x08, 0x09, 0x0A),
    (0x00, 0x0C): (0x01, 0x02, 0x03, 0x04, 0x05, 0x06, 0x07, 0x08, 0x09, 0x0B, 0x0C, 0x0A),
    (0x00, 0x35): (0x01, 0x02, 0x03, 0x04, 0x05, 0x06, 0x07, 0x08, 0x09, 0xFF, 0xFF, 0xFF, 0xFF),
    (0x10, 0x00): (0x0D, 0x0E, 0x0F, 0x10, 0x11),
    (0x10, 0x03): (0x0D, 0x0E, 0x0F, 0x10, 0x11, 0x12, 0x13, 0x14, 0x15),
    (0x20, 0x00): (0x16,),
    (0x30, 0x03): (0x17, 0x18, 0x19, 0x1A, 0x1B),
    (0x30, 0x07): (0x17, 0x18, 0x19, 0x1A, 0x1B, 0xFF, 0xFF),
    (0x40, 0x00): (0x1C, 0x1D),
    (0x50, 0x00): (0x1E, 0x1F, 0x20, 0x21),
    (0x50, 0x01): (0x1E, 0x1F, 0x20, 0x21, 0x22),
    (0x50, 0x08): (0x1E, 0x1F, 0x20, 0x21, 0x22, 0x23),
    (0x50, 0x11): (0x1E, 0x1F, 0x20, 0x21, 0x22),
    (0x60, 0x00): (0x24, 0x25, 0x26, 0x27),
    (0x60, 0x04): (0x24, 0x25, 0x26, 0x27),
    (0x70, 0x00): (0x28,),
    (0x70, 0x02): (0x28, 0x29),
    (0x80, 0x00): (0x2A, 0x2B, 0x2C, 0x2D, 0x2E, 0x2F, 0x30),
    (0x80, 0x01): (0x2A, 0x2B, 0x2C, 0x2D, 0x2E, 0x2F, 0x30, 0x31),
    (0x90, 0x00): (0x32, 0x33),
    (0xA0, 0x02): (0x34, 0x35),
    (0xB0, 0x00): (0x36, 0x37, 0x38),
}


@dataclass(frozen=True)
class GridProfileItem:
    """One decoded grid profile parameter."""

    name: str
    unit: str
    value: float


@dataclass
class GridProfileSection:
    """A named group of grid profile parameters."""

    name: str
    items: list[GridProfileItem] = field(default_factory=list)


class GridProfileParser(Parser):
    """Holds the grid profile payload and decodes its sections."""

    def __init__(self) -> None:
        super().__init__()
        self._payload = bytearray(GRID_PROFILE_SIZE)
        self._length = 0

    def clear_buffer(self) -> None:
        """Zero the payload and forget how much was received."""
        self._payload[:] = bytes(GRID_PROFILE_SIZE)
        self._length = 0

    def append_fragment(self, offset: int, payload: bytes) -> None:
        """Copy a received fragment into the payload at ``offset``."""
        if offset + len(payload) > GRID_PROFILE_SIZE:
            raise ValueError(
                f"grid profile packet too large for buffer "
                f"({offset + len(payload)} > {GRID_PROFILE_SIZE})"
            )
        self._payload[offset:offset + len(payload)] = payload
        self._length += len(payload)

    def profile_name(self) -> str:
        """Name of the grid code the profile was built from."""
        return _PROFILE_TYPES.get((self._payload[0], self._payload[1]), "Unknown")

    def profile_version(self) -> str:
        """Version of the profile as "major.minor.patch"."""
        with self._lock:
            b2, b3 = self._payload[2], self._payload[3]
        return f"{(b2 >> 4) & 0x0F}.{b2 & 0x0F}.{b3}"

    def raw_data(self) -> bytes:
        """The whole payload buffer."""
        with self._lock:
            return bytes(self._payload)

    def profile(self) -> list[GridProfileSection]:
        """Decode the sections of the profile.

        Decoding stops at the first unknown section id. A known section with
        an unknown version is returned without items.
        """
        with self._lock:
            data = bytes(self._payload)
            length = self._length

        def byte(pos: int) -> int:
            return data[pos] if pos < len(data) else 0

        sections: list[GridProfileSection] = []
        if length <= 4:
            return sections

        pos = 4
        while True:
            section_id = byte(pos)
            version = byte(pos + 1)
            pos += 2

            name = _SECTION_NAMES.get(section_id)
            if name is None:
                break

            section = GridProfileSection(name)
            for item_id in _SECTION_LAYOUT.get((section_id, version), ()):
                item_name, unit, divider = _ITEM_DEFINITIONS[item_id]
                raw = (byte(pos) << 8) | byte(pos + 1)
                if raw >= 0x8000:
                    raw -= 0x10000
                section.items.append(GridProfileItem(item_name, unit, raw / divider))
                pos += 2
            sections.append(section)

            if pos >= length:
                break
        return sections