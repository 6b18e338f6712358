"""State shared by all inverter models: identity, flags, parsers and received fragments."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from dtukit.alarmlog import AlarmLogParser
from dtukit.devinfo import DevInfoParser
from dtukit.gridprofile import GridProfileParser
from dtukit.statistics import (
    ByteAssign,
    ChannelType,
    FieldId,
    PowerCommandParser,
    StatisticsParser,
)
from dtukit.sysconfig import SystemConfigParaParser

MAX_NAME_LENGTH = 32
MAX_RF_FRAGMENT_COUNT = 13
# Largest payload a single radio packet carries.
MAX_RF_PAYLOAD_SIZE = 32
# Main command byte, two 4-byte addresses, fragment counter and trailing CRC.
_FRAGMENT_OVERHEAD = 11
_LAST_FRAGMENT_FLAG = 0x80
_FRAGMENT_ID_MASK = 0x7F


@dataclass
class Fragment:
    """Payload of one received radio packet."""

    data: bytes = b""
    main_cmd: int = 0
    was_received: bool = False


class InverterAbstract(ABC):
    """Base of every inverter model."""

    def __init__(self, radio: Any, serial: int) -> None:
        self.radio = radio
        self._serial = serial
        self._serial_string = f"{(serial >> 32) & 0xFFFFFFFF:x}{serial & 0xFFFFFFFF:08x}"
        self._name = ""

        self.enable_polling = True
        self.enable_commands = True
        self.reachable_threshold = 3
        self.zero_values_if_unreachable = False
        self.zero_yield_day_on_midnight = False

        self.event_log = AlarmLogParser()
        self.dev_info = DevInfoParser()
        self.grid_profile = GridProfileParser()
        self.power_command = PowerCommandParser()
        self.statistics = StatisticsParser()
        self.system_config_para = SystemConfigParaParser()

        self._fragments = [Fragment() for _ in range(MAX_RF_FRAGMENT_COUNT)]
        self._max_packet_id = 0
        self._last_packet_id = 0

    def init(self) -> None:
        """Install the model's field layout in the statistics parser."""
        self.statistics.set_byte_assignment(self.byte_assignment())

    @property
    def serial(self) -> int:
        return self._serial

    @property
    def serial_string(self) -> str:
        """The serial number in hexadecimal."""
        return self._serial_string

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        self._name = value[: MAX_NAME_LENGTH - 1]

    @abstractmethod
    def type_name(self) -> str:
        """Human-readable name of the model family."""

    @abstractmethod
    def byte_assignment(self) -> Sequence[ByteAssign]:
        """Layout of the model's statistics payload."""

    def is_producing(self) -> bool:
        """True if polling is enabled and the AC output power is above zero."""
        stats = self.statistics
        total_ac = sum(
            stats.get_channel_field_value(ChannelType.AC, channel, FieldId.PAC)
            for channel in stats.channels_by_type(ChannelType.AC)
            if stats.has_channel_field_value(ChannelType.AC, channel, FieldId.PAC)
        )
        return self.enable_polling and total_ac > 0

    def is_reachable(self) -> bool:
        """True if polling is enabled and few enough requests failed in a row."""
        return (
            self.enable_polling
            and self.statistics.rx_failure_count <= self.reachable_threshold
        )

    def send_change_channel_request(self) -> bool:
        """Models without channel hopping have nothing to send."""
        return False

    def clear_rx_fragment_buffer(self) -> None:
        """Forget all received fragments."""
        self._fragments = [Fragment() for _ in range(MAX_RF_FRAGMENT_COUNT)]
        self._max_packet_id = 0
        self._last_packet_id = 0

    def add_rx_fragment(self, fragment: bytes) -> None:
        """Store a received packet by its 1-based fragment id."""
        length = len(fragment)
        if length < _FRAGMENT_OVERHEAD:
            raise ValueError("fragment too short")
        if length - _FRAGMENT_OVERHEAD > MAX_RF_PAYLOAD_SIZE:
            raise ValueError("fragment too large")

        counter = fragment[9]
        fragment_id = counter & _FRAGMENT_ID_MASK
        if fragment_id == 0:
            raise ValueError("fragment id zero received")
        if fragment_id >= MAX_RF_FRAGMENT_COUNT:
            raise ValueError(f"fragment id {fragment_id} is too large for buffer")

        self._fragments[fragment_id - 1] = Fragment(
            data=bytes(fragment[10 : length - 1]),
            main_cmd=fragment[0],
            was_received=True,
        )
        self._last_packet_id = max(self._last_packet_id, fragment_id)
        if counter & _LAST_FRAGMENT_FLAG:
            self._max_packet_id = fragment_id

    @property
    def missing_fragment_id(self) -> Optional[int]:
        """Id of the first fragment to request again, or None if the message is complete."""
        if self._last_packet_id == 0:
            return 1
        if self._max_packet_id == 0:
            return self._last_packet_id + 1
        for fragment_id, fragment in enumerate(self._fragments[: self._max_packet_id - 1], 1):
            if not fragment.was_received:
                return fragment_id
        return None

    def received_fragments(self) -> tuple[Fragment, ...]:
        """The fragments up to the one flagged as last, in order."""
        return tuple(self._fragments[: self._max_packet_id])