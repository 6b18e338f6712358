"""Decoding of real-time statistics payloads received from an inverter."""

from __future__ import annotations

import itertools
import threading
import time
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Callable, Iterable, Optional, Sequence

STATISTIC_PACKET_SIZE = 7 * 16
CH_CNT = 6
CMD_CALC = 0xFFFF


def _millis() -> int:
    return time.monotonic_ns() // 1_000_000


class LastCommandSuccess(Enum):
    """Outcome of the most recent command or request."""

    OK = 0
    NOK = 1
    PENDING = 2


class Parser:
    """Common state shared by all payload parsers."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self.last_update = 0

    def begin_append_fragment(self) -> None:
        """Lock the payload while fragments are being appended."""
        self._lock.acquire()

    def end_append_fragment(self) -> None:
        """Release the payload after all fragments were appended."""
        self._lock.release()


class PowerCommandParser(Parser):
    """Tracks the state of power on/off/restart commands."""

    def __init__(self) -> None:
        super().__init__()
        # Nothing is assumed to be pending at startup.
        self.last_power_command_success = LastCommandSuccess.OK
        self.last_update_command = 0

    def set_last_update_command(self, last_update: int) -> None:
        """Record the time a command response was received."""
        self.last_update_command = last_update
        self.last_update = last_update


class UnitId(IntEnum):
    V = 0
    A = 1
    W = 2
    WH = 3
    KWH = 4
    HZ = 5
    C = 6
    PCT = 7
    VAR = 8
    NONE = 9

    @property
    def symbol(self) -> str:
        return _UNIT_SYMBOLS[self]


_UNIT_SYMBOLS = ("V", "A", "W", "Wh", "kWh", "Hz", "°C", "%", "var", "")


class FieldId(IntEnum):
    UDC = 0
    IDC = 1
    PDC = 2
    YD = 3
    YT = 4
    UAC = 5
    IAC = 6
    PAC = 7
    F = 8
    T = 9
    PF = 10
    EFF = 11
    IRR = 12
    Q = 13
    EVT_LOG = 14
    UAC_1N = 15
    UAC_2N = 16
    UAC_3N = 17
    UAC_12 = 18
    UAC_23 = 19
    UAC_31 = 20
    IAC_1 = 21
    IAC_2 = 22
    IAC_3 = 23

    @property
    def label(self) -> str:
        return _FIELD_LABELS[self]


_FIELD_LABELS = (
    "Voltage", "Current", "Power", "YieldDay", "YieldTotal",
    "Voltage", "Current", "Power", "Frequency", "Temperature", "PowerFactor",
    "Efficiency", "Irradiation", "ReactivePower", "EventLogCount",
    "Voltage Ph1-N", "Voltage Ph2-N", "Voltage Ph3-N", "Voltage Ph1-Ph2",
    "Voltage Ph2-Ph3", "Voltage Ph3-Ph1", "Current Ph1", "Current Ph2", "Current Ph3",
)


class ChannelType(IntEnum):
    AC = 0
    DC = 1
    INV = 2

    @property
    def label(self) -> str:
        return ("AC", "DC", "INV")[self]


class CalcFunction(IntEnum):
    """Identifiers of values computed from other fields."""

    YT_CH0 = 0
    YD_CH0 = 1
    UDC_CH = 2
    PDC_CH0 = 3
    EFF_CH0 = 4
    IRR_CH = 5


@dataclass(frozen=True)
class ByteAssign:
    """Where a field lives in the payload, or how it is calculated.

    For calculated fields ``div`` is ``CMD_CALC``, ``start`` holds the
    ``CalcFunction`` and ``num`` its argument (usually a channel).
    """

    channel_type: ChannelType
    channel: int
    field: FieldId
    unit: UnitId
    start: int
    num: int
    div: int
    is_signed: bool
    digits: int

    @property
    def is_calculated(self) -> bool:
        return self.div == CMD_CALC


@dataclass
class FieldSetting:
    """A per-field offset applied to decoded values."""

    channel_type: ChannelType
    channel: int
    field: FieldId
    offset: float


RUNTIME_FIELDS = (
    FieldId.UDC, FieldId.IDC, FieldId.PDC, FieldId.UAC, FieldId.IAC,
    FieldId.PAC, FieldId.F, FieldId.T, FieldId.PF, FieldId.Q,
    FieldId.UAC_1N, FieldId.UAC_2N, FieldId.UAC_3N, FieldId.UAC_12,
    FieldId.UAC_23, FieldId.UAC_31, FieldId.IAC_1, FieldId.IAC_2, FieldId.IAC_3,
)

DAILY_PRODUCTION_FIELDS = (FieldId.YD,)


class StatisticsParser(Parser):
    """Holds the statistics payload and decodes fields from it."""

    def __init__(self, clock: Optional[Callable[[], int]] = None) -> None:
        super().__init__()
        self._clock = clock or _millis
        self._payload = bytearray(STATISTIC_PACKET_SIZE)
        self._statistic_length = 0
        self._string_max_power = [0] * CH_CNT
        self._byte_assignment: tuple[ByteAssign, ...] = ()
        self.expected_byte_count = 0
        self._field_settings: list[FieldSetting] = []
        self.rx_failure_count = 0
        self.last_update_from_internal = 0
        self.yield_day_correction = False
        self._last_yield_day = [0.0] * CH_CNT

    def clear_buffer(self) -> None:
        """Zero the payload and forget how much was received."""
        self._payload[:] = bytes(STATISTIC_PACKET_SIZE)
        self._statistic_length = 0

    def append_fragment(self, offset: int, payload: bytes) -> None:
        """Copy a received fragment into the payload at ``offset``."""
        if offset + len(payload) > STATISTIC_PACKET_SIZE:
            raise ValueError(
                f"stats packet too large for buffer "
                f"({offset + len(payload)} > {STATISTIC_PACKET_SIZE})"
            )
        self._payload[offset:offset + len(payload)] = payload
        self._statistic_length += len(payload)

    def end_append_fragment(self) -> None:
        """Release the payload and apply the yield-day correction."""
        super().end_append_fragment()

        if not self.yield_day_correction:
            self.reset_yield_day_correction()
            return

        for channel in self.channels_by_type(ChannelType.DC):
            current = self.get_channel_field_value(ChannelType.DC, channel, FieldId.YD)
            if current < self._last_yield_day[channel]:
                # The inverter reset its daily counter: keep the last known value.
                self.set_channel_field_offset(
                    ChannelType.DC, channel, FieldId.YD, self._last_yield_day[channel]
                )
                self._last_yield_day[channel] = 0.0
            else:
                self._last_yield_day[channel] = current

    def set_byte_assignment(self, assignments: Sequence[ByteAssign]) -> None:
        """Install the field layout of an inverter model."""
        self._byte_assignment = tuple(assignments)
        for assign in self._byte_assignment:
            if assign.is_calculated:
                continue
            self.expected_byte_count = max(self.expected_byte_count, assign.start + assign.num)

    def assignment_for(
        self, channel_type: ChannelType, channel: int, field: FieldId
    ) -> Optional[ByteAssign]:
        """Return the layout entry of a field, or None."""
        return next(
            (
                a
                for a in self._byte_assignment
                if a.channel_type == channel_type and a.channel == channel and a.field == field
            ),
            None,
        )

    def setting_for(
        self, channel_type: ChannelType, channel: int, field: FieldId
    ) -> Optional[FieldSetting]:
        """Return the offset setting of a field, or None."""
        return next(
            (
                s
                for s in self._field_settings
                if s.channel_type == channel_type and s.channel == channel and s.field == field
            ),
            None,
        )

    def _require_assignment(
        self, channel_type: ChannelType, channel: int, field: FieldId
    ) -> ByteAssign:
        assign = self.assignment_for(channel_type, channel, field)
        if assign is None:
            raise KeyError(f"no field {field!r} on {channel_type!r} channel {channel}")
        return assign

    def get_channel_field_value(
        self, channel_type: ChannelType, channel: int, field: FieldId
    ) -> float:
        """Decode a field; unknown fields read as 0."""
        assign = self.assignment_for(channel_type, channel, field)
        if assign is None:
            return 0.0

        if assign.is_calculated:
            return self._calculate(CalcFunction(assign.start), assign.num)

        with self._lock:
            raw = self._payload[assign.start:assign.start + assign.num]
        val = int.from_bytes(raw, "big") & 0xFFFFFFFF

        if assign.is_signed and assign.num in (2, 4):
            bits = 8 * assign.num
            if val >= 1 << (bits - 1):
                val -= 1 << bits

        result = val / assign.div

        setting = self.setting_for(channel_type, channel, field)
        if setting is not None and self._statistic_length > 0:
            result += setting.offset
        return result

    def set_channel_field_value(
        self, channel_type: ChannelType, channel: int, field: FieldId, value: float
    ) -> bool:
        """Encode a value into the payload; False for unknown or calculated fields."""
        assign = self.assignment_for(channel_type, channel, field)
        if assign is None or assign.is_calculated:
            return False

        setting = self.setting_for(channel_type, channel, field)
        if setting is not None:
            value -= setting.offset
        value *= assign.div

        val = int(value) & 0xFFFFFFFF
        mask = (1 << (8 * assign.num)) - 1
        with self._lock:
            self._payload[assign.start:assign.start + assign.num] = (val & mask).to_bytes(
                assign.num, "big"
            )
        return True

    def get_channel_field_value_string(
        self, channel_type: ChannelType, channel: int, field: FieldId
    ) -> str:
        """Format a field with its number of significant decimals."""
        value = self.get_channel_field_value(channel_type, channel, field)
        digits = self.get_channel_field_digits(channel_type, channel, field)
        return f"{value:.{digits}f}"

    def has_channel_field_value(
        self, channel_type: ChannelType, channel: int, field: FieldId
    ) -> bool:
        return self.assignment_for(channel_type, channel, field) is not None

    def get_channel_field_unit(
        self, channel_type: ChannelType, channel: int, field: FieldId
    ) -> str:
        return self._require_assignment(channel_type, channel, field).unit.symbol

    def get_channel_field_name(
        self, channel_type: ChannelType, channel: int, field: FieldId
    ) -> str:
        return self._require_assignment(channel_type, channel, field).field.label

    def get_channel_field_digits(
        self, channel_type: ChannelType, channel: int, field: FieldId
    ) -> int:
        return self._require_assignment(channel_type, channel, field).digits

    def get_channel_field_offset(
        self, channel_type: ChannelType, channel: int, field: FieldId
    ) -> float:
        setting = self.setting_for(channel_type, channel, field)
        return setting.offset if setting is not None else 0.0

    def set_channel_field_offset(
        self, channel_type: ChannelType, channel: int, field: FieldId, offset: float
    ) -> None:
        setting = self.setting_for(channel_type, channel, field)
        if setting is not None:
            setting.offset = offset
        else:
            self._field_settings.append(FieldSetting(channel_type, channel, field, offset))

    def channel_types(self) -> list[ChannelType]:
        return [ChannelType.AC, ChannelType.DC, ChannelType.INV]

    def channel_type_name(self, channel_type: ChannelType) -> str:
        return ChannelType(channel_type).label

    def channels_by_type(self, channel_type: ChannelType) -> list[int]:
        """Channels of a type in layout order, consecutive repeats collapsed."""
        channels = (a.channel for a in self._byte_assignment if a.channel_type == channel_type)
        return [channel for channel, _ in itertools.groupby(channels)]

    def get_string_max_power(self, channel: int) -> int:
        if not 0 <= channel < CH_CNT:
            raise IndexError(f"channel {channel} out of range")
        return self._string_max_power[channel]

    def set_string_max_power(self, channel: int, power: int) -> None:
        """Set the installed module power of a string; invalid channels are ignored."""
        if 0 <= channel < CH_CNT:
            self._string_max_power[channel] = power

    def reset_rx_failure_count(self) -> None:
        self.rx_failure_count = 0

    def increment_rx_failure_count(self) -> None:
        self.rx_failure_count += 1

    def zero_runtime_data(self) -> None:
        """Zero all live measurement fields."""
        self._zero_fields(RUNTIME_FIELDS)

    def zero_daily_data(self) -> None:
        """Zero the daily yield fields."""
        self._zero_fields(DAILY_PRODUCTION_FIELDS)

    def reset_yield_day_correction(self) -> None:
        """Forget accumulated yield-day offsets, as at the start of a new day."""
        for channel in self.channels_by_type(ChannelType.DC):
            self.set_channel_field_offset(ChannelType.DC, channel, FieldId.YD, 0.0)
            self._last_yield_day[channel] = 0.0

    def set_last_update(self, last_update: int) -> None:
        """Record the time new data arrived from the inverter."""
        self.last_update = last_update
        self.last_update_from_internal = last_update

    def _zero_fields(self, fields: Iterable[FieldId]) -> None:
        fields = tuple(fields)
        for channel_type in self.channel_types():
            for channel in self.channels_by_type(channel_type):
                for field in fields:
                    if self.has_channel_field_value(channel_type, channel, field):
                        self.set_channel_field_value(channel_type, channel, field, 0)
        self.last_update_from_internal = self._clock()

    def _sum_over(self, channel_type: ChannelType, field: FieldId) -> float:
        return sum(
            self.get_channel_field_value(channel_type, channel, field)
            for channel in self.channels_by_type(channel_type)
        )

    def _calculate(self, function: CalcFunction, arg: int) -> float:
        if function is CalcFunction.YT_CH0:
            return self._sum_over(ChannelType.DC, FieldId.YT)
        if function is CalcFunction.YD_CH0:
            return self._sum_over(ChannelType.DC, FieldId.YD)
        if function is CalcFunction.UDC_CH:
            return self.get_channel_field_value(ChannelType.DC, arg, FieldId.UDC)
        if function is CalcFunction.PDC_CH0:
            return self._sum_over(ChannelType.DC, FieldId.PDC)
        if function is CalcFunction.EFF_CH0:
            ac_power = self._sum_over(ChannelType.AC, FieldId.PAC)
            dc_power = self._sum_over(ChannelType.DC, FieldId.PDC)
            return ac_power / dc_power * 100.0 if dc_power > 0 else 0.0
        # CalcFunction.IRR_CH
        max_power = self.get_string_max_power(arg)
        if max_power > 0:
            return self.get_channel_field_value(ChannelType.DC, arg, FieldId.PDC) / max_power * 100.0
        return 0.0