"""The three-phase HMT family of inverters with four and six inputs."""

from __future__ import annotations

from typing import Any

from dtukit.alarmlog import AlarmMessageType
from dtukit.hm import HMAbstract
from dtukit.statistics import (
    CMD_CALC,
    ByteAssign,
    CalcFunction,
    ChannelType,
    FieldId,
    UnitId,
)

_AC, _DC, _INV = ChannelType.AC, ChannelType.DC, ChannelType.INV
F, U, C = FieldId, UnitId, CalcFunction


def _at(channel_type, channel, field, unit, start, num, div, signed, digits) -> ByteAssign:
    return ByteAssign(channel_type, channel, field, unit, start, num, div, signed, digits)


def _calc(channel_type, channel, field, unit, function, arg, digits) -> ByteAssign:
    return ByteAssign(channel_type, channel, field, unit, int(function), arg, CMD_CALC, False, digits)


def _dc(channel, udc, idc, pdc, yt, yd) -> tuple[ByteAssign, ...]:
    return (
        _at(_DC, channel, F.UDC, U.V, udc, 2, 10, False, 1),
        _at(_DC, channel, F.IDC, U.A, idc, 2, 100, False, 2),
        _at(_DC, channel, F.PDC, U.W, pdc, 2, 10, False, 1),
        _at(_DC, channel, F.YT, U.KWH, yt, 4, 1000, False, 3),
        _at(_DC, channel, F.YD, U.WH, yd, 2, 1, False, 0),
        _calc(_DC, channel, F.IRR, U.PCT, C.IRR_CH, channel, 3),
    )


# Two inputs share one voltage reading; the single-phase UAC and IAC mirror phase readings.
_THREE_PHASE_TAIL = (
    _at(_AC, 0, F.UAC, U.V, 74, 2, 10, False, 1),
    _at(_AC, 0, F.UAC_1N, U.V, 68, 2, 10, False, 1),
    _at(_AC, 0, F.UAC_2N, U.V, 70, 2, 10, False, 1),
    _at(_AC, 0, F.UAC_3N, U.V, 72, 2, 10, False, 1),
    _at(_AC, 0, F.UAC_12, U.V, 74, 2, 10, False, 1),
    _at(_AC, 0, F.UAC_23, U.V, 76, 2, 10, False, 1),
    _at(_AC, 0, F.UAC_31, U.V, 78, 2, 10, False, 1),
    _at(_AC, 0, F.F, U.HZ, 80, 2, 100, False, 2),
    _at(_AC, 0, F.PAC, U.W, 82, 2, 10, False, 1),
    _at(_AC, 0, F.Q, U.VAR, 84, 2, 10, True, 1),
    _at(_AC, 0, F.IAC, U.A, 86, 2, 100, False, 2),
    _at(_AC, 0, F.IAC_1, U.A, 86, 2, 100, False, 2),
    _at(_AC, 0, F.IAC_2, U.A, 88, 2, 100, False, 2),
    _at(_AC, 0, F.IAC_3, U.A, 90, 2, 100, False, 2),
    _at(_AC, 0, F.PF, U.NONE, 92, 2, 1000, False, 3),
    _at(_INV, 0, F.T, U.C, 94, 2, 10, True, 1),
    _at(_INV, 0, F.EVT_LOG, U.NONE, 96, 2, 1, False, 0),
    _calc(_AC, 0, F.YD, U.WH, C.YD_CH0, 0, 0),
    _calc(_AC, 0, F.YT, U.KWH, C.YT_CH0, 0, 3),
    _calc(_AC, 0, F.PDC, U.W, C.PDC_CH0, 0, 1),
    _calc(_AC, 0, F.EFF, U.PCT, C.EFF_CH0, 0, 3),
)

_FOUR_INPUTS = (
    _dc(0, 2, 4, 8, 12, 20)
    + _dc(1, 2, 6, 10, 16, 22)
    + _dc(2, 24, 26, 30, 34, 42)
    + _dc(3, 24, 28, 32, 38, 44)
)

_HMT_4CH_LAYOUT = _FOUR_INPUTS + _THREE_PHASE_TAIL

_HMT_6CH_LAYOUT = (
    _FOUR_INPUTS
    + _dc(4, 46, 48, 52, 56, 64)
    + _dc(5, 46, 50, 54, 60, 66)
    + _THREE_PHASE_TAIL
)


def _serial_prefix(serial: int) -> int:
    return (serial >> 32) & 0xFFFF


class HMTAbstract(HMAbstract):
    """Common base of the HMT models; their alarm codes use the HMT texts."""

    def __init__(self, radio: Any, serial: int) -> None:
        super().__init__(radio, serial)
        self.event_log.message_type = AlarmMessageType.HMT


class HMT4CH(HMTAbstract):
    """HMT-1600/1800/2000-4T."""

    @staticmethod
    def is_valid_serial(serial: int) -> bool:
        return _serial_prefix(serial) == 0x1361

    def type_name(self) -> str:
        return "HMT-1600/1800/2000-4T"

    def byte_assignment(self) -> tuple[ByteAssign, ...]:
        return _HMT_4CH_LAYOUT


class HMT6CH(HMTAbstract):
    """HMT-1800/2250-6T."""

    @staticmethod
    def is_valid_serial(serial: int) -> bool:
        return _serial_prefix(serial) == 0x1382

    def type_name(self) -> str:
        return "HMT-1800/2250-6T"

    def byte_assignment(self) -> tuple[ByteAssign, ...]:
        return _HMT_6CH_LAYOUT