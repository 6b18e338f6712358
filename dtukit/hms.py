"""The HMS family of inverters with one, two and four inputs."""

from __future__ import annotations

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


def _dc(channel, udc, idc, pdc, yd, yt, yd_first) -> tuple[ByteAssign, ...]:
    """Fields of one DC input; ``yd_first`` keeps the listing order of the layout."""
    yield_day = _at(_DC, channel, F.YD, U.WH, yd, 2, 1, False, 0)
    yield_total = _at(_DC, channel, F.YT, U.KWH, yt, 4, 1000, False, 3)
    yields = (yield_day, yield_total) if yd_first else (yield_total, yield_day)
    return (
        _at(_DC, channel, F.UDC, U.V, udc, 2, 10, False, 1),
        _at(_DC, channel, F.IDC, U.A, idc, 2, 100, False, 2),
        _at(_DC, channel, F.PDC, U.W, pdc, 2, 10, False, 1),
        *yields,
        _calc(_DC, channel, F.IRR, U.PCT, C.IRR_CH, channel, 3),
    )


def _ac(uac, iac, pac, q, freq, pf, q_signed) -> tuple[ByteAssign, ...]:
    return (
        _at(_AC, 0, F.UAC, U.V, uac, 2, 10, False, 1),
        _at(_AC, 0, F.IAC, U.A, iac, 2, 100, False, 2),
        _at(_AC, 0, F.PAC, U.W, pac, 2, 10, False, 1),
        _at(_AC, 0, F.Q, U.VAR, q, 2, 10, q_signed, 1),
        _at(_AC, 0, F.F, U.HZ, freq, 2, 100, False, 2),
        _at(_AC, 0, F.PF, U.NONE, pf, 2, 1000, False, 3),
    )


def _inv(temperature, event_log) -> tuple[ByteAssign, ...]:
    return (
        _at(_INV, 0, F.T, U.C, temperature, 2, 10, True, 1),
        _at(_INV, 0, F.EVT_LOG, U.NONE, event_log, 2, 1, False, 0),
    )


def _ac_totals() -> tuple[ByteAssign, ...]:
    return (
        _calc(_AC, 0, F.YD, U.WH, C.YD_CH0, 0, 0),
        _calc(_AC, 0, F.YT, U.KWH, C.YT_CH0, 0, 3),
        _calc(_AC, 0, F.PDC, U.W, C.PDC_CH0, 0, 1),
        _calc(_AC, 0, F.EFF, U.PCT, C.EFF_CH0, 0, 3),
    )


_HMS_1CH_LAYOUT = (
    _dc(0, 2, 4, 6, 12, 8, True)
    + _ac(14, 22, 18, 20, 16, 24, False)
    + _inv(26, 28)
    + _ac_totals()
)

_HMS_1CHV2_LAYOUT = (
    _dc(0, 2, 6, 10, 22, 14, True)
    + _ac(26, 34, 30, 20, 28, 36, False)
    + _inv(38, 18)
    + _ac_totals()
)

_HMS_2CH_LAYOUT = (
    _dc(0, 2, 6, 10, 22, 14, False)
    + _dc(1, 4, 8, 12, 24, 18, False)
    + _ac(26, 34, 30, 32, 28, 36, False)
    + _inv(38, 40)
    + _ac_totals()
)

_HMS_4CH_LAYOUT = (
    _dc(0, 2, 6, 10, 22, 14, True)
    + _dc(1, 4, 8, 12, 24, 18, True)
    + _dc(2, 26, 30, 34, 46, 38, True)
    + _dc(3, 28, 32, 36, 48, 42, True)
    + _ac(50, 58, 54, 56, 52, 60, True)
    + _inv(62, 64)
    + _ac_totals()
)


def _serial_prefix(serial: int) -> int:
    return (serial >> 32) & 0xFFFF


class HMSAbstract(HMAbstract):
    """Common base of the HMS models."""


class HMS1CH(HMSAbstract):
    """HMS-300/350/400/450/500-1T."""

    @staticmethod
    def is_valid_serial(serial: int) -> bool:
        return _serial_prefix(serial) == 0x1124

    def type_name(self) -> str:
        return "HMS-300/350/400/450/500-1T"

    def byte_assignment(self) -> tuple[ByteAssign, ...]:
        return _HMS_1CH_LAYOUT


class HMS1CHv2(HMSAbstract):
    """HMS-500-1T v2."""

    @staticmethod
    def is_valid_serial(serial: int) -> bool:
        return _serial_prefix(serial) == 0x1125

    def type_name(self) -> str:
        return "HMS-500-1T v2"

    def byte_assignment(self) -> tuple[ByteAssign, ...]:
        return _HMS_1CHV2_LAYOUT


class HMS2CH(HMSAbstract):
    """HMS-600/700/800/900/1000-2T."""

    @staticmethod
    def is_valid_serial(serial: int) -> bool:
        return _serial_prefix(serial) == 0x1144

    def type_name(self) -> str:
        return "HMS-600/700/800/900/1000-2T"

    def byte_assignment(self) -> tuple[ByteAssign, ...]:
        return _HMS_2CH_LAYOUT


class HMS4CH(HMSAbstract):
    """HMS-1600/1800/2000-4T."""

    @staticmethod
    def is_valid_serial(serial: int) -> bool:
        return _serial_prefix(serial) == 0x1164

    def type_name(self) -> str:
        return "HMS-1600/1800/2000-4T"

    def byte_assignment(self) -> tuple[ByteAssign, ...]:
        return _HMS_4CH_LAYOUT