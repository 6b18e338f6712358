"""The HM family of inverters with one, two and four inputs."""

from __future__ import annotations

from dtukit.inverter import InverterAbstract
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


def _ac_totals() -> tuple[ByteAssign, ...]:
    return (
        _calc(_AC, 0, F.YD, U.WH, C.YD_CH0, 0, 0),
        _calc(_AC, 0, F.YT, U.KWH, C.YT_CH0, 0, 3),
        _calc(_AC, 0, F.PDC, U.W, C.PDC_CH0, 0, 1),
        _calc(_AC, 0, F.EFF, U.PCT, C.EFF_CH0, 0, 3),
    )


_HM_1CH_LAYOUT = (
    _at(_DC, 0, F.UDC, U.V, 2, 2, 10, False, 1),
    _at(_DC, 0, F.IDC, U.A, 4, 2, 100, False, 2),
    _at(_DC, 0, F.PDC, U.W, 6, 2, 10, False, 1),
    _at(_DC, 0, F.YD, U.WH, 12, 2, 1, False, 0),
    _at(_DC, 0, F.YT, U.KWH, 8, 4, 1000, False, 3),
    _calc(_DC, 0, F.IRR, U.PCT, C.IRR_CH, 0, 3),
    _at(_AC, 0, F.UAC, U.V, 14, 2, 10, False, 1),
    _at(_AC, 0, F.IAC, U.A, 22, 2, 100, False, 2),
    _at(_AC, 0, F.PAC, U.W, 18, 2, 10, False, 1),
    _at(_AC, 0, F.Q, U.VAR, 20, 2, 10, False, 1),
    _at(_AC, 0, F.F, U.HZ, 16, 2, 100, False, 2),
    _at(_AC, 0, F.PF, U.NONE, 24, 2, 1000, False, 3),
    _at(_INV, 0, F.T, U.C, 26, 2, 10, True, 1),
    _at(_INV, 0, F.EVT_LOG, U.NONE, 28, 2, 1, False, 0),
) + _ac_totals()

_HM_2CH_LAYOUT = (
    _at(_DC, 0, F.UDC, U.V, 2, 2, 10, False, 1),
    _at(_DC, 0, F.IDC, U.A, 4, 2, 100, False, 2),
    _at(_DC, 0, F.PDC, U.W, 6, 2, 10, False, 1),
    _at(_DC, 0, F.YD, U.WH, 22, 2, 1, False, 0),
    _at(_DC, 0, F.YT, U.KWH, 14, 4, 1000, False, 3),
    _calc(_DC, 0, F.IRR, U.PCT, C.IRR_CH, 0, 3),
    _at(_DC, 1, F.UDC, U.V, 8, 2, 10, False, 1),
    _at(_DC, 1, F.IDC, U.A, 10, 2, 100, False, 2),
    _at(_DC, 1, F.PDC, U.W, 12, 2, 10, False, 1),
    _at(_DC, 1, F.YD, U.WH, 24, 2, 1, False, 0),
    _at(_DC, 1, F.YT, U.KWH, 18, 4, 1000, False, 3),
    _calc(_DC, 1, F.IRR, U.PCT, C.IRR_CH, 1, 3),
    _at(_AC, 0, F.UAC, U.V, 26, 2, 10, False, 1),
    _at(_AC, 0, F.IAC, U.A, 34, 2, 100, False, 2),
    _at(_AC, 0, F.PAC, U.W, 30, 2, 10, False, 1),
    _at(_AC, 0, F.Q, U.VAR, 32, 2, 10, False, 1),
    _at(_AC, 0, F.F, U.HZ, 28, 2, 100, False, 2),
    _at(_AC, 0, F.PF, U.NONE, 36, 2, 1000, False, 3),
    _at(_INV, 0, F.T, U.C, 38, 2, 10, True, 1),
    _at(_INV, 0, F.EVT_LOG, U.NONE, 40, 2, 1, False, 0),
) + _ac_totals()

_HM_4CH_LAYOUT = (
    _at(_DC, 0, F.UDC, U.V, 2, 2, 10, False, 1),
    _at(_DC, 0, F.IDC, U.A, 4, 2, 100, False, 2),
    _at(_DC, 0, F.PDC, U.W, 8, 2, 10, False, 1),
    _at(_DC, 0, F.YD, U.WH, 20, 2, 1, False, 0),
    _at(_DC, 0, F.YT, U.KWH, 12, 4, 1000, False, 3),
    _calc(_DC, 0, F.IRR, U.PCT, C.IRR_CH, 0, 3),
    _calc(_DC, 1, F.UDC, U.V, C.UDC_CH, 0, 1),
    _at(_DC, 1, F.IDC, U.A, 6, 2, 100, False, 2),
    _at(_DC, 1, F.PDC, U.W, 10, 2, 10, False, 1),
    _at(_DC, 1, F.YD, U.WH, 22, 2, 1, False, 0),
    _at(_DC, 1, F.YT, U.KWH, 16, 4, 1000, False, 3),
    _calc(_DC, 1, F.IRR, U.PCT, C.IRR_CH, 1, 3),
    _at(_DC, 2, F.UDC, U.V, 24, 2, 10, False, 1),
    _at(_DC, 2, F.IDC, U.A, 26, 2, 100, False, 2),
    _at(_DC, 2, F.PDC, U.W, 30, 2, 10, False, 1),
    _at(_DC, 2, F.YD, U.WH, 42, 2, 1, False, 0),
    _at(_DC, 2, F.YT, U.KWH, 34, 4, 1000, False, 3),
    _calc(_DC, 2, F.IRR, U.PCT, C.IRR_CH, 2, 3),
    _calc(_DC, 3, F.UDC, U.V, C.UDC_CH, 2, 1),
    _at(_DC, 3, F.IDC, U.A, 28, 2, 100, False, 2),
    _at(_DC, 3, F.PDC, U.W, 32, 2, 10, False, 1),
    _at(_DC, 3, F.YD, U.WH, 44, 2, 1, False, 0),
    _at(_DC, 3, F.YT, U.KWH, 38, 4, 1000, False, 3),
    _calc(_DC, 3, F.IRR, U.PCT, C.IRR_CH, 3, 3),
    _at(_AC, 0, F.UAC, U.V, 46, 2, 10, False, 1),
    _at(_AC, 0, F.IAC, U.A, 54, 2, 100, False, 2),
    _at(_AC, 0, F.PAC, U.W, 50, 2, 10, False, 1),
    _at(_AC, 0, F.Q, U.VAR, 52, 2, 10, False, 1),
    _at(_AC, 0, F.F, U.HZ, 48, 2, 100, False, 2),
    _at(_AC, 0, F.PF, U.NONE, 56, 2, 1000, False, 3),
    _at(_INV, 0, F.T, U.C, 58, 2, 10, True, 1),
    _at(_INV, 0, F.EVT_LOG, U.NONE, 60, 2, 1, False, 0),
) + _ac_totals()


class HMAbstract(InverterAbstract):
    """Common base of the HM models."""

    @staticmethod
    def _serial_matches(
        serial: int,
        code: int,
        nibbles: tuple[int, int],
        prefixes: tuple[tuple[int, int], tuple[int, int]],
    ) -> bool:
        """Check the model code held in the two top bytes of a serial."""
        pre0 = (serial >> 40) & 0xFF
        pre1 = (serial >> 32) & 0xFF
        if ((((pre0 << 8) | pre1) >> 4) & 0xFF) == code:
            return True
        return (pre1 & 0xF0) in nibbles and (pre0, pre1) in prefixes


class HM1CH(HMAbstract):
    """HM-300/350/400-1T."""

    @staticmethod
    def is_valid_serial(serial: int) -> bool:
        return HMAbstract._serial_matches(serial, 0x12, (0x10, 0x20), ((0x10, 0x22), (0x11, 0x21)))

    def type_name(self) -> str:
        return "HM-300/350/400-1T"

    def byte_assignment(self) -> tuple[ByteAssign, ...]:
        return _HM_1CH_LAYOUT


class HM2CH(HMAbstract):
    """HM-600/700/800-2T."""

    @staticmethod
    def is_valid_serial(serial: int) -> bool:
        return HMAbstract._serial_matches(serial, 0x14, (0x30, 0x40), ((0x10, 0x42), (0x11, 0x41)))

    def type_name(self) -> str:
        return "HM-600/700/800-2T"

    def byte_assignment(self) -> tuple[ByteAssign, ...]:
        return _HM_2CH_LAYOUT


class HM4CH(HMAbstract):
    """HM-1000/1200/1500-4T."""

    @staticmethod
    def is_valid_serial(serial: int) -> bool:
        return HMAbstract._serial_matches(serial, 0x16, (0x50, 0x60), ((0x10, 0x62), (0x11, 0x61)))

    def type_name(self) -> str:
        return "HM-1000/1200/1500-4T"

    def byte_assignment(self) -> tuple[ByteAssign, ...]:
        return _HM_4CH_LAYOUT