import pytest

from dtukit.statistics import (
    CMD_CALC,
    ByteAssign,
    CalcFunction,
    ChannelType,
    FieldId,
    LastCommandSuccess,
    Parser,
    PowerCommandParser,
    StatisticsParser,
    UnitId,
)

DC = ChannelType.DC
AC = ChannelType.AC
INV = ChannelType.INV

LAYOUT = (
    ByteAssign(DC, 0, FieldId.UDC, UnitId.V, 2, 2, 10, False, 1),
    ByteAssign(DC, 0, FieldId.PDC, UnitId.W, 6, 2, 10, False, 1),
    ByteAssign(DC, 0, FieldId.YD, UnitId.WH, 12, 2, 1, False, 0),
    ByteAssign(DC, 0, FieldId.YT, UnitId.KWH, 8, 4, 1000, False, 3),
    ByteAssign(DC, 0, FieldId.IRR, UnitId.PCT, CalcFunction.IRR_CH, 0, CMD_CALC, False, 3),
    ByteAssign(DC, 1, FieldId.UDC, UnitId.V, CalcFunction.UDC_CH, 0, CMD_CALC, False, 1),
    ByteAssign(DC, 1, FieldId.PDC, UnitId.W, 14, 2, 10, False, 1),
    ByteAssign(DC, 1, FieldId.YD, UnitId.WH, 16, 2, 1, False, 0),
    ByteAssign(DC, 1, FieldId.YT, UnitId.KWH, 18, 4, 1000, False, 3),
    ByteAssign(AC, 0, FieldId.UAC, UnitId.V, 22, 2, 10, False, 1),
    ByteAssign(AC, 0, FieldId.PAC, UnitId.W, 24, 2, 10, False, 1),
    ByteAssign(INV, 0, FieldId.T, UnitId.C, 26, 2, 10, True, 1),
    ByteAssign(AC, 0, FieldId.YD, UnitId.WH, CalcFunction.YD_CH0, 0, CMD_CALC, False, 0),
    ByteAssign(AC, 0, FieldId.YT, UnitId.KWH, CalcFunction.YT_CH0, 0, CMD_CALC, False, 3),
    ByteAssign(AC, 0, FieldId.PDC, UnitId.W, CalcFunction.PDC_CH0, 0, CMD_CALC, False, 1),
    ByteAssign(AC, 0, FieldId.EFF, UnitId.PCT, CalcFunction.EFF_CH0, 0, CMD_CALC, False, 3),
)


@pytest.fixture
def parser():
    p = StatisticsParser(clock=lambda: 4242)
    p.set_byte_assignment(LAYOUT)
    return p


def test_expected_byte_count_ignores_calculated(parser):
    assert parser.expected_byte_count == 26 + 2


@pytest.mark.parametrize(
    "channel_type,channel,field,value",
    [
        (DC, 0, FieldId.UDC, 230.5),
        (DC, 0, FieldId.YT, 1234.567),
        (DC, 1, FieldId.PDC, 99.9),
        (AC, 0, FieldId.PAC, 400.0),
        (INV, 0, FieldId.T, -12.5),
    ],
)
def test_value_round_trip(parser, channel_type, channel, field, value):
    assert parser.set_channel_field_value(channel_type, channel, field, value) is True
    assert parser.get_channel_field_value(channel_type, channel, field) == pytest.approx(value)


def test_missing_field(parser):
    assert parser.has_channel_field_value(DC, 3, FieldId.UDC) is False
    assert parser.get_channel_field_value(DC, 3, FieldId.UDC) == 0.0
    assert parser.set_channel_field_value(DC, 3, FieldId.UDC, 1.0) is False
    with pytest.raises(KeyError):
        parser.get_channel_field_unit(DC, 3, FieldId.UDC)


def test_calculated_field_cannot_be_set(parser):
    assert parser.set_channel_field_value(AC, 0, FieldId.EFF, 50.0) is False


def test_calculated_sums(parser):
    parser.set_channel_field_value(DC, 0, FieldId.PDC, 60.0)
    parser.set_channel_field_value(DC, 1, FieldId.PDC, 40.0)
    parser.set_channel_field_value(DC, 0, FieldId.YD, 300)
    parser.set_channel_field_value(DC, 1, FieldId.YD, 200)
    parser.set_channel_field_value(AC, 0, FieldId.PAC, 100.0)
    assert parser.get_channel_field_value(AC, 0, FieldId.PDC) == pytest.approx(60.0 + 40.0)
    assert parser.get_channel_field_value(AC, 0, FieldId.YD) == pytest.approx(300 + 200)
    assert parser.get_channel_field_value(AC, 0, FieldId.EFF) == pytest.approx(100.0)


def test_efficiency_zero_without_dc(parser):
    parser.set_channel_field_value(AC, 0, FieldId.PAC, 100.0)
    assert parser.get_channel_field_value(AC, 0, FieldId.EFF) == 0.0


def test_udc_copied_from_source_channel(parser):
    parser.set_channel_field_value(DC, 0, FieldId.UDC, 35.2)
    assert parser.get_channel_field_value(DC, 1, FieldId.UDC) == pytest.approx(35.2)


def test_irradiation(parser):
    parser.set_channel_field_value(DC, 0, FieldId.PDC, 300.0)
    assert parser.get_channel_field_value(DC, 0, FieldId.IRR) == 0.0
    parser.set_string_max_power(0, 300)
    assert parser.get_string_max_power(0) == 300
    assert parser.get_channel_field_value(DC, 0, FieldId.IRR) == pytest.approx(100.0)


def test_string_max_power_out_of_range_ignored(parser):
    parser.set_string_max_power(10, 500)
    assert [parser.get_string_max_power(c) for c in range(6)] == [0] * 6
    with pytest.raises(IndexError):
        parser.get_string_max_power(10)


def test_offset_only_applied_after_data(parser):
    parser.set_channel_field_value(DC, 0, FieldId.YT, 10.0)
    parser.set_channel_field_offset(DC, 0, FieldId.YT, 5.0)
    assert parser.get_channel_field_offset(DC, 0, FieldId.YT) == 5.0
    assert parser.get_channel_field_value(DC, 0, FieldId.YT) == pytest.approx(10.0)
    parser.append_fragment(40, b"\x00")
    assert parser.get_channel_field_value(DC, 0, FieldId.YT) == pytest.approx(15.0)
    parser.set_channel_field_value(DC, 0, FieldId.YT, 15.0)
    assert parser.get_channel_field_value(DC, 0, FieldId.YT) == pytest.approx(15.0)


def test_offset_setting_updated_in_place(parser):
    parser.set_channel_field_offset(DC, 1, FieldId.YT, 1.5)
    parser.set_channel_field_offset(DC, 1, FieldId.YT, 2.5)
    assert parser.setting_for(DC, 1, FieldId.YT).offset == 2.5
    assert parser.get_channel_field_offset(DC, 0, FieldId.YT) == 0.0


def test_append_fragment_too_large(parser):
    with pytest.raises(ValueError):
        parser.append_fragment(100, bytes(20))


def test_append_fragment_and_clear(parser):
    parser.append_fragment(2, b"\x08\xfd")
    assert parser.get_channel_field_value(DC, 0, FieldId.UDC) == pytest.approx(0x08FD / 10)
    parser.clear_buffer()
    assert parser.get_channel_field_value(DC, 0, FieldId.UDC) == 0.0


def test_value_string_uses_digits(parser):
    parser.set_channel_field_value(DC, 0, FieldId.UDC, 230.5)
    assert parser.get_channel_field_value_string(DC, 0, FieldId.UDC) == "230.5"
    assert parser.get_channel_field_digits(DC, 0, FieldId.YT) == 3


def test_unit_and_name(parser):
    assert parser.get_channel_field_unit(INV, 0, FieldId.T) == "°C"
    assert parser.get_channel_field_name(INV, 0, FieldId.T) == "Temperature"
    assert parser.get_channel_field_unit(DC, 0, FieldId.YT) == "kWh"
    assert parser.get_channel_field_name(DC, 0, FieldId.YD) == "YieldDay"


def test_channel_types_and_names(parser):
    assert parser.channel_types() == [AC, DC, INV]
    assert [parser.channel_type_name(t) for t in parser.channel_types()] == ["AC", "DC", "INV"]


def test_channels_by_type(parser):
    assert parser.channels_by_type(DC) == [0, 1]
    assert parser.channels_by_type(AC) == [0]
    assert parser.channels_by_type(INV) == [0]


def test_channels_by_type_collapses_only_consecutive():
    p = StatisticsParser()
    p.set_byte_assignment(
        (
            ByteAssign(DC, 0, FieldId.UDC, UnitId.V, 2, 2, 10, False, 1),
            ByteAssign(DC, 1, FieldId.UDC, UnitId.V, 4, 2, 10, False, 1),
            ByteAssign(DC, 0, FieldId.PDC, UnitId.W, 6, 2, 10, False, 1),
        )
    )
    assert p.channels_by_type(DC) == [0, 1, 0]


def test_zero_runtime_keeps_yield(parser):
    parser.set_channel_field_value(DC, 0, FieldId.UDC, 30.0)
    parser.set_channel_field_value(AC, 0, FieldId.PAC, 200.0)
    parser.set_channel_field_value(DC, 0, FieldId.YD, 700)
    parser.zero_runtime_data()
    assert parser.get_channel_field_value(DC, 0, FieldId.UDC) == 0.0
    assert parser.get_channel_field_value(AC, 0, FieldId.PAC) == 0.0
    assert parser.get_channel_field_value(DC, 0, FieldId.YD) == 700
    assert parser.last_update_from_internal == 4242


def test_zero_daily_data(parser):
    parser.set_channel_field_value(DC, 0, FieldId.YD, 700)
    parser.set_channel_field_value(DC, 0, FieldId.UDC, 30.0)
    parser.zero_daily_data()
    assert parser.get_channel_field_value(DC, 0, FieldId.YD) == 0.0
    assert parser.get_channel_field_value(DC, 0, FieldId.UDC) == pytest.approx(30.0)


def test_yield_day_correction(parser):
    parser.yield_day_correction = True
    parser.append_fragment(0, bytes(28))
    parser.set_channel_field_value(DC, 0, FieldId.YD, 500)

    parser.begin_append_fragment()
    parser.end_append_fragment()
    assert parser.get_channel_field_offset(DC, 0, FieldId.YD) == 0.0

    parser.set_channel_field_value(DC, 0, FieldId.YD, 0)
    parser.begin_append_fragment()
    parser.end_append_fragment()
    assert parser.get_channel_field_offset(DC, 0, FieldId.YD) == 500
    assert parser.get_channel_field_value(DC, 0, FieldId.YD) == 500

    parser.reset_yield_day_correction()
    assert parser.get_channel_field_offset(DC, 0, FieldId.YD) == 0.0


def test_yield_day_correction_disabled_resets_offset(parser):
    parser.set_channel_field_offset(DC, 0, FieldId.YD, 123.0)
    parser.begin_append_fragment()
    parser.end_append_fragment()
    assert parser.get_channel_field_offset(DC, 0, FieldId.YD) == 0.0


def test_rx_failure_count(parser):
    parser.increment_rx_failure_count()
    parser.increment_rx_failure_count()
    assert parser.rx_failure_count == 2
    parser.reset_rx_failure_count()
    assert parser.rx_failure_count == 0


def test_set_last_update(parser):
    parser.set_last_update(777)
    assert parser.last_update == 777
    assert parser.last_update_from_internal == 777


def test_power_command_parser():
    p = PowerCommandParser()
    assert p.last_power_command_success is LastCommandSuccess.OK
    p.set_last_update_command(55)
    assert p.last_update_command == 55
    assert p.last_update == 55


def test_end_without_begin_raises():
    with pytest.raises(RuntimeError):
        Parser().end_append_fragment()


def test_enum_labels():
    p = StatisticsParser()
    p.set_byte_assignment(
        (
            ByteAssign(AC, 0, FieldId.UAC_12, UnitId.VAR, 0, 2, 10, False, 1),
            ByteAssign(INV, 0, FieldId.EVT_LOG, UnitId.V, 2, 2, 1, False, 0),
        )
    )
    assert p.get_channel_field_unit(AC, 0, FieldId.UAC_12) == "var"
    assert p.get_channel_field_name(AC, 0, FieldId.UAC_12) == "Voltage Ph1-Ph2"
    assert p.get_channel_field_name(INV, 0, FieldId.EVT_LOG) == "EventLogCount"
    assert UnitId.VAR.symbol == "var"
    assert FieldId.UAC_12.label == "Voltage Ph1-Ph2"