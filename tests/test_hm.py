import pytest

from dtukit.hm import HM1CH, HM2CH, HM4CH
from dtukit.statistics import CMD_CALC, ChannelType, FieldId


@pytest.mark.parametrize(
    "serial, expected",
    [
        (0x112112345678, (True, False, False)),
        (0x102212345678, (True, False, False)),
        (0x114112345678, (False, True, False)),
        (0x104212345678, (False, True, False)),
        (0x116112345678, (False, False, True)),
        (0x106212345678, (False, False, True)),
        (0x138212345678, (False, False, False)),
    ],
)
def test_is_valid_serial(serial, expected):
    assert (
        HM1CH.is_valid_serial(serial),
        HM2CH.is_valid_serial(serial),
        HM4CH.is_valid_serial(serial),
    ) == expected


def test_type_names():
    assert HM1CH(None, 0x112112345678).type_name() == "HM-300/350/400-1T"
    assert HM2CH(None, 0x114112345678).type_name() == "HM-600/700/800-2T"
    assert HM4CH(None, 0x116112345678).type_name() == "HM-1000/1200/1500-4T"


def test_channels_per_model():
    one = HM1CH(None, 0x112112345678)
    one.init()
    two = HM2CH(None, 0x114112345678)
    two.init()
    four = HM4CH(None, 0x116112345678)
    four.init()
    assert one.statistics.channels_by_type(ChannelType.DC) == [0]
    assert two.statistics.channels_by_type(ChannelType.DC) == [0, 1]
    assert four.statistics.channels_by_type(ChannelType.DC) == [0, 1, 2, 3]


def test_expected_byte_count():
    one = HM1CH(None, 0x112112345678)
    one.init()
    four = HM4CH(None, 0x116112345678)
    four.init()
    assert one.statistics.expected_byte_count == 30
    assert four.statistics.expected_byte_count == 62


@pytest.mark.parametrize("cls", [HM1CH, HM2CH, HM4CH])
def test_layout_entries_are_unique(cls):
    layout = cls(None, 0x112112345678).byte_assignment()
    keys = [(a.channel_type, a.channel, a.field) for a in layout]
    assert len(keys) == len(set(keys))
    assert all(a.is_calculated == (a.div == CMD_CALC) for a in layout)


@pytest.mark.parametrize("cls", [HM1CH, HM2CH, HM4CH])
def test_round_trip_ac_power(cls):
    inv = cls(None, 0x112112345678)
    inv.init()
    stats = inv.statistics
    assert stats.set_channel_field_value(ChannelType.AC, 0, FieldId.PAC, 250.5)
    assert stats.get_channel_field_value(ChannelType.AC, 0, FieldId.PAC) == pytest.approx(250.5)
    assert inv.is_producing() is True


def test_hm4ch_shares_voltage_between_inputs():
    inv = HM4CH(None, 0x116112345678)
    inv.init()
    stats = inv.statistics
    stats.set_channel_field_value(ChannelType.DC, 0, FieldId.UDC, 35.0)
    stats.set_channel_field_value(ChannelType.DC, 2, FieldId.UDC, 31.5)
    assert stats.get_channel_field_value(ChannelType.DC, 1, FieldId.UDC) == pytest.approx(35.0)
    assert stats.get_channel_field_value(ChannelType.DC, 3, FieldId.UDC) == pytest.approx(31.5)
    assert stats.set_channel_field_value(ChannelType.DC, 1, FieldId.UDC, 10.0) is False


def test_total_dc_power_is_sum_of_inputs():
    inv = HM2CH(None, 0x114112345678)
    inv.init()
    stats = inv.statistics
    stats.set_channel_field_value(ChannelType.DC, 0, FieldId.PDC, 120.0)
    stats.set_channel_field_value(ChannelType.DC, 1, FieldId.PDC, 80.0)
    total = stats.get_channel_field_value(ChannelType.AC, 0, FieldId.PDC)
    assert total == pytest.approx(
        stats.get_channel_field_value(ChannelType.DC, 0, FieldId.PDC)
        + stats.get_channel_field_value(ChannelType.DC, 1, FieldId.PDC)
    )


def test_temperature_is_signed():
    inv = HM1CH(None, 0x112112345678)
    inv.init()
    stats = inv.statistics
    stats.set_channel_field_value(ChannelType.INV, 0, FieldId.T, -5.0)
    assert stats.get_channel_field_value(ChannelType.INV, 0, FieldId.T) == pytest.approx(-5.0)