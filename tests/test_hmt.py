import pytest

from dtukit.alarmlog import AlarmMessageType
from dtukit.hmt import HMT4CH, HMT6CH
from dtukit.statistics import ChannelType, FieldId


def test_valid_serials():
    assert HMT4CH.is_valid_serial(0x136100000001) is True
    assert HMT4CH.is_valid_serial(0x138200000001) is False
    assert HMT6CH.is_valid_serial(0x138200000001) is True
    assert HMT6CH.is_valid_serial(0x136100000001) is False


def test_type_names():
    assert HMT4CH(None, 0x136100000001).type_name() == "HMT-1600/1800/2000-4T"
    assert HMT6CH(None, 0x138200000001).type_name() == "HMT-1800/2250-6T"


@pytest.mark.parametrize("cls, count", [(HMT4CH, 4), (HMT6CH, 6)])
def test_dc_channel_count(cls, count):
    inv = cls(None, 0x136100000001)
    inv.init()
    channels = [int(c) for c in inv.statistics.channels_by_type(ChannelType.DC)]
    assert channels == list(range(count))


@pytest.mark.parametrize("pair", [(0, 1), (2, 3)])
def test_input_pairs_share_voltage(pair):
    inv = HMT4CH(None, 0x136100000001)
    inv.init()
    stats = inv.statistics
    first, second = pair
    stats.set_channel_field_value(ChannelType.DC, first, FieldId.UDC, 42.3)
    assert stats.get_channel_field_value(ChannelType.DC, second, FieldId.UDC) == pytest.approx(42.3)


def test_hmt6ch_fifth_and_sixth_share_voltage():
    inv = HMT6CH(None, 0x138200000001)
    inv.init()
    stats = inv.statistics
    stats.set_channel_field_value(ChannelType.DC, 4, FieldId.UDC, 37.1)
    assert stats.get_channel_field_value(ChannelType.DC, 5, FieldId.UDC) == pytest.approx(37.1)


def test_single_phase_voltage_mirrors_line_voltage():
    inv = HMT4CH(None, 0x136100000001)
    inv.init()
    stats = inv.statistics
    stats.set_channel_field_value(ChannelType.AC, 0, FieldId.UAC_12, 401.2)
    assert stats.get_channel_field_value(ChannelType.AC, 0, FieldId.UAC) == pytest.approx(401.2)


def test_phase_one_current_mirrors_current():
    inv = HMT6CH(None, 0x138200000001)
    inv.init()
    stats = inv.statistics
    stats.set_channel_field_value(ChannelType.AC, 0, FieldId.IAC_1, 3.25)
    assert stats.get_channel_field_value(ChannelType.AC, 0, FieldId.IAC) == pytest.approx(3.25)


def test_phase_field_names():
    inv = HMT4CH(None, 0x136100000001)
    inv.init()
    stats = inv.statistics
    assert stats.get_channel_field_name(ChannelType.AC, 0, FieldId.UAC_1N) == "Voltage Ph1-N"
    assert stats.get_channel_field_name(ChannelType.AC, 0, FieldId.IAC_3) == "Current Ph3"


def test_reactive_power_is_signed():
    inv = HMT4CH(None, 0x136100000001)
    inv.init()
    stats = inv.statistics
    stats.set_channel_field_value(ChannelType.AC, 0, FieldId.Q, -7.5)
    assert stats.get_channel_field_value(ChannelType.AC, 0, FieldId.Q) == pytest.approx(-7.5)


def test_alarm_texts_use_hmt_variant():
    inv = HMT4CH(None, 0x136100000001)
    inv.init()
    assert inv.event_log.message_type is AlarmMessageType.HMT
    inv.event_log.append_fragment(0, bytes([0, 0, 0x00, 215]) + bytes(10))
    assert inv.event_log.get_log_entry(0).message == "MPPT-C: Input overvoltage"


def test_hmt_only_alarm_code():
    inv = HMT6CH(None, 0x138200000001)
    inv.init()
    inv.event_log.append_fragment(0, bytes([0, 0, 0x00, 171]) + bytes(10))
    assert (
        inv.event_log.get_log_entry(0).message
        == "Grid: Abnormal phase difference between phase to phase"
    )


def test_ac_yield_total_sums_inputs():
    inv = HMT4CH(None, 0x136100000001)
    inv.init()
    stats = inv.statistics
    for channel in range(4):
        stats.set_channel_field_value(ChannelType.DC, channel, FieldId.YT, 2.0)
    assert stats.get_channel_field_value(ChannelType.AC, 0, FieldId.YT) == pytest.approx(2.0 * 4)