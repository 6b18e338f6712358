# dtukit

Pure-Python building blocks for working with data from Hoymiles
micro-inverters (HM, HMS and HMT series): decoders for the payloads an
inverter sends, the inverter models with their byte layouts and serial
number checks, and a few small helpers. It has no dependencies outside
the standard library.

## Installation

```
pip install dtukit
```

To run the test suite:

```
pip install "dtukit[test]"
pytest
```

## Modules

| Module | Contents |
| --- | --- |
| `dtukit.statistics` | `StatisticsParser` decodes real-time values (voltages, currents, power, yields, temperature) by a table of `ByteAssign` entries. Values can carry per-field offsets, and the daily yield can be corrected when the inverter resets its counter. Also `Parser`, `PowerCommandParser`, `LastCommandSuccess` and the enums `UnitId`, `FieldId`, `ChannelType`, `CalcFunction`. |
| `dtukit.alarmlog` | `AlarmLogParser` decodes the alarm log into `AlarmLogEntry` items, with messages in English, German or French (`AlarmMessageLocale`). `timezone_offset()` gives the local offset from UTC in seconds. |
| `dtukit.devinfo` | `DevInfoParser`: firmware build version, build time and bootloader version, hardware part number and version, detected model name and rated power. `timegm()` turns a UTC calendar time into epoch seconds. |
| `dtukit.sysconfig` | `SystemConfigParaParser`: the active power limit in percent (`limit_percent`) and the state of limit commands and requests. |
| `dtukit.gridprofile` | `GridProfileParser`: name and version of the grid profile and its sections of settings as `GridProfileSection` / `GridProfileItem`. |
| `dtukit.inverter` | `InverterAbstract`: serial number, name, polling and command flags, the parsers of one inverter, and reassembly of received radio fragments (`add_rx_fragment`, `missing_fragment_id`, `received_fragments`). |
| `dtukit.hm`, `dtukit.hms`, `dtukit.hmt` | The models `HM1CH`, `HM2CH`, `HM4CH`, `HMS1CH`, `HMS1CHv2`, `HMS2CH`, `HMS4CH`, `HMT4CH`, `HMT6CH`, each with `is_valid_serial()`, `type_name()` and `byte_assignment()`. |
| `dtukit.mqtt_topic` | `topic_matches_sub()` for MQTT wildcard matching (raises `InvalidTopicError` on malformed input) and `MqttSubscribeParser`, which runs the callbacks whose filters match an incoming topic. |
| `dtukit.timeout` | `TimeoutHelper`, a millisecond timeout with `set`, `extend`, `reset` and `occurred`. |
| `dtukit.reset_reason` | `reset_reason_verbose()` and `reset_reason_short()` name a reset reason code for a given `Chip`. |

Payload buffers have fixed sizes; `append_fragment` raises `ValueError`
when a fragment would not fit, and `add_rx_fragment` raises `ValueError`
for a packet that is too short, too long or carries an invalid fragment
id. `StatisticsParser` and `TimeoutHelper` accept a `clock` callable and
`AlarmLogParser` a `timezone` callable, so time can be controlled in tests.

## Example

```python
from dtukit.hm import HM2CH
from dtukit.statistics import ChannelType, FieldId

assert HM2CH.is_valid_serial(0x114100000001)

inverter = HM2CH(None, 0x114100000001)
inverter.init()

stats = inverter.statistics
stats.append_fragment(0, bytes(42))
print(stats.get_channel_field_value(ChannelType.AC, 0, FieldId.PAC))  # 0.0
print(stats.get_channel_field_unit(ChannelType.AC, 0, FieldId.PAC))   # W
```

Matching MQTT topics:

```python
from dtukit.mqtt_topic import topic_matches_sub

topic_matches_sub("solar/+/power", "solar/roof/power")   # True
topic_matches_sub("solar/#", "solar")                     # True
```

## What it does not do

The package only decodes and holds data. It does not drive a radio, does
not build or send requests or commands to inverters (power limits, on/off,
restart, data requests), and contains no MQTT client, web interface,
configuration storage or command-line program. The `radio` passed to an
inverter model is stored as given and not used by the package.