# dtulink

`dtulink` is a pure-Python library for the data side of talking to Hoymiles
HM-series micro inverters (HM-300 up to HM-1500). It builds the request frames,
reassembles and checks the fragmented answers, and decodes them. It has no
dependencies outside the standard library.

## What is in it

- **Checksums**: `dtulink.crc` provides `crc8`, `crc16` (Modbus, with a start
  value for chaining) and `crc16_nrf24`.
- **Fragments**: `dtulink.fragment.Fragment` holds one radio payload of at
  most 32 bytes. `Fragment.has_valid_crc()` checks its closing CRC-8.
  `serial_to_bytes` gives the little-endian bytes of a 64 bit serial.
- **Commands**:
  - `dtulink.commands` holds the base `Command` and the frame types
    `SingleDataCommand`, `RequestFrameCommand`, `MultiDataCommand`,
    `DevControlCommand` and `ParaSetCommand`.
  - `dtulink.data_commands` has `RealTimeRunDataCommand`,
    `DevInfoAllCommand`, `DevInfoSimpleCommand`, `AlarmDataCommand` and
    `SystemConfigParaCommand`.
  - `dtulink.control_commands` has `ActivePowerControlCommand` (with
    `PowerLimitControlType`) and `PowerControlCommand`, which turns the
    inverter on or off or restarts it.
  - `data_payload()` returns the bytes to send, with the CRC-8 appended.
    `dump()` returns the same bytes as hex.
- **Parsers**: these decode the inverter's answers.
  - `dtulink.statistics.StatisticsParser` reads voltages, currents, power,
    yields, temperature, efficiency and irradiation. A field can carry an
    offset.
  - `dtulink.devinfo.DevInfoParser` reads firmware and hardware versions, the
    model name and the nominal power.
  - `dtulink.alarm_log.AlarmLogParser` decodes event log entries into
    `AlarmLogEntry` objects. `alarm_message` maps an alarm code to its text.
  - `dtulink.system_config.SystemConfigParaParser` holds the current power
    limit.
  - `dtulink.parser.PowerCommandParser` tracks the outcome of power commands.
  - A fragment that does not fit a buffer raises `BufferOverflowError`.
- **Models**: `dtulink.models.model_for_serial` returns the `InverterModel`
  (`HM_1CH`, `HM_2CH` or `HM_4CH`) a serial number belongs to, with its
  payload layout. It returns `None` if the serial matches no model.
- **Inverter**: `dtulink.inverter.Inverter` joins a serial, a model and the
  parsers.
  - `add_rx_fragment()` stores raw packets. `verify_all_fragments()` then
    returns `VerifyResult.OK`, another `VerifyResult`, or the number of a
    fragment to request again.
  - The `send_*_request` methods queue commands on any object that has an
    `enqueue_command(command_cls)` method returning the new command.
  - Requests that carry a time are refused until the wall clock is past 2016.
- **Helpers**:
  - `dtulink.topic.topic_matches_sub` matches MQTT wildcard filters and raises
    `InvalidTopicError` on malformed input. `SubscribeParser` dispatches
    messages to the matching callbacks.
  - `dtulink.timing` provides `millis`, `TimeoutHelper` and the
    `EveryNMillis` / `EveryNSeconds` / `EveryNBSeconds` / `EveryNMinutes` /
    `EveryNHours` triggers. Each takes an injectable clock.
  - `dtulink.reset_reason` maps chip reset codes to text.

## Installation

```
pip install dtulink
```

For running the test suite:

```
pip install "dtulink[test]"
pytest
```

## Example

```python
from dtulink.crc import crc16
from dtulink.inverter import Inverter
from dtulink.models import model_for_serial
from dtulink.topic import topic_matches_sub

serial = 0x116180000001  # a made-up four-input serial
model = model_for_serial(serial)
print(model.name)  # HM_4CH


class CommandQueue:
    def __init__(self):
        self.commands = []

    def enqueue_command(self, command_cls):
        command = command_cls()
        self.commands.append(command)
        return command


queue = CommandQueue()
inverter = Inverter(serial, model)
inverter.name = "Roof"
inverter.send_power_control_request(queue, False)
print(queue.commands[0].dump())

print(topic_matches_sub("solar/+/cmd/power", "solar/116180000001/cmd/power"))  # True
print(hex(crc16(b"\x0b\x00")))
```

## What it does not do

The package has no radio driver. It does not transmit or receive anything.
Moving the bytes from `data_payload()` to the air, and feeding received packets
to `Inverter.add_rx_fragment()`, is up to the caller.

It also has none of the following:

- a scheduler that polls the inverters in turn
- an MQTT client
- a command-line program
- any storage for configuration