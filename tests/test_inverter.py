import pytest

from dtulink.commands import RequestFrameCommand
from dtulink.control_commands import ActivePowerControlCommand, PowerLimitControlType
from dtulink.crc import crc8, crc16
from dtulink.data_commands import (
    AlarmDataCommand,
    DevInfoAllCommand,
    DevInfoSimpleCommand,
    RealTimeRunDataCommand,
)
from dtulink.inverter import Inverter, VerifyResult
from dtulink.models import HM_1CH
from dtulink.parser import LastCommandSuccess
from dtulink.statistics import ChannelType, FieldId

SERIAL = 0x112100000001
WALL_TIME = 1_700_000_000


class FakeRadio:
    def __init__(self):
        self.queue = []

    def enqueue_command(self, command_cls):
        command = command_cls()
        self.queue.append(command)
        return command


def frame(fragment_id, body, main_cmd=0x95):
    raw = bytes([main_cmd]) + bytes(8) + bytes([fragment_id]) + bytes(body)
    return raw + bytes([crc8(raw)])


def make_inverter():
    inverter = Inverter(SERIAL, HM_1CH, lambda: 777)
    inverter.wall_clock = lambda: WALL_TIME
    return inverter


def stats_response(pac_raw=1234):
    payload = bytearray(30)
    payload[18:20] = pac_raw.to_bytes(2, "big")
    whole = bytes(payload) + crc16(bytes(payload)).to_bytes(2, "big")
    return whole[:16], whole[16:]


def test_identity():
    inverter = make_inverter()
    assert inverter.serial == SERIAL
    assert inverter.serial_string == "112100000001"
    assert inverter.type_name == "HM-300, HM-350, HM-400"


def test_serial_string_high_part_not_padded():
    inverter = Inverter(0x0000000012345678, HM_1CH)
    assert inverter.serial_string == "012345678"


def test_name_is_truncated():
    inverter = make_inverter()
    inverter.name = "x" * 40
    assert inverter.name == "x" * 31
    inverter.name = "Roof"
    assert inverter.name == "Roof"


def test_complete_response_is_handled():
    inverter = make_inverter()
    first, second = stats_response()
    inverter.add_rx_fragment(frame(0x01, first))
    inverter.add_rx_fragment(frame(0x82, second))
    result = inverter.verify_all_fragments(RealTimeRunDataCommand())
    assert result == VerifyResult.OK
    stats = inverter.statistics
    assert stats.field_value(ChannelType.AC, 0, FieldId.PAC) == pytest.approx(123.4)
    assert inverter.is_producing() is True


def test_not_producing_when_polling_disabled():
    inverter = make_inverter()
    first, second = stats_response()
    inverter.add_rx_fragment(frame(0x01, first))
    inverter.add_rx_fragment(frame(0x82, second))
    inverter.verify_all_fragments(RealTimeRunDataCommand())
    inverter.enable_polling = False
    assert inverter.is_producing() is False
    assert inverter.is_reachable() is False


def test_all_missing_resend_then_timeout():
    inverter = make_inverter()
    command = RealTimeRunDataCommand()
    assert inverter.verify_all_fragments(command) == VerifyResult.ALL_MISSING_RESEND
    command.send_count = 5
    assert inverter.verify_all_fragments(command) == VerifyResult.ALL_MISSING_TIMEOUT
    assert inverter.statistics.rx_failure_count == 1


def test_last_missing_requests_next_fragment_until_limit():
    inverter = make_inverter()
    first, _ = stats_response()
    inverter.add_rx_fragment(frame(0x01, first))
    command = RealTimeRunDataCommand()
    results = [inverter.verify_all_fragments(command) for _ in range(6)]
    assert results[:5] == [2] * 5
    assert results[5] == VerifyResult.RETRANSMIT_TIMEOUT
    assert inverter.statistics.rx_failure_count == 1


def test_middle_missing_requests_that_fragment():
    inverter = make_inverter()
    _, second = stats_response()
    inverter.add_rx_fragment(frame(0x82, second))
    assert inverter.verify_all_fragments(RealTimeRunDataCommand()) == 1


def test_bad_crc_is_handle_error():
    inverter = make_inverter()
    first, second = stats_response()
    inverter.add_rx_fragment(frame(0x01, first))
    inverter.add_rx_fragment(frame(0x82, second[:-1] + bytes([second[-1] ^ 0xFF])))
    result = inverter.verify_all_fragments(RealTimeRunDataCommand())
    assert result == VerifyResult.HANDLE_ERROR
    assert inverter.statistics.rx_failure_count == 1


def test_clear_buffer_forgets_fragments():
    inverter = make_inverter()
    first, second = stats_response()
    inverter.add_rx_fragment(frame(0x01, first))
    inverter.add_rx_fragment(frame(0x82, second))
    inverter.clear_rx_fragment_buffer()
    result = inverter.verify_all_fragments(RequestFrameCommand())
    assert result == VerifyResult.ALL_MISSING_RESEND


def test_short_fragment_rejected():
    inverter = make_inverter()
    with pytest.raises(ValueError):
        inverter.add_rx_fragment(bytes(10))


def test_fragment_number_zero_ignored():
    inverter = make_inverter()
    inverter.add_rx_fragment(frame(0x00, b"\x01\x02"))
    assert (
        inverter.verify_all_fragments(RequestFrameCommand())
        == VerifyResult.ALL_MISSING_RESEND
    )


def test_reachability_follows_failures():
    inverter = make_inverter()
    assert inverter.is_reachable() is True
    for _ in range(3):
        inverter.statistics.increment_rx_failure_count()
    assert inverter.is_reachable() is False


def test_stats_request_enqueued():
    inverter = make_inverter()
    radio = FakeRadio()
    assert inverter.send_stats_request(radio) is True
    (command,) = radio.queue
    assert isinstance(command, RealTimeRunDataCommand)
    assert command.target_address == SERIAL
    assert command.time == WALL_TIME
    assert command.clock() == 777


def test_requests_need_polling_and_valid_time():
    inverter = make_inverter()
    radio = FakeRadio()
    inverter.enable_polling = False
    assert inverter.send_stats_request(radio) is False
    inverter.enable_polling = True
    inverter.wall_clock = lambda: 0
    assert inverter.send_dev_info_request(radio) is False
    assert inverter.send_system_config_para_request(radio) is False
    assert radio.queue == []


def test_alarm_log_request_only_on_change_unless_forced():
    inverter = make_inverter()
    radio = FakeRadio()
    assert inverter.send_alarm_log_request(radio) is False
    assert inverter.send_alarm_log_request(radio, force=True) is True
    assert isinstance(radio.queue[0], AlarmDataCommand)
    assert inverter.event_log.last_alarm_request_success is LastCommandSuccess.PENDING


def test_dev_info_request_enqueues_both():
    inverter = make_inverter()
    radio = FakeRadio()
    assert inverter.send_dev_info_request(radio) is True
    assert [type(c) for c in radio.queue] == [DevInfoAllCommand, DevInfoSimpleCommand]
    assert all(c.target_address == SERIAL for c in radio.queue)


def test_system_config_request_marks_pending():
    inverter = make_inverter()
    radio = FakeRadio()
    assert inverter.send_system_config_para_request(radio) is True
    assert (
        inverter.system_config_para.last_limit_request_success
        is LastCommandSuccess.PENDING
    )


def test_relative_limit_is_capped_and_resent():
    inverter = make_inverter()
    radio = FakeRadio()
    assert inverter.send_active_power_control_request(
        radio, 150, PowerLimitControlType.RELATIV_PERSISTENT
    )
    assert inverter.resend_active_power_control_request(radio) is True
    first, second = radio.queue
    assert isinstance(first, ActivePowerControlCommand)
    assert first.limit == 100.0
    assert second.limit == first.limit
    assert second.limit_type is PowerLimitControlType.RELATIV_PERSISTENT
    assert (
        inverter.system_config_para.last_limit_command_success
        is LastCommandSuccess.PENDING
    )


def test_absolute_limit_not_capped():
    inverter = make_inverter()
    radio = FakeRadio()
    inverter.send_active_power_control_request(
        radio, 250, PowerLimitControlType.ABSOLUT_NON_PERSISTENT
    )
    assert radio.queue[0].limit == 250.0


def test_commands_disabled():
    inverter = make_inverter()
    radio = FakeRadio()
    inverter.enable_commands = False
    assert inverter.send_power_control_request(radio, True) is False
    assert inverter.send_restart_control_request(radio) is False
    assert (
        inverter.send_active_power_control_request(
            radio, 50, PowerLimitControlType.RELATIV_NON_PERSISTENT
        )
        is False
    )
    assert radio.queue == []


def test_power_off_resend():
    inverter = make_inverter()
    radio = FakeRadio()
    assert inverter.send_power_control_request(radio, False) is True
    assert inverter.resend_power_control_request(radio) is True
    assert [c.data_payload()[10] for c in radio.queue] == [0x01, 0x01]
    assert inverter.power_command.last_power_command_success is LastCommandSuccess.PENDING


def test_restart_resend():
    inverter = make_inverter()
    radio = FakeRadio()
    inverter.send_restart_control_request(radio)
    inverter.resend_power_control_request(radio)
    assert [c.data_payload()[10] for c in radio.queue] == [0x02, 0x02]


def test_default_resend_turns_on():
    inverter = make_inverter()
    radio = FakeRadio()
    assert inverter.resend_power_control_request(radio) is True
    assert radio.queue[0].data_payload()[10] == 0x00