"""An inverter: identity, parsers, fragment reassembly and request sending."""

import enum
import logging
import time
from typing import Any, Callable, List, Optional, Union

from .alarm_log import AlarmLogParser
from .commands import Command
from .control_commands import (
    ActivePowerControlCommand,
    PowerControlCommand,
    PowerLimitControlType,
)
from .data_commands import (
    AlarmDataCommand,
    DevInfoAllCommand,
    DevInfoSimpleCommand,
    RealTimeRunDataCommand,
    SystemConfigParaCommand,
)
from .devinfo import DevInfoParser
from .fragment import MAX_RF_PAYLOAD_SIZE, Fragment
from .models import InverterModel
from .parser import LastCommandSuccess, PowerCommandParser
from .statistics import ChannelType, FieldId, StatisticsParser
from .system_config import SystemConfigParaParser
from .timing import Clock, millis

_log = logging.getLogger(__name__)

MAX_NAME_LENGTH = 32
MAX_RF_FRAGMENT_COUNT = 13
MAX_RETRANSMIT_COUNT = 5
MAX_RESEND_COUNT = 4
MAX_ONLINE_FAILURE_COUNT = 2

_POWER_OFF, _POWER_ON, _RESTART = 0, 1, 2


class VerifyResult(enum.IntEnum):
    """Outcome codes of fragment verification other than a retransmit request."""

    ALL_MISSING_RESEND = 255
    ALL_MISSING_TIMEOUT = 254
    RETRANSMIT_TIMEOUT = 253
    HANDLE_ERROR = 252
    OK = 0


class Inverter:
    """One HM inverter reachable over the radio link."""

    def __init__(self, serial: int, model: InverterModel, clock: Clock = millis) -> None:
        self.serial = serial
        self.model = model
        self.clock = clock
        self.wall_clock: Callable[[], float] = time.time
        self.serial_string = (
            f"{(serial >> 32) & 0xFFFFFFFF:x}{serial & 0xFFFFFFFF:08x}"
        )
        self._name = ""
        self.enable_polling = True
        self.enable_commands = True

        self.event_log = AlarmLogParser()
        self.dev_info = DevInfoParser()
        self.power_command = PowerCommandParser()
        self.statistics = StatisticsParser(model.byte_assignment)
        self.system_config_para = SystemConfigParaParser()

        self._last_alarm_log_count = 0
        self._active_power_control_limit = 0.0
        self._active_power_control_type = PowerLimitControlType.ABSOLUT_NON_PERSISTENT
        self._power_state = _POWER_ON

        self._rx_buffer: List[Fragment] = []
        self._rx_max_packet_id = 0
        self._rx_last_packet_id = 0
        self._rx_retransmit_count = 0
        self.clear_rx_fragment_buffer()

    @property
    def name(self) -> str:
        """The user-given name, at most 31 bytes long."""
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        encoded = value.encode("utf-8")[: MAX_NAME_LENGTH - 1]
        self._name = encoded.decode("utf-8", errors="ignore")

    @property
    def type_name(self) -> str:
        """The models covered by this inverter's family."""
        return self.model.type_name

    def is_producing(self) -> bool:
        """Whether the inverter is polled and feeds power into the grid."""
        stats = self.statistics
        total_ac = sum(
            stats.field_value(ChannelType.AC, channel, FieldId.PAC)
            for channel in stats.channels_by_type(ChannelType.AC)
            if stats.has_field(ChannelType.AC, channel, FieldId.PAC)
        )
        return self.enable_polling and total_ac > 0

    def is_reachable(self) -> bool:
        """Whether the inverter is polled and answered recently enough."""
        return (
            self.enable_polling
            and self.statistics.rx_failure_count <= MAX_ONLINE_FAILURE_COUNT
        )

    def clear_rx_fragment_buffer(self) -> None:
        """Forget all received fragments before a new request."""
        self._rx_buffer = [Fragment() for _ in range(MAX_RF_FRAGMENT_COUNT)]
        self._rx_max_packet_id = 0
        self._rx_last_packet_id = 0
        self._rx_retransmit_count = 0

    def add_rx_fragment(self, data: bytes) -> None:
        """Store one received radio packet, including its header and CRC-8."""
        data = bytes(data)
        if len(data) < 11:
            raise ValueError(f"fragment too short: {len(data)} bytes")
        if len(data) - 11 > MAX_RF_PAYLOAD_SIZE:
            raise ValueError(f"fragment too large: {len(data)} bytes")

        fragment_count = data[9]
        if fragment_count == 0:
            _log.warning("fragment number zero received and ignored")
            return

        index = fragment_count & 0x7F
        if 0 < index < MAX_RF_FRAGMENT_COUNT:
            self._rx_buffer[index - 1] = Fragment(
                data[10:-1], main_cmd=data[0], was_received=True
            )
            self._rx_last_packet_id = max(self._rx_last_packet_id, index)

        if fragment_count & 0x80:
            self._rx_max_packet_id = index

    def _retransmit(self, fragment_id: int, command: Command) -> int:
        count = self._rx_retransmit_count
        self._rx_retransmit_count = (count + 1) & 0xFF
        if count < MAX_RETRANSMIT_COUNT:
            return fragment_id
        command.got_timeout(self)
        return VerifyResult.RETRANSMIT_TIMEOUT

    def verify_all_fragments(self, command: Command) -> Union[VerifyResult, int]:
        """Check the received fragments against ``command``.

        Returns VerifyResult.OK when the response was handled, another
        VerifyResult on failure, or the id of a fragment to request again.
        """
        if self._rx_last_packet_id == 0:
            _log.info("All missing")
            if command.send_count <= MAX_RESEND_COUNT:
                return VerifyResult.ALL_MISSING_RESEND
            command.got_timeout(self)
            return VerifyResult.ALL_MISSING_TIMEOUT

        if self._rx_max_packet_id == 0:
            _log.info("Last missing")
            return self._retransmit(self._rx_last_packet_id + 1, command)

        for index in range(self._rx_max_packet_id - 1):
            received = index < len(self._rx_buffer) and self._rx_buffer[index].was_received
            if not received:
                _log.info("Middle missing")
                return self._retransmit(index + 1, command)

        if not command.handle_response(self, self._rx_buffer[: self._rx_max_packet_id]):
            command.got_timeout(self)
            return VerifyResult.HANDLE_ERROR

        return VerifyResult.OK

    def _local_now(self) -> Optional[int]:
        now = int(self.wall_clock())
        if time.localtime(now).tm_year <= 2016:
            return None
        return now

    def _enqueue(self, radio: Any, command_cls: type) -> Any:
        command = radio.enqueue_command(command_cls)
        command.target_address = self.serial
        command.clock = self.clock
        return command

    def _enqueue_timed(self, radio: Any, command_cls: type, now: int) -> Any:
        command = self._enqueue(radio, command_cls)
        command.time = now
        return command

    def send_stats_request(self, radio: Any) -> bool:
        """Queue a request for the live measurements."""
        if not self.enable_polling:
            return False
        now = self._local_now()
        if now is None:
            return False
        self._enqueue_timed(radio, RealTimeRunDataCommand, now)
        return True

    def send_alarm_log_request(self, radio: Any, force: bool = False) -> bool:
        """Queue a request for the alarm log if its entry count has changed."""
        if not self.enable_polling:
            return False
        now = self._local_now()
        if now is None:
            return False

        stats = self.statistics
        count = int(stats.field_value(ChannelType.INV, 0, FieldId.EVT_LOG)) & 0xFF
        if not force and stats.has_field(ChannelType.INV, 0, FieldId.EVT_LOG):
            if count == self._last_alarm_log_count:
                return False
        self._last_alarm_log_count = count

        self._enqueue_timed(radio, AlarmDataCommand, now)
        self.event_log.last_alarm_request_success = LastCommandSuccess.PENDING
        return True

    def send_dev_info_request(self, radio: Any) -> bool:
        """Queue requests for the firmware and hardware information."""
        if not self.enable_polling:
            return False
        now = self._local_now()
        if now is None:
            return False
        self._enqueue_timed(radio, DevInfoAllCommand, now)
        self._enqueue_timed(radio, DevInfoSimpleCommand, now)
        return True

    def send_system_config_para_request(self, radio: Any) -> bool:
        """Queue a request for the system configuration."""
        if not self.enable_polling:
            return False
        now = self._local_now()
        if now is None:
            return False
        self._enqueue_timed(radio, SystemConfigParaCommand, now)
        self.system_config_para.last_limit_request_success = LastCommandSuccess.PENDING
        return True

    def send_active_power_control_request(
        self, radio: Any, limit: float, limit_type: PowerLimitControlType
    ) -> bool:
        """Queue a power limit command; relative limits are capped at 100%."""
        if not self.enable_commands:
            return False
        limit_type = PowerLimitControlType(limit_type)
        if limit_type.is_relative:
            limit = min(100.0, limit)

        self._active_power_control_limit = limit
        self._active_power_control_type = limit_type

        command = self._enqueue(radio, ActivePowerControlCommand)
        command.set_active_power_limit(limit, limit_type)
        self.system_config_para.last_limit_command_success = LastCommandSuccess.PENDING
        return True

    def resend_active_power_control_request(self, radio: Any) -> bool:
        """Queue the last power limit command again."""
        return self.send_active_power_control_request(
            radio, self._active_power_control_limit, self._active_power_control_type
        )

    def send_power_control_request(self, radio: Any, turn_on: bool) -> bool:
        """Queue a command to turn the inverter on or off."""
        if not self.enable_commands:
            return False
        self._power_state = _POWER_ON if turn_on else _POWER_OFF
        command = self._enqueue(radio, PowerControlCommand)
        command.set_power_on(turn_on)
        self.power_command.last_power_command_success = LastCommandSuccess.PENDING
        return True

    def send_restart_control_request(self, radio: Any) -> bool:
        """Queue a command to restart the inverter."""
        if not self.enable_commands:
            return False
        self._power_state = _RESTART
        command = self._enqueue(radio, PowerControlCommand)
        command.set_restart()
        self.power_command.last_power_command_success = LastCommandSuccess.PENDING
        return True

    def resend_power_control_request(self, radio: Any) -> bool:
        """Queue the last power or restart command again."""
        if self._power_state == _POWER_OFF:
            return self.send_power_control_request(radio, False)
        if self._power_state == _POWER_ON:
            return self.send_power_control_request(radio, True)
        if self._power_state == _RESTART:
            return self.send_restart_control_request(radio)
        return False