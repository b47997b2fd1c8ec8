"""Requests that fetch measurement and status data from an inverter."""

import logging
from typing import Any, Callable, Sequence

from .commands import MultiDataCommand
from .fragment import Fragment
from .parser import BufferOverflowError, LastCommandSuccess

_log = logging.getLogger(__name__)


def _copy_fragments(
    fragments: Sequence[Fragment], append: Callable[[int, bytes], None]
) -> None:
    offset = 0
    for fragment in fragments:
        try:
            append(offset, fragment.data)
        except BufferOverflowError as error:
            _log.error("%s", error)
        offset = (offset + len(fragment.data)) & 0xFF


class _DataRequest(MultiDataCommand):
    DATA_TYPE = 0x00
    TIMEOUT = 200

    def __init__(
        self, target_address: int = 0, router_address: int = 0, time: int = 0
    ) -> None:
        super().__init__(target_address, router_address, self.DATA_TYPE, time)
        self.timeout = self.TIMEOUT


class AlarmDataCommand(_DataRequest):
    """Fetches the alarm (event) log."""

    name = "AlarmData"
    DATA_TYPE = 0x11
    TIMEOUT = 600

    def handle_response(self, inverter: Any, fragments: Sequence[Fragment]) -> bool:
        if not super().handle_response(inverter, fragments):
            return False
        log = inverter.event_log
        log.clear_buffer()
        _copy_fragments(fragments, log.append_fragment)
        log.last_alarm_request_success = LastCommandSuccess.OK
        log.last_update = self.clock()
        return True

    def got_timeout(self, inverter: Any) -> None:
        inverter.event_log.last_alarm_request_success = LastCommandSuccess.NOK


class DevInfoAllCommand(_DataRequest):
    """Fetches the firmware information."""

    name = "DevInfoAll"
    DATA_TYPE = 0x01

    def handle_response(self, inverter: Any, fragments: Sequence[Fragment]) -> bool:
        if not super().handle_response(inverter, fragments):
            return False
        info = inverter.dev_info
        info.clear_buffer_all()
        _copy_fragments(fragments, info.append_fragment_all)
        info.last_update_all = self.clock()
        return True


class DevInfoSimpleCommand(_DataRequest):
    """Fetches the hardware information."""

    name = "DevInfoSimple"
    DATA_TYPE = 0x00

    def handle_response(self, inverter: Any, fragments: Sequence[Fragment]) -> bool:
        if not super().handle_response(inverter, fragments):
            return False
        info = inverter.dev_info
        info.clear_buffer_simple()
        _copy_fragments(fragments, info.append_fragment_simple)
        info.last_update_simple = self.clock()
        return True


class RealTimeRunDataCommand(_DataRequest):
    """Fetches the live measurements."""

    name = "RealTimeRunData"
    DATA_TYPE = 0x0B

    def handle_response(self, inverter: Any, fragments: Sequence[Fragment]) -> bool:
        if not super().handle_response(inverter, fragments):
            return False
        stats = inverter.statistics
        stats.clear_buffer()
        _copy_fragments(fragments, stats.append_fragment)
        stats.reset_rx_failure_count()
        stats.last_update = self.clock()
        return True

    def got_timeout(self, inverter: Any) -> None:
        inverter.statistics.increment_rx_failure_count()


class SystemConfigParaCommand(_DataRequest):
    """Fetches the system configuration, including the power limit."""

    name = "SystemConfigPara"
    DATA_TYPE = 0x05

    def handle_response(self, inverter: Any, fragments: Sequence[Fragment]) -> bool:
        if not super().handle_response(inverter, fragments):
            return False
        config = inverter.system_config_para
        config.clear_buffer()
        _copy_fragments(fragments, config.append_fragment)
        config.last_update_request = self.clock()
        config.last_limit_request_success = LastCommandSuccess.OK
        return True

    def got_timeout(self, inverter: Any) -> None:
        inverter.system_config_para.last_limit_request_success = LastCommandSuccess.NOK