"""Commands that change an inverter's power limit or power state."""

import enum
from typing import Any, Sequence

from .commands import DevControlCommand
from .fragment import Fragment
from .parser import LastCommandSuccess

_LIMIT_CRC_SIZE = 6
_POWER_CRC_SIZE = 2


class PowerLimitControlType(enum.IntEnum):
    """How a power limit is expressed and whether it survives a restart."""

    ABSOLUT_NON_PERSISTENT = 0x0000
    RELATIV_NON_PERSISTENT = 0x0001
    ABSOLUT_PERSISTENT = 0x0100
    RELATIV_PERSISTENT = 0x0101

    @property
    def is_relative(self) -> bool:
        """Whether the limit is given in percent."""
        return self in (
            PowerLimitControlType.RELATIV_NON_PERSISTENT,
            PowerLimitControlType.RELATIV_PERSISTENT,
        )


class ActivePowerControlCommand(DevControlCommand):
    """Sets the active power limit of an inverter."""

    name = "ActivePowerControl"

    def __init__(self, target_address: int = 0, router_address: int = 0) -> None:
        super().__init__(target_address, router_address)
        self._payload[10] = 0x0B
        self._payload[11:16] = bytes(5)
        self._update_crc(_LIMIT_CRC_SIZE)
        self.payload_size = 18
        self.timeout = 2000

    def set_active_power_limit(
        self,
        limit: float,
        limit_type: PowerLimitControlType = PowerLimitControlType.RELATIV_NON_PERSISTENT,
    ) -> None:
        """Encode ``limit`` (watts or percent) and its type into the payload."""
        raw = int(limit * 10) & 0xFFFF
        self._payload[12:14] = raw.to_bytes(2, "big")
        self._payload[14:16] = (int(limit_type) & 0xFFFF).to_bytes(2, "big")
        self._update_crc(_LIMIT_CRC_SIZE)

    @property
    def limit(self) -> float:
        """The encoded limit, in whole units."""
        raw = int.from_bytes(self._payload[12:14], "big")
        return float(raw // 10)

    @property
    def limit_type(self) -> PowerLimitControlType:
        """The encoded limit type."""
        return PowerLimitControlType(int.from_bytes(self._payload[14:16], "big"))

    def handle_response(self, inverter: Any, fragments: Sequence[Fragment]) -> bool:
        if not super().handle_response(inverter, fragments):
            return False
        config = inverter.system_config_para
        if self.limit_type.is_relative:
            config.limit_percent = self.limit
        else:
            max_power = inverter.dev_info.max_power
            if max_power > 0:
                config.limit_percent = self.limit / max_power * 100
        config.last_update_command = self.clock()
        config.last_limit_command_success = LastCommandSuccess.OK
        return True

    def got_timeout(self, inverter: Any) -> None:
        inverter.system_config_para.last_limit_command_success = LastCommandSuccess.NOK


class PowerControlCommand(DevControlCommand):
    """Turns an inverter on or off, or restarts it."""

    name = "PowerControl"

    def __init__(self, target_address: int = 0, router_address: int = 0) -> None:
        super().__init__(target_address, router_address)
        self._payload[10] = 0x00  # turn on
        self._payload[11] = 0x00
        self._update_crc(_POWER_CRC_SIZE)
        self.payload_size = 14
        self.timeout = 2000

    def set_power_on(self, state: bool) -> None:
        """Request the inverter to turn on (True) or off (False)."""
        self._payload[10] = 0x00 if state else 0x01
        self._update_crc(_POWER_CRC_SIZE)

    def set_restart(self) -> None:
        """Request the inverter to restart."""
        self._payload[10] = 0x02
        self._update_crc(_POWER_CRC_SIZE)

    def handle_response(self, inverter: Any, fragments: Sequence[Fragment]) -> bool:
        if not super().handle_response(inverter, fragments):
            return False
        power = inverter.power_command
        power.last_update_command = self.clock()
        power.last_power_command_success = LastCommandSuccess.OK
        return True

    def got_timeout(self, inverter: Any) -> None:
        inverter.power_command.last_power_command_success = LastCommandSuccess.NOK