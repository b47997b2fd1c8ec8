"""Parser for the system configuration parameters, notably the power limit."""

from .parser import BufferOverflowError, LastCommandSuccess, Parser

SYSTEM_CONFIG_PARA_SIZE = 16


class SystemConfigParaParser(Parser):
    """Holds the system configuration response and the limit command state."""

    def __init__(self) -> None:
        super().__init__()
        self._payload = bytearray(SYSTEM_CONFIG_PARA_SIZE)
        self.payload_length = 0
        # OK: assume no limit command is outstanding at start-up.
        self.last_limit_command_success = LastCommandSuccess.OK
        # NOK: fetch the limit at start-up.
        self.last_limit_request_success = LastCommandSuccess.NOK
        self._last_update_command = 0
        self._last_update_request = 0

    def clear_buffer(self) -> None:
        """Zero the payload buffer."""
        self._payload[:] = bytes(SYSTEM_CONFIG_PARA_SIZE)
        self.payload_length = 0

    def append_fragment(self, offset: int, payload: bytes) -> None:
        """Copy ``payload`` into the buffer at ``offset``."""
        data = bytes(payload)
        end = offset + len(data)
        if offset < 0 or end > SYSTEM_CONFIG_PARA_SIZE:
            raise BufferOverflowError(
                f"system config packet too large for buffer "
                f"({end} > {SYSTEM_CONFIG_PARA_SIZE})"
            )
        self._payload[offset:end] = data
        self.payload_length += len(data)

    @property
    def payload(self) -> bytes:
        """A copy of the raw payload buffer."""
        return bytes(self._payload)

    @property
    def limit_percent(self) -> float:
        """Active power limit in percent of the nominal power."""
        return ((self._payload[2] << 8) | self._payload[3]) / 10.0

    @limit_percent.setter
    def limit_percent(self, value: float) -> None:
        raw = int(value * 10) & 0xFFFF
        self._payload[2] = raw >> 8
        self._payload[3] = raw & 0xFF

    @property
    def last_update_command(self) -> int:
        """Time of the last acknowledged limit command."""
        return self._last_update_command

    @last_update_command.setter
    def last_update_command(self, value: int) -> None:
        self._last_update_command = value
        self.last_update = value

    @property
    def last_update_request(self) -> int:
        """Time of the last successful limit request."""
        return self._last_update_request

    @last_update_request.setter
    def last_update_request(self, value: int) -> None:
        self._last_update_request = value
        self.last_update = value