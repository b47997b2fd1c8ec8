"""State shared by the inverter response parsers."""

import enum


class LastCommandSuccess(enum.Enum):
    """Outcome of the most recent request or command sent to an inverter."""

    OK = 0
    NOK = 1
    PENDING = 2


class BufferOverflowError(ValueError):
    """A fragment does not fit into a parser's payload buffer."""


class Parser:
    """Remembers when the parser last received data, in milliseconds."""

    def __init__(self) -> None:
        self.last_update = 0


class PowerCommandParser(Parser):
    """Tracks the outcome of power on/off and restart commands."""

    def __init__(self) -> None:
        super().__init__()
        # Assume nothing is pending at start-up.
        self.last_power_command_success = LastCommandSuccess.OK
        self._last_update_command = 0

    @property
    def last_update_command(self) -> int:
        """Time of the last acknowledged power command."""
        return self._last_update_command

    @last_update_command.setter
    def last_update_command(self, value: int) -> None:
        self._last_update_command = value
        self.last_update = value