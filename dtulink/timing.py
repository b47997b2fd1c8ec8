"""Millisecond clock, timeouts and "every N periods" triggers."""

import time
from typing import Callable

Clock = Callable[[], int]

_START = time.monotonic()
_U32 = 0xFFFFFFFF


def millis() -> int:
    """Milliseconds since start-up as an unsigned 32 bit value."""
    return int((time.monotonic() - _START) * 1000) & _U32


def _millis32(clock: Clock = millis) -> int:
    return clock() & _U32


def seconds16(clock: Clock = millis) -> int:
    """Seconds since start-up, truncated to 16 bits."""
    return (_millis32(clock) // 1000) & 0xFFFF


def minutes16(clock: Clock = millis) -> int:
    """Minutes since start-up, truncated to 16 bits."""
    return (_millis32(clock) // 60000) & 0xFFFF


def hours8(clock: Clock = millis) -> int:
    """Hours since start-up, truncated to 8 bits."""
    return (_millis32(clock) // 3600000) & 0xFF


def div1024_32_16(value: int) -> int:
    """Divide a 32 bit value by 1024, keeping the low 16 bits."""
    return (value >> 10) & 0xFFFF


def bseconds16(clock: Clock = millis) -> int:
    """Binary seconds (1024 ms each) since start-up, truncated to 16 bits."""
    return div1024_32_16(_millis32(clock))


class TimeoutHelper:
    """A deadline measured on a millisecond clock."""

    def __init__(self, clock: Clock = millis) -> None:
        self._clock = clock
        self._start = 0
        self._timeout = 0

    def set(self, ms: int) -> None:
        """Start a new timeout of ``ms`` milliseconds from now."""
        self._timeout = ms & _U32
        self._start = self._clock() & _U32

    def extend(self, ms: int) -> None:
        """Push the current deadline back by ``ms`` milliseconds."""
        self._timeout = (self._timeout + ms) & _U32

    def occurred(self) -> bool:
        """Whether the deadline has passed."""
        return (self._clock() & _U32) > ((self._start + self._timeout) & _U32)


class EveryN:
    """Fires once each time ``period`` units have elapsed; counts milliseconds."""

    _bits = 32
    _read = staticmethod(_millis32)

    def __init__(self, period: int = 1, clock: Clock = millis) -> None:
        self._clock = clock
        self._mask = (1 << self._bits) - 1
        self.period = period & self._mask
        self.prev_trigger = 0
        self.reset()

    def now(self) -> int:
        """The current time in this trigger's units."""
        return self._read(self._clock) & self._mask

    def elapsed(self) -> int:
        """Units elapsed since the last trigger."""
        return (self.now() - self.prev_trigger) & self._mask

    def remaining(self) -> int:
        """Units left until the next trigger."""
        return (self.period - self.elapsed()) & self._mask

    def ready(self) -> bool:
        """Return True and restart the period if it has elapsed."""
        is_ready = self.elapsed() >= self.period
        if is_ready:
            self.reset()
        return is_ready

    def reset(self) -> None:
        """Start the period afresh from now."""
        self.prev_trigger = self.now()

    def trigger(self) -> None:
        """Make the next call to :meth:`ready` fire."""
        self.prev_trigger = (self.now() - self.period) & self._mask

    def __bool__(self) -> bool:
        return self.ready()


class EveryNMillis(EveryN):
    """Fires every N milliseconds."""


class EveryNSeconds(EveryN):
    """Fires every N seconds."""

    _bits = 16
    _read = staticmethod(seconds16)


class EveryNBSeconds(EveryN):
    """Fires every N binary seconds of 1024 ms."""

    _bits = 16
    _read = staticmethod(bseconds16)


class EveryNMinutes(EveryN):
    """Fires every N minutes."""

    _bits = 16
    _read = staticmethod(minutes16)


class EveryNHours(EveryN):
    """Fires every N hours."""

    _bits = 8
    _read = staticmethod(hours8)