"""Parser for the device information responses (firmware and hardware)."""

from dataclasses import dataclass
from typing import Optional

from .parser import BufferOverflowError, Parser

DEV_INFO_SIZE = 20

_ALL = 0xFF
_CUMDAYS = (0, 31, 59, 90, 120, 151, 181, 212, 243, 273, 304, 334)


@dataclass(frozen=True)
class _DevInfo:
    hw_part: bytes
    max_power: int
    model_name: str


_DEV_INFO = (
    _DevInfo(bytes([0x10, 0x10, 0x10, _ALL]), 300, "HM-300"),
    _DevInfo(bytes([0x10, 0x10, 0x20, _ALL]), 350, "HM-350"),
    _DevInfo(bytes([0x10, 0x10, 0x30, _ALL]), 400, "HM-400"),
    _DevInfo(bytes([0x10, 0x10, 0x40, _ALL]), 400, "HM-400"),
    _DevInfo(bytes([0x10, 0x11, 0x10, _ALL]), 600, "HM-600"),
    _DevInfo(bytes([0x10, 0x11, 0x20, _ALL]), 700, "HM-700"),
    _DevInfo(bytes([0x10, 0x11, 0x30, _ALL]), 800, "HM-800"),
    _DevInfo(bytes([0x10, 0x11, 0x40, _ALL]), 800, "HM-800"),
    _DevInfo(bytes([0x10, 0x12, 0x10, _ALL]), 1200, "HM-1200"),
    _DevInfo(bytes([0x10, 0x02, 0x30, _ALL]), 1500, "MI-1500 Gen3"),
    _DevInfo(bytes([0x10, 0x12, 0x30, _ALL]), 1500, "HM-1500"),
    # HM-300 limited to 70% in the factory
    _DevInfo(bytes([0x10, 0x10, 0x10, 0x15]), int(300 * 0.7), "HM-300"),
)


def _is_leap(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def timegm(
    year: int, month: int, day: int, hour: int = 0, minute: int = 0, second: int = 0
) -> int:
    """Seconds since the Unix epoch for a UTC date; ``month`` counts from 1."""
    carry, mon = divmod(month - 1, 12)
    year += carry
    days = (year - 1970) * 365 + _CUMDAYS[mon]
    days += (year - 1968) // 4
    days -= (year - 1900) // 100
    days += (year - 1600) // 400
    if _is_leap(year) and mon < 2:
        days -= 1
    days += day - 1
    return ((days * 24 + hour) * 60 + minute) * 60 + second


def _append(buffer: bytearray, offset: int, payload: bytes, kind: str) -> int:
    data = bytes(payload)
    end = offset + len(data)
    if offset < 0 or end > DEV_INFO_SIZE:
        raise BufferOverflowError(
            f"dev info {kind} packet too large for buffer ({end} > {DEV_INFO_SIZE})"
        )
    buffer[offset:end] = data
    return len(data)


class DevInfoParser(Parser):
    """Holds the "all" and "simple" device information responses."""

    def __init__(self) -> None:
        super().__init__()
        self._all = bytearray(DEV_INFO_SIZE)
        self._simple = bytearray(DEV_INFO_SIZE)
        self.all_length = 0
        self.simple_length = 0
        self._last_update_all = 0
        self._last_update_simple = 0

    def clear_buffer_all(self) -> None:
        """Zero the "all" payload buffer."""
        self._all[:] = bytes(DEV_INFO_SIZE)
        self.all_length = 0

    def append_fragment_all(self, offset: int, payload: bytes) -> None:
        """Copy ``payload`` into the "all" buffer at ``offset``."""
        self.all_length += _append(self._all, offset, payload, "all")

    def clear_buffer_simple(self) -> None:
        """Zero the "simple" payload buffer."""
        self._simple[:] = bytes(DEV_INFO_SIZE)
        self.simple_length = 0

    def append_fragment_simple(self, offset: int, payload: bytes) -> None:
        """Copy ``payload`` into the "simple" buffer at ``offset``."""
        self.simple_length += _append(self._simple, offset, payload, "simple")

    @property
    def last_update_all(self) -> int:
        """Time the "all" response was last received."""
        return self._last_update_all

    @last_update_all.setter
    def last_update_all(self, value: int) -> None:
        self._last_update_all = value
        self.last_update = value

    @property
    def last_update_simple(self) -> int:
        """Time the "simple" response was last received."""
        return self._last_update_simple

    @last_update_simple.setter
    def last_update_simple(self, value: int) -> None:
        self._last_update_simple = value
        self.last_update = value

    def _all_u16(self, index: int) -> int:
        return (self._all[index] << 8) | self._all[index + 1]

    @property
    def fw_build_version(self) -> int:
        """Firmware build version number."""
        return self._all_u16(0)

    @property
    def fw_build_datetime(self) -> int:
        """Firmware build time in seconds since the Unix epoch (UTC)."""
        year = self._all_u16(2)
        month_day = self._all_u16(4)
        hour_minute = self._all_u16(6)
        return timegm(
            year,
            month_day // 100,
            month_day % 100,
            hour_minute // 100,
            hour_minute % 100,
        )

    @property
    def fw_bootloader_version(self) -> int:
        """Bootloader version number."""
        return self._all_u16(8)

    @property
    def hw_part_number(self) -> int:
        """Hardware part number as a 32 bit value."""
        return int.from_bytes(self._simple[2:6], "big")

    @property
    def hw_version(self) -> str:
        """Hardware version as ``MM.mm``."""
        return f"{self._simple[6]:02d}.{self._simple[7]:02d}"

    def _dev_info(self) -> Optional[_DevInfo]:
        part = bytes(self._simple[2:6])
        for info in _DEV_INFO:
            if info.hw_part == part:
                return info
        for info in _DEV_INFO:
            if info.hw_part[:3] == part[:3]:
                return info
        return None

    @property
    def max_power(self) -> int:
        """Nominal power in watts, or 0 for an unknown model."""
        info = self._dev_info()
        return info.max_power if info else 0

    @property
    def hw_model_name(self) -> str:
        """Model name, or an empty string for an unknown model."""
        info = self._dev_info()
        return info.model_name if info else ""