"""Parser for the inverter alarm (event) log."""

import time
from dataclasses import dataclass
from typing import List, Optional

from .parser import BufferOverflowError, LastCommandSuccess, Parser

ALARM_LOG_ENTRY_COUNT = 15
ALARM_LOG_ENTRY_SIZE = 12
ALARM_LOG_PAYLOAD_SIZE = ALARM_LOG_ENTRY_COUNT * ALARM_LOG_ENTRY_SIZE + 4

_HALF_DAY = 12 * 60 * 60

_MESSAGES = {
    1: "Inverter start",
    2: "DTU command failed",
    121: "Over temperature protection",
    124: "Shut down by remote control",
    125: "Grid configuration parameter error",
    126: "Software error code 126",
    127: "Firmware error",
    128: "Software error code 128",
    129: "Abnormal bias",
    130: "Offline",
    141: "Grid: Grid overvoltage",
    142: "Grid: 10 min value grid overvoltage",
    143: "Grid: Grid undervoltage",
    144: "Grid: Grid overfrequency",
    145: "Grid: Grid underfrequency",
    146: "Grid: Rapid grid frequency change rate",
    147: "Grid: Power grid outage",
    148: "Grid: Grid disconnection",
    149: "Grid: Island detected",
    205: "MPPT-A: Input overvoltage",
    206: "MPPT-B: Input overvoltage",
    207: "MPPT-A: Input undervoltage",
    208: "MPPT-B: Input undervoltage",
    209: "PV-1: No input",
    210: "PV-2: No input",
    211: "PV-3: No input",
    212: "PV-4: No input",
    213: "MPPT-A: PV-1 & PV-2 abnormal wiring",
    214: "MPPT-B: PV-3 & PV-4 abnormal wiring",
    215: "PV-1: Input overvoltage",
    216: "PV-1: Input undervoltage",
    217: "PV-2: Input overvoltage",
    218: "PV-2: Input undervoltage",
    219: "PV-3: Input overvoltage",
    220: "PV-3: Input undervoltage",
    221: "PV-4: Input overvoltage",
    222: "PV-4: Input undervoltage",
    **{code: f"Hardware error code {code}" for code in range(301, 315)},
    5041: "Error code-04 Port 1",
    5042: "Error code-04 Port 2",
    5043: "Error code-04 Port 3",
    5044: "Error code-04 Port 4",
    5051: "PV Input 1 Overvoltage/Undervoltage",
    5052: "PV Input 2 Overvoltage/Undervoltage",
    5053: "PV Input 3 Overvoltage/Undervoltage",
    5054: "PV Input 4 Overvoltage/Undervoltage",
    5060: "Abnormal bias",
    5070: "Over temperature protection",
    5080: "Grid Overvoltage/Undervoltage",
    5090: "Grid Overfrequency/Underfrequency",
    5100: "Island detected",
    5120: "EEPROM reading and writing error",
    5150: "10 min value grid overvoltage",
    5200: "Firmware error",
    8310: "Shut down",
    9000: "Microinverter is suspected of being stolen",
}


def alarm_message(message_id: int) -> str:
    """The text for an alarm code, or ``"Unknown"``."""
    return _MESSAGES.get(message_id, "Unknown")


def local_timezone_offset() -> int:
    """Seconds the local time zone is ahead of UTC right now."""
    now = int(time.time())
    utc = time.gmtime(now)
    as_local = time.mktime(tuple(utc[:8]) + (-1,))
    return int(now - as_local)


@dataclass(frozen=True)
class AlarmLogEntry:
    """One decoded alarm log entry; times are seconds of the day plus offset."""

    message_id: int
    message: str
    start_time: int
    end_time: int


class AlarmLogParser(Parser):
    """Holds the alarm log response and decodes its entries."""

    def __init__(self) -> None:
        super().__init__()
        self._payload = bytearray(ALARM_LOG_PAYLOAD_SIZE)
        self.payload_length = 0
        # NOK: fetch the log at start-up.
        self.last_alarm_request_success = LastCommandSuccess.NOK

    def clear_buffer(self) -> None:
        """Zero the payload buffer."""
        self._payload[:] = bytes(ALARM_LOG_PAYLOAD_SIZE)
        self.payload_length = 0

    def append_fragment(self, offset: int, payload: bytes) -> None:
        """Copy ``payload`` into the buffer at ``offset``."""
        data = bytes(payload)
        end = offset + len(data)
        if offset < 0 or end > ALARM_LOG_PAYLOAD_SIZE:
            raise BufferOverflowError(
                f"alarm log packet too large for buffer "
                f"({end} > {ALARM_LOG_PAYLOAD_SIZE})"
            )
        self._payload[offset:end] = data
        self.payload_length += len(data)

    @property
    def entry_count(self) -> int:
        """Number of complete entries in the buffer."""
        return max(0, (self.payload_length - 2) // ALARM_LOG_ENTRY_SIZE)

    def _u16(self, index: int) -> int:
        return (self._payload[index] << 8) | self._payload[index + 1]

    def log_entry(
        self, entry_id: int, timezone_offset: Optional[int] = None
    ) -> AlarmLogEntry:
        """Decode entry ``entry_id``; the offset defaults to the local zone's."""
        if not 0 <= entry_id < self.entry_count:
            raise IndexError(f"alarm log entry {entry_id} out of range")
        if timezone_offset is None:
            timezone_offset = local_timezone_offset()

        start = 2 + entry_id * ALARM_LOG_ENTRY_SIZE
        wcode = self._u16(start)
        start_offset = _HALF_DAY if (wcode >> 13) & 0x01 else 0
        end_offset = _HALF_DAY if (wcode >> 12) & 0x01 else 0

        message_id = self._payload[start + 1]
        start_time = self._u16(start + 4) + start_offset + timezone_offset
        end_time = self._u16(start + 6)
        if end_time > 0:
            end_time += end_offset + timezone_offset

        return AlarmLogEntry(
            message_id=message_id,
            message=alarm_message(message_id),
            start_time=start_time,
            end_time=end_time,
        )

    def entries(self, timezone_offset: Optional[int] = None) -> List[AlarmLogEntry]:
        """Decode every entry in the buffer, oldest first."""
        if timezone_offset is None:
            timezone_offset = local_timezone_offset()
        return [self.log_entry(i, timezone_offset) for i in range(self.entry_count)]