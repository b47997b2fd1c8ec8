"""Radio fragments and serial-number byte layout."""

from dataclasses import dataclass

from .crc import crc8

MAX_RF_PAYLOAD_SIZE = 32


def serial_to_bytes(serial: int) -> bytes:
    """Return the eight little-endian bytes of a 64 bit serial number."""
    if not 0 <= serial < 1 << 64:
        raise ValueError(f"serial out of range: {serial!r}")
    return serial.to_bytes(8, "little")


@dataclass
class Fragment:
    """One packet received from or sent to the radio."""

    data: bytes = b""
    main_cmd: int = 0
    channel: int = 0
    was_received: bool = False

    def __post_init__(self) -> None:
        self.data = bytes(self.data)
        if len(self.data) > MAX_RF_PAYLOAD_SIZE:
            raise ValueError(
                f"fragment longer than {MAX_RF_PAYLOAD_SIZE} bytes: {len(self.data)}"
            )

    def __len__(self) -> int:
        return len(self.data)

    def has_valid_crc(self) -> bool:
        """Whether the last byte is the CRC-8 of the bytes before it."""
        if not self.data:
            return False
        return crc8(self.data[:-1]) == self.data[-1]