"""Request frames sent to the inverters over the radio link."""

import abc
from typing import Any, Optional, Sequence

from .crc import crc8, crc16
from .fragment import Fragment
from .timing import millis

RF_LEN = 32

_U32 = 0xFFFFFFFF


class Command(abc.ABC):
    """A radio request: a payload buffer plus addressing and retry state.

    Bytes 1-4 of the payload carry the target address and bytes 5-8 the
    router address, both as the low 32 bits of the serial, big-endian.
    """

    def __init__(self, target_address: int = 0, router_address: int = 0) -> None:
        self._payload = bytearray(RF_LEN)
        self.payload_size = 0
        self._target_address = 0
        self._router_address = 0
        self.target_address = target_address
        self.router_address = router_address
        self.send_count = 0
        self.timeout = 0
        self.clock = millis

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """The command's name as it appears in logs."""

    def _pack_address(self, index: int, address: int) -> None:
        self._payload[index : index + 4] = (address & _U32).to_bytes(4, "big")

    @property
    def target_address(self) -> int:
        """Serial number of the inverter the command is sent to."""
        return self._target_address

    @target_address.setter
    def target_address(self, address: int) -> None:
        self._pack_address(1, address)
        self._target_address = address

    @property
    def router_address(self) -> int:
        """Serial number of the DTU sending the command."""
        return self._router_address

    @router_address.setter
    def router_address(self, address: int) -> None:
        self._pack_address(5, address)
        self._router_address = address

    @property
    def data_size(self) -> int:
        """Length on the wire: the payload plus its CRC-8."""
        return self.payload_size + 1

    def data_payload(self) -> bytes:
        """The bytes to transmit, terminated by their CRC-8."""
        body = bytes(self._payload[: self.payload_size])
        return body + bytes([crc8(body)])

    def dump(self) -> str:
        """The transmitted bytes as space-separated hex pairs."""
        return " ".join(f"{byte:02X}" for byte in self.data_payload())

    def increment_send_count(self) -> int:
        """Count one more transmission; returns the count before it."""
        previous = self.send_count
        self.send_count = (self.send_count + 1) & 0xFF
        return previous

    def request_frame_command(self, frame_no: int) -> Optional["Command"]:
        """The command that asks for one missing response frame, if any."""
        return None

    @abc.abstractmethod
    def handle_response(self, inverter: Any, fragments: Sequence[Fragment]) -> bool:
        """Process the complete response; False if it is unusable."""

    def got_timeout(self, inverter: Any) -> None:
        """Record that no usable response arrived."""


class SingleDataCommand(Command):
    """A request that fits into a single short frame."""

    def __init__(self, target_address: int = 0, router_address: int = 0) -> None:
        super().__init__(target_address, router_address)
        self._payload[0] = 0x15
        self.timeout = 100


class RequestFrameCommand(SingleDataCommand):
    """Asks an inverter to retransmit one fragment of its last response."""

    name = "RequestFrame"

    def __init__(
        self, target_address: int = 0, router_address: int = 0, frame_no: int = 0
    ) -> None:
        super().__init__(target_address, router_address)
        if frame_no > 127:
            frame_no = 0
        self.frame_no = frame_no
        self.payload_size = 10

    @property
    def frame_no(self) -> int:
        """Number of the requested fragment."""
        return self._payload[9] & 0x7F

    @frame_no.setter
    def frame_no(self, frame_no: int) -> None:
        self._payload[9] = (frame_no | 0x80) & 0xFF

    def handle_response(self, inverter: Any, fragments: Sequence[Fragment]) -> bool:
        return True


class MultiDataCommand(Command):
    """A data request answered by a response spread over several fragments."""

    def __init__(
        self,
        target_address: int = 0,
        router_address: int = 0,
        data_type: int = 0,
        time: int = 0,
    ) -> None:
        super().__init__(target_address, router_address)
        self._payload[0] = 0x15
        self._payload[9] = 0x80
        self._payload[10] = data_type & 0xFF
        self._payload[11] = 0x00
        self._payload[12:16] = (time & _U32).to_bytes(4, "big")
        # Gap and password bytes stay zero.
        self._payload[16:24] = bytes(8)
        self._update_crc()
        self.payload_size = 26
        self._cmd_request_frame = RequestFrameCommand()

    @property
    def data_type(self) -> int:
        """The kind of data requested."""
        return self._payload[10]

    @data_type.setter
    def data_type(self, data_type: int) -> None:
        self._payload[10] = data_type & 0xFF
        self._update_crc()

    @property
    def time(self) -> int:
        """The current time sent with the request, in Unix seconds."""
        return int.from_bytes(self._payload[12:16], "big")

    @time.setter
    def time(self, time: int) -> None:
        self._payload[12:16] = (time & _U32).to_bytes(4, "big")
        self._update_crc()

    def _update_crc(self) -> None:
        # From the data type up to the end of the password.
        crc = crc16(bytes(self._payload[10:24]))
        self._payload[24] = crc >> 8
        self._payload[25] = crc & 0xFF

    def request_frame_command(self, frame_no: int) -> RequestFrameCommand:
        """Ask the same inverter for fragment ``frame_no`` again."""
        self._cmd_request_frame.target_address = self.target_address
        self._cmd_request_frame.frame_no = frame_no
        return self._cmd_request_frame

    def handle_response(self, inverter: Any, fragments: Sequence[Fragment]) -> bool:
        """Check the CRC-16 that closes the last fragment over all the data."""
        crc = 0xFFFF
        received = 0
        last = len(fragments) - 1
        for index, fragment in enumerate(fragments):
            data = fragment.data
            if index == last:
                crc = crc16(data[:-2], crc)
                received = int.from_bytes(data[-2:], "big")
            else:
                crc = crc16(data, crc)
        return crc == received


class DevControlCommand(Command):
    """A control command that changes the inverter's behaviour."""

    def __init__(self, target_address: int = 0, router_address: int = 0) -> None:
        super().__init__(target_address, router_address)
        self._payload[0] = 0x51
        self._payload[9] = 0x81
        self.timeout = 1000

    def _update_crc(self, length: int) -> None:
        crc = crc16(bytes(self._payload[10 : 10 + length]))
        self._payload[10 + length] = crc >> 8
        self._payload[10 + length + 1] = crc & 0xFF

    def handle_response(self, inverter: Any, fragments: Sequence[Fragment]) -> bool:
        """Every fragment must answer this command."""
        expected = self._payload[0] | 0x80
        return all(fragment.main_cmd == expected for fragment in fragments)


class ParaSetCommand(Command):
    """A command that writes inverter parameters."""

    def __init__(self, target_address: int = 0, router_address: int = 0) -> None:
        super().__init__(target_address, router_address)
        self._payload[0] = 0x52