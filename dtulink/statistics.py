"""Decoding of real-time run data: voltages, currents, power and yields."""

import enum
from dataclasses import dataclass
from itertools import groupby
from typing import Callable, Dict, Iterable, List, Optional

from .parser import BufferOverflowError, Parser

STATISTIC_PACKET_SIZE = 4 * 16
CMD_CALC = 0xFFFF
STRING_COUNT = 4


class Unit(enum.IntEnum):
    """Physical unit of a field."""

    V = 0
    A = 1
    W = 2
    WH = 3
    KWH = 4
    HZ = 5
    C = 6
    PCT = 7
    VA = 8
    NONE = 9

    @property
    def symbol(self) -> str:
        """The unit as it is displayed."""
        return _UNIT_SYMBOLS[self]


_UNIT_SYMBOLS = ("V", "A", "W", "Wh", "kWh", "Hz", "°C", "%", "var", "")


class FieldId(enum.IntEnum):
    """The measured or calculated quantities of an inverter."""

    UDC = 0
    IDC = 1
    PDC = 2
    YD = 3
    YT = 4
    UAC = 5
    IAC = 6
    PAC = 7
    F = 8
    T = 9
    PF = 10
    EFF = 11
    IRR = 12
    PRA = 13
    EVT_LOG = 14

    @property
    def label(self) -> str:
        """The field's display name."""
        return _FIELD_NAMES[self]


_FIELD_NAMES = (
    "Voltage",
    "Current",
    "Power",
    "YieldDay",
    "YieldTotal",
    "Voltage",
    "Current",
    "Power",
    "Frequency",
    "Temperature",
    "PowerFactor",
    "Efficiency",
    "Irradiation",
    "ReactivePower",
    "EventLogCount",
)


class ChannelType(enum.IntEnum):
    """Grid side, panel side or the inverter itself."""

    AC = 0
    DC = 1
    INV = 2

    @property
    def label(self) -> str:
        """Short name of the channel type."""
        return _CHANNEL_TYPE_NAMES[self]


_CHANNEL_TYPE_NAMES = ("AC", "DC", "INV")


class Calc(enum.IntEnum):
    """Calculation functions for fields that are derived from other fields."""

    YT_CH0 = 0
    YD_CH0 = 1
    UDC_CH = 2
    PDC_CH0 = 3
    EFF_CH0 = 4
    IRR_CH = 5


@dataclass(frozen=True)
class ByteAssign:
    """Where a field lives in the payload, or how it is calculated.

    For calculated fields ``div`` is ``CMD_CALC``, ``start`` is the
    :class:`Calc` function and ``num`` its argument.
    """

    channel_type: ChannelType
    channel: int
    field: FieldId
    unit: Unit
    start: int
    num: int
    div: int
    is_signed: bool
    digits: int

    @property
    def is_calculated(self) -> bool:
        """Whether the value is derived rather than read from the payload."""
        return self.div == CMD_CALC


@dataclass
class FieldSetting:
    """A user-defined offset added to a field's decoded value."""

    channel_type: ChannelType
    channel: int
    field: FieldId
    offset: float


class StatisticsParser(Parser):
    """Holds the real-time run data payload and decodes its fields."""

    def __init__(self, byte_assignment: Iterable[ByteAssign] = ()) -> None:
        super().__init__()
        self.byte_assignment = tuple(byte_assignment)
        self._payload = bytearray(STATISTIC_PACKET_SIZE)
        self.payload_length = 0
        self._string_max_power = [0] * STRING_COUNT
        self._field_settings: List[FieldSetting] = []
        self.rx_failure_count = 0

    def clear_buffer(self) -> None:
        """Zero the payload buffer."""
        self._payload[:] = bytes(STATISTIC_PACKET_SIZE)
        self.payload_length = 0

    def append_fragment(self, offset: int, payload: bytes) -> None:
        """Copy ``payload`` into the buffer at ``offset``."""
        data = bytes(payload)
        end = offset + len(data)
        if offset < 0 or end > STATISTIC_PACKET_SIZE:
            raise BufferOverflowError(
                f"stats packet too large for buffer ({end} > {STATISTIC_PACKET_SIZE})"
            )
        self._payload[offset:end] = data
        self.payload_length += len(data)

    def assignment(
        self, channel_type: ChannelType, channel: int, field: FieldId
    ) -> Optional[ByteAssign]:
        """The byte assignment for a field, or None if the model lacks it."""
        for entry in self.byte_assignment:
            if (
                entry.channel_type == channel_type
                and entry.channel == channel
                and entry.field == field
            ):
                return entry
        return None

    def setting(
        self, channel_type: ChannelType, channel: int, field: FieldId
    ) -> Optional[FieldSetting]:
        """The offset setting for a field, or None if none was set."""
        for entry in self._field_settings:
            if (
                entry.channel_type == channel_type
                and entry.channel == channel
                and entry.field == field
            ):
                return entry
        return None

    def _required(
        self, channel_type: ChannelType, channel: int, field: FieldId
    ) -> ByteAssign:
        entry = self.assignment(channel_type, channel, field)
        if entry is None:
            raise KeyError((channel_type, channel, field))
        return entry

    def field_value(
        self, channel_type: ChannelType, channel: int, field: FieldId
    ) -> float:
        """The decoded value of a field; 0.0 if the model lacks it."""
        entry = self.assignment(channel_type, channel, field)
        if entry is None:
            return 0.0
        if entry.is_calculated:
            return _CALC_FUNCTIONS[Calc(entry.start)](self, entry.num)

        raw = bytes(self._payload[entry.start : entry.start + entry.num])
        if entry.is_signed and entry.num in (2, 4):
            value = int.from_bytes(raw, "big", signed=True)
        else:
            value = int.from_bytes(raw, "big") & 0xFFFFFFFF

        result = value / entry.div
        setting = self.setting(channel_type, channel, field)
        if setting is not None and self.payload_length > 0:
            result += setting.offset
        return result

    def has_field(
        self, channel_type: ChannelType, channel: int, field: FieldId
    ) -> bool:
        """Whether the model provides this field."""
        return self.assignment(channel_type, channel, field) is not None

    def field_unit(
        self, channel_type: ChannelType, channel: int, field: FieldId
    ) -> str:
        """Unit symbol of a field; KeyError if the model lacks it."""
        return self._required(channel_type, channel, field).unit.symbol

    def field_name(
        self, channel_type: ChannelType, channel: int, field: FieldId
    ) -> str:
        """Display name of a field; KeyError if the model lacks it."""
        return self._required(channel_type, channel, field).field.label

    def field_digits(
        self, channel_type: ChannelType, channel: int, field: FieldId
    ) -> int:
        """Number of meaningful decimal places; KeyError if the model lacks it."""
        return self._required(channel_type, channel, field).digits

    def field_offset(
        self, channel_type: ChannelType, channel: int, field: FieldId
    ) -> float:
        """The offset configured for a field, 0.0 if none."""
        setting = self.setting(channel_type, channel, field)
        return setting.offset if setting is not None else 0.0

    def set_field_offset(
        self, channel_type: ChannelType, channel: int, field: FieldId, offset: float
    ) -> None:
        """Add ``offset`` to every decoded value of this field."""
        setting = self.setting(channel_type, channel, field)
        if setting is not None:
            setting.offset = offset
        else:
            self._field_settings.append(
                FieldSetting(channel_type, channel, field, offset)
            )

    def channel_types(self) -> List[ChannelType]:
        """All channel types, in publishing order."""
        return [ChannelType.AC, ChannelType.DC, ChannelType.INV]

    def channel_type_name(self, channel_type: ChannelType) -> str:
        """Short name of a channel type."""
        return ChannelType(channel_type).label

    def channels_by_type(self, channel_type: ChannelType) -> List[int]:
        """Channel numbers of a type, with consecutive repeats collapsed."""
        return [
            channel
            for channel, _ in groupby(
                entry.channel
                for entry in self.byte_assignment
                if entry.channel_type == channel_type
            )
        ]

    def string_max_power(self, channel: int) -> int:
        """Nominal power of the panel on a DC channel, 0 if unset."""
        if not 0 <= channel < STRING_COUNT:
            raise IndexError(f"string channel out of range: {channel}")
        return self._string_max_power[channel]

    def set_string_max_power(self, channel: int, power: int) -> None:
        """Set the panel power of a DC channel; out-of-range channels are ignored."""
        if 0 <= channel < STRING_COUNT:
            self._string_max_power[channel] = power & 0xFFFF

    def reset_rx_failure_count(self) -> None:
        """Forget previous receive failures."""
        self.rx_failure_count = 0

    def increment_rx_failure_count(self) -> None:
        """Count one more failed receive."""
        self.rx_failure_count += 1


def _sum_dc(parser: StatisticsParser, field: FieldId) -> float:
    return sum(
        parser.field_value(ChannelType.DC, channel, field)
        for channel in parser.channels_by_type(ChannelType.DC)
    )


def _calc_yield_total(parser: StatisticsParser, arg: int) -> float:
    return _sum_dc(parser, FieldId.YT)


def _calc_yield_day(parser: StatisticsParser, arg: int) -> float:
    return _sum_dc(parser, FieldId.YD)


def _calc_udc(parser: StatisticsParser, arg: int) -> float:
    return parser.field_value(ChannelType.DC, arg, FieldId.UDC)


def _calc_power_dc(parser: StatisticsParser, arg: int) -> float:
    return _sum_dc(parser, FieldId.PDC)


def _calc_efficiency(parser: StatisticsParser, arg: int) -> float:
    ac_power = sum(
        parser.field_value(ChannelType.AC, channel, FieldId.PAC)
        for channel in parser.channels_by_type(ChannelType.AC)
    )
    dc_power = _sum_dc(parser, FieldId.PDC)
    if dc_power > 0:
        return ac_power / dc_power * 100.0
    return 0.0


def _calc_irradiation(parser: StatisticsParser, arg: int) -> float:
    max_power = parser.string_max_power(arg)
    if max_power > 0:
        return parser.field_value(ChannelType.DC, arg, FieldId.PDC) / max_power * 100.0
    return 0.0


_CALC_FUNCTIONS: Dict[Calc, Callable[[StatisticsParser, int], float]] = {
    Calc.YT_CH0: _calc_yield_total,
    Calc.YD_CH0: _calc_yield_day,
    Calc.UDC_CH: _calc_udc,
    Calc.PDC_CH0: _calc_power_dc,
    Calc.EFF_CH0: _calc_efficiency,
    Calc.IRR_CH: _calc_irradiation,
}