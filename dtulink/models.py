"""The supported inverter models: serial number ranges and payload layouts."""

from dataclasses import dataclass
from typing import Optional, Tuple

from .statistics import CMD_CALC, ByteAssign, Calc, ChannelType, FieldId, Unit

_DC, _AC, _INV = ChannelType.DC, ChannelType.AC, ChannelType.INV


def _field(
    channel_type: ChannelType,
    channel: int,
    field: FieldId,
    unit: Unit,
    start: int,
    num: int,
    div: int,
    digits: int,
    signed: bool = False,
) -> ByteAssign:
    return ByteAssign(channel_type, channel, field, unit, start, num, div, signed, digits)


def _calc(
    channel_type: ChannelType,
    channel: int,
    field: FieldId,
    unit: Unit,
    calc: Calc,
    arg: int,
    digits: int,
) -> ByteAssign:
    return ByteAssign(channel_type, channel, field, unit, calc, arg, CMD_CALC, False, digits)


_AC_CALCULATED = (
    _calc(_AC, 0, FieldId.YD, Unit.WH, Calc.YD_CH0, 0, 0),
    _calc(_AC, 0, FieldId.YT, Unit.KWH, Calc.YT_CH0, 0, 3),
    _calc(_AC, 0, FieldId.PDC, Unit.W, Calc.PDC_CH0, 0, 1),
    _calc(_AC, 0, FieldId.EFF, Unit.PCT, Calc.EFF_CH0, 0, 3),
)

_HM_1CH_ASSIGNMENT = (
    _field(_DC, 0, FieldId.UDC, Unit.V, 2, 2, 10, 1),
    _field(_DC, 0, FieldId.IDC, Unit.A, 4, 2, 100, 2),
    _field(_DC, 0, FieldId.PDC, Unit.W, 6, 2, 10, 1),
    _field(_DC, 0, FieldId.YD, Unit.WH, 12, 2, 1, 0),
    _field(_DC, 0, FieldId.YT, Unit.KWH, 8, 4, 1000, 3),
    _calc(_DC, 0, FieldId.IRR, Unit.PCT, Calc.IRR_CH, 0, 3),
    _field(_AC, 0, FieldId.UAC, Unit.V, 14, 2, 10, 1),
    _field(_AC, 0, FieldId.IAC, Unit.A, 22, 2, 100, 2),
    _field(_AC, 0, FieldId.PAC, Unit.W, 18, 2, 10, 1),
    _field(_AC, 0, FieldId.PRA, Unit.VA, 20, 2, 10, 1),
    _field(_AC, 0, FieldId.F, Unit.HZ, 16, 2, 100, 2),
    _field(_AC, 0, FieldId.PF, Unit.NONE, 24, 2, 1000, 3),
    _field(_INV, 0, FieldId.T, Unit.C, 26, 2, 10, 1, signed=True),
    _field(_INV, 0, FieldId.EVT_LOG, Unit.NONE, 28, 2, 1, 0),
) + _AC_CALCULATED

_HM_2CH_ASSIGNMENT = (
    _field(_DC, 0, FieldId.UDC, Unit.V, 2, 2, 10, 1),
    _field(_DC, 0, FieldId.IDC, Unit.A, 4, 2, 100, 2),
    _field(_DC, 0, FieldId.PDC, Unit.W, 6, 2, 10, 1),
    _field(_DC, 0, FieldId.YD, Unit.WH, 22, 2, 1, 0),
    _field(_DC, 0, FieldId.YT, Unit.KWH, 14, 4, 1000, 3),
    _calc(_DC, 0, FieldId.IRR, Unit.PCT, Calc.IRR_CH, 0, 3),
    _field(_DC, 1, FieldId.UDC, Unit.V, 8, 2, 10, 1),
    _field(_DC, 1, FieldId.IDC, Unit.A, 10, 2, 100, 2),
    _field(_DC, 1, FieldId.PDC, Unit.W, 12, 2, 10, 1),
    _field(_DC, 1, FieldId.YD, Unit.WH, 24, 2, 1, 0),
    _field(_DC, 1, FieldId.YT, Unit.KWH, 18, 4, 1000, 3),
    _calc(_DC, 1, FieldId.IRR, Unit.PCT, Calc.IRR_CH, 1, 3),
    _field(_AC, 0, FieldId.UAC, Unit.V, 26, 2, 10, 1),
    _field(_AC, 0, FieldId.IAC, Unit.A, 34, 2, 100, 2),
    _field(_AC, 0, FieldId.PAC, Unit.W, 30, 2, 10, 1),
    _field(_AC, 0, FieldId.PRA, Unit.VA, 32, 2, 10, 1),
    _field(_AC, 0, FieldId.F, Unit.HZ, 28, 2, 100, 2),
    _field(_AC, 0, FieldId.PF, Unit.NONE, 36, 2, 1000, 3),
    _field(_INV, 0, FieldId.T, Unit.C, 38, 2, 10, 1, signed=True),
    _field(_INV, 0, FieldId.EVT_LOG, Unit.NONE, 40, 2, 1, 0),
) + _AC_CALCULATED

_HM_4CH_ASSIGNMENT = (
    _field(_DC, 0, FieldId.UDC, Unit.V, 2, 2, 10, 1),
    _field(_DC, 0, FieldId.IDC, Unit.A, 4, 2, 100, 2),
    _field(_DC, 0, FieldId.PDC, Unit.W, 8, 2, 10, 1),
    _field(_DC, 0, FieldId.YD, Unit.WH, 20, 2, 1, 0),
    _field(_DC, 0, FieldId.YT, Unit.KWH, 12, 4, 1000, 3),
    _calc(_DC, 0, FieldId.IRR, Unit.PCT, Calc.IRR_CH, 0, 3),
    _calc(_DC, 1, FieldId.UDC, Unit.V, Calc.UDC_CH, 0, 1),
    _field(_DC, 1, FieldId.IDC, Unit.A, 6, 2, 100, 2),
    _field(_DC, 1, FieldId.PDC, Unit.W, 10, 2, 10, 1),
    _field(_DC, 1, FieldId.YD, Unit.WH, 22, 2, 1, 0),
    _field(_DC, 1, FieldId.YT, Unit.KWH, 16, 4, 1000, 3),
    _calc(_DC, 1, FieldId.IRR, Unit.PCT, Calc.IRR_CH, 1, 3),
    _field(_DC, 2, FieldId.UDC, Unit.V, 24, 2, 10, 1),
    _field(_DC, 2, FieldId.IDC, Unit.A, 26, 2, 100, 2),
    _field(_DC, 2, FieldId.PDC, Unit.W, 30, 2, 10, 1),
    _field(_DC, 2, FieldId.YD, Unit.WH, 42, 2, 1, 0),
    _field(_DC, 2, FieldId.YT, Unit.KWH, 34, 4, 1000, 3),
    _calc(_DC, 2, FieldId.IRR, Unit.PCT, Calc.IRR_CH, 2, 3),
    _calc(_DC, 3, FieldId.UDC, Unit.V, Calc.UDC_CH, 2, 1),
    _field(_DC, 3, FieldId.IDC, Unit.A, 28, 2, 100, 2),
    _field(_DC, 3, FieldId.PDC, Unit.W, 32, 2, 10, 1),
    _field(_DC, 3, FieldId.YD, Unit.WH, 44, 2, 1, 0),
    _field(_DC, 3, FieldId.YT, Unit.KWH, 38, 4, 1000, 3),
    _calc(_DC, 3, FieldId.IRR, Unit.PCT, Calc.IRR_CH, 3, 3),
    _field(_AC, 0, FieldId.UAC, Unit.V, 46, 2, 10, 1),
    _field(_AC, 0, FieldId.IAC, Unit.A, 54, 2, 100, 2),
    _field(_AC, 0, FieldId.PAC, Unit.W, 50, 2, 10, 1),
    _field(_AC, 0, FieldId.PRA, Unit.VA, 52, 2, 10, 1),
    _field(_AC, 0, FieldId.F, Unit.HZ, 48, 2, 100, 2),
    _field(_AC, 0, FieldId.PF, Unit.NONE, 56, 2, 1000, 3),
    _field(_INV, 0, FieldId.T, Unit.C, 58, 2, 10, 1, signed=True),
    _field(_INV, 0, FieldId.EVT_LOG, Unit.NONE, 60, 2, 1, 0),
) + _AC_CALCULATED


@dataclass(frozen=True)
class InverterModel:
    """A family of inverters sharing a serial prefix and payload layout."""

    name: str
    type_name: str
    series_code: int
    alt_high_nibbles: Tuple[int, ...]
    alt_prefixes: Tuple[Tuple[int, int], ...]
    byte_assignment: Tuple[ByteAssign, ...]

    def matches(self, serial: int) -> bool:
        """Whether ``serial`` belongs to this model family."""
        pre0 = (serial >> 40) & 0xFF
        pre1 = (serial >> 32) & 0xFF
        if ((((pre0 << 8) | pre1) >> 4) & 0xFF) == self.series_code:
            return True
        return (pre1 & 0xF0) in self.alt_high_nibbles and (
            (pre0, pre1) in self.alt_prefixes
        )


HM_1CH = InverterModel(
    name="HM_1CH",
    type_name="HM-300, HM-350, HM-400",
    series_code=0x12,
    alt_high_nibbles=(0x10, 0x20),
    alt_prefixes=((0x10, 0x22), (0x11, 0x21)),
    byte_assignment=_HM_1CH_ASSIGNMENT,
)

HM_2CH = InverterModel(
    name="HM_2CH",
    type_name="HM-600, HM-700, HM-800",
    series_code=0x14,
    alt_high_nibbles=(0x30, 0x40),
    alt_prefixes=((0x10, 0x42), (0x11, 0x41)),
    byte_assignment=_HM_2CH_ASSIGNMENT,
)

HM_4CH = InverterModel(
    name="HM_4CH",
    type_name="HM-1000, HM-1200, HM-1500",
    series_code=0x16,
    alt_high_nibbles=(0x50, 0x60),
    alt_prefixes=((0x10, 0x62), (0x11, 0x61)),
    byte_assignment=_HM_4CH_ASSIGNMENT,
)

# Checked in this order when a serial is registered.
MODELS = (HM_4CH, HM_2CH, HM_1CH)


def is_hm_1ch(serial: int) -> bool:
    """Whether ``serial`` is a single-input HM inverter."""
    return HM_1CH.matches(serial)


def is_hm_2ch(serial: int) -> bool:
    """Whether ``serial`` is a dual-input HM inverter."""
    return HM_2CH.matches(serial)


def is_hm_4ch(serial: int) -> bool:
    """Whether ``serial`` is a four-input HM inverter."""
    return HM_4CH.matches(serial)


def model_for_serial(serial: int) -> Optional[InverterModel]:
    """The model a serial number belongs to, or None if it is not supported."""
    for model in MODELS:
        if model.matches(serial):
            return model
    return None