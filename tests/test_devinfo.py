import calendar

import pytest

from dtulink.devinfo import DEV_INFO_SIZE, DevInfoParser, timegm
from dtulink.parser import BufferOverflowError

VERSION = 0x1234
PART_HM1500 = 0x10123001


@pytest.mark.parametrize(
    "stamp",
    [
        (1970, 1, 1, 0, 0, 0),
        (2000, 2, 29, 12, 30, 15),
        (2022, 12, 31, 23, 59, 0),
        (2024, 3, 1, 0, 0, 1),
        (2100, 2, 28, 6, 7, 8),
    ],
)
def test_timegm_matches_calendar(stamp):
    assert timegm(*stamp) == calendar.timegm(stamp + (0, 0, 0))


def test_timegm_epoch_is_zero():
    assert timegm(1970, 1, 1) == 0


def _all_payload(year, month_day, hour_minute):
    return (
        VERSION.to_bytes(2, "big")
        + year.to_bytes(2, "big")
        + month_day.to_bytes(2, "big")
        + hour_minute.to_bytes(2, "big")
        + VERSION.to_bytes(2, "big")
    )


def test_all_fields():
    parser = DevInfoParser()
    parser.append_fragment_all(0, _all_payload(2022, 1231, 2359))
    assert parser.fw_build_version == VERSION
    assert parser.fw_bootloader_version == VERSION
    assert parser.fw_build_datetime == calendar.timegm((2022, 12, 31, 23, 59, 0))


def _simple_payload(part, major, minor):
    return bytes(2) + part.to_bytes(4, "big") + bytes([major, minor])


def test_simple_fields_and_model():
    parser = DevInfoParser()
    parser.append_fragment_simple(0, _simple_payload(PART_HM1500, 1, 0))
    assert parser.hw_part_number == PART_HM1500
    assert parser.hw_version == "01.00"
    assert parser.max_power == 1500
    assert parser.hw_model_name == "HM-1500"


def test_four_byte_match_takes_precedence():
    parser = DevInfoParser()
    parser.append_fragment_simple(2, bytes([0x10, 0x10, 0x10, 0x15]))
    assert parser.hw_model_name == "HM-300"
    assert 0 < parser.max_power < 300


def test_three_byte_match():
    parser = DevInfoParser()
    parser.append_fragment_simple(2, bytes([0x10, 0x10, 0x10, 0x16]))
    assert parser.hw_model_name == "HM-300"
    assert parser.max_power == 300


def test_unknown_model():
    parser = DevInfoParser()
    parser.append_fragment_simple(2, bytes([0x20, 0x20, 0x20, 0x20]))
    assert parser.max_power == 0
    assert parser.hw_model_name == ""


def test_clear_buffers():
    parser = DevInfoParser()
    parser.append_fragment_simple(0, _simple_payload(PART_HM1500, 1, 0))
    parser.append_fragment_all(0, _all_payload(2022, 1231, 2359))
    parser.clear_buffer_simple()
    parser.clear_buffer_all()
    assert parser.hw_model_name == ""
    assert parser.fw_build_version == 0
    assert parser.all_length == 0
    assert parser.simple_length == 0


def test_overflow_raises():
    parser = DevInfoParser()
    with pytest.raises(BufferOverflowError):
        parser.append_fragment_all(DEV_INFO_SIZE - 1, b"\x00\x00")
    with pytest.raises(BufferOverflowError):
        parser.append_fragment_simple(0, bytes(DEV_INFO_SIZE + 1))


def test_update_times_set_last_update():
    parser = DevInfoParser()
    parser.last_update_all = 10
    assert parser.last_update == 10
    parser.last_update_simple = 20
    assert parser.last_update_simple == 20
    assert parser.last_update_all == 10
    assert parser.last_update == 20