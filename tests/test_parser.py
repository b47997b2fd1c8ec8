import pytest

from dtulink.parser import LastCommandSuccess, Parser, PowerCommandParser


def test_parser_starts_without_update():
    assert Parser().last_update == 0


def test_parser_last_update_round_trip():
    parser = Parser()
    parser.last_update = 1234
    assert parser.last_update == 1234


def test_power_command_defaults_to_ok():
    parser = PowerCommandParser()
    assert parser.last_power_command_success is LastCommandSuccess.OK
    assert parser.last_update_command == 0


def test_power_command_success_round_trip():
    parser = PowerCommandParser()
    parser.last_power_command_success = LastCommandSuccess.PENDING
    assert parser.last_power_command_success is LastCommandSuccess.PENDING


def test_last_update_command_also_sets_last_update():
    parser = PowerCommandParser()
    parser.last_update_command = 5000
    assert parser.last_update_command == 5000
    assert parser.last_update == 5000


@pytest.mark.parametrize(
    "state",
    [LastCommandSuccess.OK, LastCommandSuccess.NOK, LastCommandSuccess.PENDING],
)
def test_every_command_state_is_kept(state):
    parser = PowerCommandParser()
    parser.last_power_command_success = state
    assert parser.last_power_command_success is state
    assert parser.last_update == 0