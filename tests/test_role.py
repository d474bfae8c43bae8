import pytest

from mcpkit.role import Role


@pytest.mark.parametrize("wire, expected", [("user", Role.USER), ("assistant", Role.ASSISTANT)])
def test_role_from_wire_value(wire, expected):
    assert Role(wire) is expected


@pytest.mark.parametrize("role", list(Role))
def test_role_round_trips_through_value(role):
    assert Role(role.value) is role


def test_str_is_wire_value():
    assert str(Role("assistant")) == "assistant"


def test_unknown_role_rejected():
    with pytest.raises(ValueError):
        Role("system")


def test_role_compares_equal_to_its_string():
    assert Role("user") == "user"