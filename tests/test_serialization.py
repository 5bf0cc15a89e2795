"""
Tests for serialization and deserialization of the SALT state.

The host persists the state in a value-only format between turns; these
tests make sure everything SALT puts in the state survives JSON/YAML and
that commands still run after the round trip.
"""

import json

import pytest
from saltkit.commands import invoke_command, register_command
from saltkit.dsv import bind_variables, extract_block, split_variable
from saltkit.errors import StateFormatError
from saltkit.model import CommandDescriptor, RuntimeState
from saltkit.serialization import (
    state_from_dict,
    state_from_json,
    state_from_yaml,
    state_to_dict,
    state_to_json,
    state_to_yaml,
)


def greet(name):
    return "hi " + name


def build_sample_state() -> RuntimeState:
    state = RuntimeState()
    extract_block("!!!Aria::12::north gate\n", state)
    bind_variables("name hp location", state)
    split_variable("location", " ", "direction landmark", state)
    register_command("greet", "name", greet, state)
    state.commands["roll"] = CommandDescriptor(args=["sides"], native_key="dice.roll")
    state.memory["context"] = "forest"
    return state


def test_json_roundtrip():
    state = build_sample_state()
    before = state_to_dict(state)
    restored = state_from_json(state_to_json(state))
    after = state_to_dict(restored)
    assert before == after


def test_yaml_roundtrip():
    state = build_sample_state()
    before = state_to_dict(state)
    restored = state_from_yaml(state_to_yaml(state))
    after = state_to_dict(restored)
    assert before == after


def test_dict_is_plain_data():
    """The dict form must be accepted by a value-only format as is."""
    d = state_to_dict(build_sample_state())
    json.dumps(d)
    assert d["DSV"] == "Aria::12::north gate"
    assert d["commands"]["greet"]["args"] == ["name"]
    assert "callback_source" in d["commands"]["greet"]
    assert d["commands"]["roll"] == {"args": ["sides"], "native_key": "dice.roll"}


def test_command_survives_roundtrip():
    restored = state_from_json(state_to_json(build_sample_state()))
    assert invoke_command("greet", ["World"], restored) == "hi World"


def test_partial_state_filled_in():
    """A host may hand over an empty or partial state."""
    state = state_from_dict({"vars": {"a": "1"}})
    assert state.vars == {"a": "1"}
    assert state.commands == {}
    assert state.memory == {}
    assert state.data == {}
    assert state.dsv is None

    assert state_from_dict(None) == RuntimeState()
    assert state_from_dict({"vars": None}).vars == {}


def test_state_does_not_share_host_data():
    """Changes to a loaded state never reach the host's dict."""
    host = {"vars": {"hero": {"name": "Aria"}, "loc": "north gate"}, "memory": {"log": ["a"]}}
    state = state_from_dict(host)

    split_variable("hero", " ", "title", state)
    state.vars["hero"]["name"] = "Bram"
    split_variable("loc", " ", "dir mark", state)
    state.memory["log"].append("b")

    assert host == {"vars": {"hero": {"name": "Aria"}, "loc": "north gate"}, "memory": {"log": ["a"]}}


@pytest.mark.parametrize("bad", [
    [],
    {"vars": []},
    {"commands": "x"},
    {"DSV": 5},
    {"commands": {"c": {"args": []}}},
    {"commands": {"c": {"args": "a b", "callback_source": "lambda: 1"}}},
    {"commands": {"c": "lambda: 1"}},
])
def test_invalid_shapes(bad):
    with pytest.raises(StateFormatError):
        state_from_dict(bad)


def test_invalid_json():
    with pytest.raises(StateFormatError):
        state_from_json("{not json")
