"""
Test the example state used by the demo.

Validates that the example builder binds the DSV block, splits the
location variable and registers one command of each kind.
"""

from saltkit.commands import invoke_command, parse_command_invocation
from saltkit.examples import build_example_state
from saltkit.serialization import state_from_json, state_to_json


def test_example_state_structure():
    state = build_example_state()

    assert state.dsv == "Aria::12::Sword of Dawn::north gate"
    assert state.vars["name"] == "Aria"
    assert state.vars["weapon"] == "Sword of Dawn"
    assert state.vars["location"] == {"_value": "north gate", "direction": "north", "landmark": "gate"}

    assert state.commands["greet"].kind == "source"
    assert state.commands["heal"].kind == "source"
    assert state.commands["stash"].kind == "native"


def test_example_commands_after_reload():
    state = state_from_json(state_to_json(build_example_state()))

    invocation = parse_command_invocation("> stash  the silver key  under the gatepost", state)
    assert invoke_command(invocation.name, invocation.args, state) == "the silver key hidden under the gatepost"

    assert invoke_command("greet", ["Aria"], state) == "hi Aria"
    assert invoke_command("heal", ["3"], state, namespace={"vars": state.vars}) == 15
    assert state.vars["hp"] == "15"
