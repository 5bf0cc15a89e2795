"""
Tests for the runtime harness (SaltRuntime, TurnReport).
"""

import pytest
from saltkit.commands import NativeCallbacks
from saltkit.config import delimiters_from_dict
from saltkit.errors import MissingDSVError
from saltkit.model import RuntimeState
from saltkit.runtime import CommandFailedWarning, SaltRuntime


def greet(name):
    return "hi " + name


HEAL_SOURCE = """
def heal(amount):
    vars["hp"] = str(int(vars["hp"]) + int(amount))
    return vars["hp"]
"""


@pytest.fixture
def runtime():
    rt = SaltRuntime()
    rt.register_command("greet", "name", greet)
    rt.register_command("heal", "amount", HEAL_SOURCE)
    return rt


class TestSaltRuntime:
    """Test the bound operations."""

    def test_owns_fresh_state(self):
        assert SaltRuntime().state == RuntimeState()

    def test_uses_given_state(self):
        state = RuntimeState()
        assert SaltRuntime(state=state).state is state

    def test_variable_operations(self, runtime):
        assert runtime.extract_block("!!!Aria::12\n") is True
        runtime.bind_variables("name hp")
        assert runtime.variables_exist("name hp") is True
        runtime.set_variables("gold", "0")
        assert runtime.state.vars["gold"] == "0"
        assert runtime.split_variable("name", "r", "head tail") is True
        assert runtime.state.vars["name"]["tail"] == "ia"

    def test_split_uses_runtime_delimiters(self):
        """split_variable splits field names like every other operation."""
        rt = SaltRuntime(delimiters=delimiters_from_dict({"dsv": {"name_separator": ";"}}))
        rt.set_variables("first name;loc", "north gate")
        assert rt.variables_exist("first name;loc") is True
        rt.split_variable("loc", " ", "dir;mark")
        assert rt.state.vars["loc"] == {"_value": "north gate", "dir": "north", "mark": "gate"}

    def test_bind_without_block(self, runtime):
        with pytest.raises(MissingDSVError):
            runtime.bind_variables("x")

    def test_command_sees_state_globals(self, runtime):
        runtime.state.vars["hp"] = "10"
        assert runtime.invoke_command("heal", ["5"]) == "15"
        assert runtime.state.vars["hp"] == "15"

    def test_extra_namespace(self):
        rt = SaltRuntime(namespace={"BONUS": 3})
        rt.register_command("bonus", "x", "lambda x: int(x) + BONUS")
        assert rt.invoke_command("bonus", ["1"]) == 4

    def test_native_table(self):
        table = NativeCallbacks()
        table.register("tests.echo", lambda text: text)
        rt = SaltRuntime(natives=table)
        rt.register_native_command("echo", "text", "tests.echo")
        assert rt.invoke_command("echo", ["hello"]) == "hello"

    def test_parse_command(self, runtime):
        assert runtime.parse_command("> greet  Ann").args == ["Ann"]
        assert runtime.parse_command("> unknown  Ann") is None

    def test_json_persistence(self, runtime):
        runtime.state.vars["hp"] = "1"
        restored = SaltRuntime.from_json(runtime.to_json())
        assert restored.invoke_command("heal", ["2"]) == "3"


class TestRunTurn:
    """Test processing one turn of text."""

    def test_dsv_and_commands(self, runtime):
        report = runtime.run_turn(
            "A quiet morning.\n!!!Aria::10\n> greet  Aria\n> heal  5\n",
            var_names="name hp",
        )
        assert report.dsv_found is True
        assert report.bound == {"name": "Aria", "hp": "10"}
        assert [(r.name, r.value) for r in report.results] == [("greet", "hi Aria"), ("heal", "15")]
        assert report.ok

    def test_no_block_no_binding(self, runtime):
        report = runtime.run_turn("> greet  Ann", var_names="name")
        assert report.dsv_found is False
        assert report.bound == {}
        assert "name" not in runtime.state.vars

    def test_prose_with_prefix_is_ignored(self, runtime):
        report = runtime.run_turn("> not a command at all\nplain text\n")
        assert report.results == []
        assert report.failures == []

    def test_failure_does_not_abort_turn(self, runtime):
        runtime.state.vars["hp"] = "1"
        with pytest.warns(CommandFailedWarning):
            report = runtime.run_turn("> heal  lots\n> greet  Bob\n")
        assert not report.ok
        assert report.failures[0].name == "heal"
        assert report.failures[0].error_type == "ValueError"
        assert report.results[0].value == "hi Bob"

    def test_corrupted_command_reported(self, runtime):
        runtime.state.commands["greet"].callback_source = "def greet(:"
        with pytest.warns(CommandFailedWarning):
            report = runtime.run_turn("> greet  Ann\n")
        assert report.failures[0].error_type == "CommandCorruptionError"
