"""
SALT Runtime Harness — one state, one turn at a time.

SaltRuntime owns the state instance a host works with and exposes every
SALT operation bound to it. run_turn() processes one turn of text:

    1. Stage the DSV block, if the text has one (and bind it when
       variable names are given)
    2. Find every "> command ..." line
    3. Invoke each command, isolating failures so one bad command does
       not abort the rest of the turn

Failures are collected in the TurnReport and also emitted as
CommandFailedWarning.
"""
from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from saltkit import commands, dsv
from saltkit.config import Delimiters
from saltkit.model import CommandDescriptor, CommandInvocation, RuntimeState
from saltkit.serialization import state_from_json, state_to_json


class CommandFailedWarning(UserWarning):
    """Emitted when a command fails while a turn is processed."""
    pass


@dataclass
class CommandResult:
    """Outcome of one successful command invocation."""
    name: str
    args: List[str]
    value: Any = None


@dataclass
class CommandFailure:
    """A command invocation that raised."""
    name: str
    args: List[str]
    error_type: str
    message: str


@dataclass
class TurnReport:
    """What happened while processing one turn of text."""

    dsv_found: bool = False
    bound: Dict[str, Optional[str]] = field(default_factory=dict)
    results: List[CommandResult] = field(default_factory=list)
    failures: List[CommandFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def add_failure(self, invocation: CommandInvocation, error: Exception) -> None:
        """Record a failure and warn about it."""
        failure = CommandFailure(
            name=invocation.name,
            args=list(invocation.args),
            error_type=type(error).__name__,
            message=str(error),
        )
        self.failures.append(failure)
        warnings.warn(
            f"Command '{failure.name}' failed: {failure.error_type}: {failure.message}",
            CommandFailedWarning,
        )


class SaltRuntime:
    """
    Binds the SALT operations to one owned RuntimeState.

    Properties:
        state: The owned state (a fresh one if none is given)
        delimiters: Delimiter override; None uses the process-wide default
        namespace: Extra globals visible to command bodies, on top of
            "state" and "vars"
        natives: NativeCallbacks table for native commands
    """

    def __init__(
        self,
        state: Optional[RuntimeState] = None,
        delimiters: Optional[Delimiters] = None,
        namespace: Optional[Dict[str, Any]] = None,
        natives: Optional[commands.NativeCallbacks] = None,
    ):
        self.state = state if state is not None else RuntimeState()
        self.delimiters = delimiters
        self.namespace = dict(namespace or {})
        self.natives = natives

    @classmethod
    def from_json(cls, s: str, **kwargs) -> SaltRuntime:
        return cls(state=state_from_json(s), **kwargs)

    def to_json(self) -> str:
        return state_to_json(self.state)

    # Variables

    def extract_block(self, text: str) -> bool:
        return dsv.extract_block(text, self.state, self.delimiters)

    def bind_variables(self, names: Union[str, Sequence[str]]) -> Dict[str, Optional[str]]:
        return dsv.bind_variables(names, self.state, self.delimiters)

    def split_variable(self, name: str, delimiter, field_names) -> bool:
        return dsv.split_variable(name, delimiter, field_names, self.state, self.delimiters)

    def set_variables(self, names, value) -> None:
        dsv.set_variables(names, value, self.state, self.delimiters)

    def variables_exist(self, names) -> bool:
        return dsv.variables_exist(names, self.state, self.delimiters)

    # Commands

    def register_command(self, name: str, arg_list, body: Union[str, Callable]) -> CommandDescriptor:
        return commands.register_command(name, arg_list, body, self.state, self.delimiters)

    def register_native_command(self, name: str, arg_list, key: str) -> CommandDescriptor:
        return commands.register_native_command(name, arg_list, key, self.state, self.natives, self.delimiters)

    def parse_command(self, text: str) -> Optional[CommandInvocation]:
        return commands.parse_command_invocation(text, self.state, self.delimiters)

    def command_namespace(self) -> Dict[str, Any]:
        """Globals handed to command bodies when they are reconstructed."""
        scope = {"state": self.state, "vars": self.state.vars}
        scope.update(self.namespace)
        return scope

    def invoke_command(self, name: str, args: Sequence[Any] = ()) -> Any:
        return commands.invoke_command(name, args, self.state, self.command_namespace(), self.natives)

    def run_turn(self, text: str, var_names: Union[str, Sequence[str], None] = None) -> TurnReport:
        """
        Process one turn of text.

        Args:
            text: The text re-read this turn
            var_names: If given, bind the staged DSV block to these names
                when a block was found in text

        Returns:
            TurnReport with the DSV outcome, command results and failures
        """
        report = TurnReport()
        report.dsv_found = self.extract_block(text)

        if report.dsv_found and var_names is not None:
            report.bound = self.bind_variables(var_names)

        for invocation in commands.find_invocations(text, self.state, self.delimiters):
            try:
                value = self.invoke_command(invocation.name, invocation.args)
            except Exception as e:
                report.add_failure(invocation, e)
                continue
            report.results.append(CommandResult(name=invocation.name, args=list(invocation.args), value=value))

        return report


__all__ = [
    "SaltRuntime",
    "TurnReport",
    "CommandResult",
    "CommandFailure",
    "CommandFailedWarning",
]
