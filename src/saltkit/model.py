"""
Core SALT Model Objects

Defines the data structures shared by every SALT operation:
    - RuntimeState (the persistent root handed over by the host)
    - CommandDescriptor (the stored, plain-data form of a command)
    - CommandInvocation (a command request parsed out of text)

ARCHITECTURAL RULE:
    These objects:
        - Hold plain data only (strings, lists, dicts, None)
        - Never hold a function object
        - Are fully serializable (see serialization.py)
        - Represent structure, not behavior
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

SOURCE = "source"
NATIVE = "native"


@dataclass
class CommandDescriptor:
    """
    The persisted representation of a registered command.

    A command body cannot be stored as a function: the host keeps the
    state in a value-only format between turns. The descriptor therefore
    holds exactly one of:

        callback_source:
            Python source text of the body (a def or a lambda), compiled
            again every time the command is invoked
        native_key:
            Key into a process-level table of Python callables
            (see commands.NativeCallbacks), rebuilt at import time

    Properties:
        args: Declared argument names, in call order
        callback_source: Source text of the body (kind "source")
        native_key: Registered callable key (kind "native")
    """

    args: List[str] = field(default_factory=list)
    callback_source: Optional[str] = None
    native_key: Optional[str] = None

    @property
    def kind(self) -> str:
        return NATIVE if self.native_key is not None else SOURCE


@dataclass
class CommandInvocation:
    """
    A command request found in text.

    Example:
        "> greet  World  loudly"

    Becomes:
        CommandInvocation(name="greet", descriptor=..., args=["World", "loudly"])
    """

    name: str
    descriptor: CommandDescriptor
    args: List[str] = field(default_factory=list)


@dataclass
class RuntimeState:
    """
    The single persistent root object, owned by the host.

    Properties:
        vars:
            Variable name -> scalar string, None, or structured record
            (a dict of sub-field name -> scalar or None)

        commands:
            Command name -> CommandDescriptor

        dsv:
            Raw text of the most recently extracted DSV block, or None
            before any successful extraction

        memory, data:
            Reserved for the host. SALT only makes sure they exist.

    INVARIANTS:
        - No executable content anywhere in the tree
        - No cyclic references
        - Operations never keep a reference to the state between calls
    """

    vars: Dict[str, Any] = field(default_factory=dict)
    commands: Dict[str, CommandDescriptor] = field(default_factory=dict)
    dsv: Optional[str] = None
    memory: Dict[str, Any] = field(default_factory=dict)
    data: Dict[str, Any] = field(default_factory=dict)

    def get_command(self, name: str) -> Optional[CommandDescriptor]:
        """
        Retrieve a command descriptor by name.

        Returns:
            CommandDescriptor or None if not registered
        """
        return self.commands.get(name)

    def get_var(self, name: str, default: Any = None) -> Any:
        return self.vars.get(name, default)
