"""
Serialization helpers for the SALT state (RuntimeState, CommandDescriptor).

The host persists the state between turns in a value-only format. These
helpers define that format explicitly: plain dicts, lists, strings and
None, with JSON and YAML wrappers on top. Command bodies travel as source
text or native keys, never as function objects.
"""
from __future__ import annotations

import copy
import json
from typing import Any, Dict

import yaml

from saltkit.errors import StateFormatError
from saltkit.model import CommandDescriptor, RuntimeState
from saltkit.predicates import is_plain_record, is_string

_MAPPING_KEYS = ("vars", "memory", "data")


def descriptor_to_dict(c: CommandDescriptor) -> Dict[str, Any]:
    d: Dict[str, Any] = {"args": list(c.args)}
    if c.native_key is not None:
        d["native_key"] = c.native_key
    else:
        d["callback_source"] = c.callback_source
    return d


def descriptor_from_dict(d: Dict[str, Any], name: str = "<command>") -> CommandDescriptor:
    if not is_plain_record(d):
        raise StateFormatError(f"Command {name!r} must be a mapping, got {type(d).__name__}")

    args = d.get("args", [])
    if not isinstance(args, list) or not all(is_string(a) for a in args):
        raise StateFormatError(f"Command {name!r} args must be a list of strings")

    source = d.get("callback_source")
    native_key = d.get("native_key")
    if source is None and native_key is None:
        raise StateFormatError(f"Command {name!r} has neither callback_source nor native_key")

    return CommandDescriptor(args=list(args), callback_source=source, native_key=native_key)


def state_to_dict(s: RuntimeState) -> Dict[str, Any]:
    return {
        "vars": s.vars,
        "commands": {name: descriptor_to_dict(c) for name, c in s.commands.items()},
        "DSV": s.dsv,
        "memory": s.memory,
        "data": s.data,
    }


def state_from_dict(d: Dict[str, Any] | None) -> RuntimeState:
    """
    Build a RuntimeState from its dict form.

    A host may hand over a fresh or partially initialised state: None or
    any missing top-level mapping is filled in with an empty one.
    The mappings are deep-copied, so later changes to the state never
    reach the host's input.

    Raises:
        StateFormatError: If a top-level entry has the wrong type
    """
    if d is None:
        return RuntimeState()
    if not is_plain_record(d):
        raise StateFormatError(f"State must be a mapping, got {type(d).__name__}")

    for key in _MAPPING_KEYS + ("commands",):
        if d.get(key) is not None and not is_plain_record(d[key]):
            raise StateFormatError(f"State '{key}' must be a mapping, got {type(d[key]).__name__}")

    dsv = d.get("DSV")
    if dsv is not None and not is_string(dsv):
        raise StateFormatError(f"State 'DSV' must be a string, got {type(dsv).__name__}")

    commands = d.get("commands") or {}
    return RuntimeState(
        vars=copy.deepcopy(d.get("vars") or {}),
        commands={name: descriptor_from_dict(c, name) for name, c in commands.items()},
        dsv=dsv,
        memory=copy.deepcopy(d.get("memory") or {}),
        data=copy.deepcopy(d.get("data") or {}),
    )


def state_to_json(s: RuntimeState) -> str:
    return json.dumps(state_to_dict(s), sort_keys=True)


def state_from_json(s: str) -> RuntimeState:
    try:
        d = json.loads(s)
    except json.JSONDecodeError as e:
        raise StateFormatError(f"Invalid state JSON: {e}") from e
    return state_from_dict(d)


def state_to_yaml(s: RuntimeState) -> str:
    return yaml.safe_dump(state_to_dict(s))


def state_from_yaml(s: str) -> RuntimeState:
    try:
        d = yaml.safe_load(s)
    except yaml.YAMLError as e:
        raise StateFormatError(f"Invalid state YAML: {e}") from e
    return state_from_dict(d)
