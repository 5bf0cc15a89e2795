"""
Delimiter configuration for SALT.

The text protocol is driven by a handful of delimiters. The defaults live
in DEFAULT_DELIMITERS, a process-wide instance the embedding caller may
change in place. Every operation also accepts an explicit Delimiters
instance, which always wins over the default.

Overrides can be kept in a YAML file:

    dsv:
      prefix: "%%%"
      separator: "|"
    command:
      prefix: "/"
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Optional

import yaml

from saltkit.errors import ConfigError


@dataclass
class DSVDelimiters:
    """
    Delimiters for DSV blocks.

    Properties:
        prefix: marks the start of a block in scanned text
        separator: splits a block into positional fields (literal text)
        terminator: marks the end of a block
        name_separator: splits a variable-name list into names (regex)
    """

    prefix: str = "!!!"
    separator: str = "::"
    terminator: str = "\n"
    name_separator: re.Pattern = field(default_factory=lambda: re.compile(r"[\s,]+"))


@dataclass
class CommandDelimiters:
    """
    Delimiters for command invocations.

    Properties:
        prefix: marks the start of a command invocation
        argument_separator: splits the argument text into arguments (regex);
            runs of two or more whitespace characters by default, so single
            spaces stay inside an argument
    """

    prefix: str = ">"
    argument_separator: re.Pattern = field(default_factory=lambda: re.compile(r"\s{2,}"))


@dataclass
class Delimiters:
    dsv: DSVDelimiters = field(default_factory=DSVDelimiters)
    command: CommandDelimiters = field(default_factory=CommandDelimiters)


DEFAULT_DELIMITERS = Delimiters()

_PATTERN_FIELDS = {"name_separator", "argument_separator"}


def resolve_delimiters(delimiters: Optional[Delimiters] = None) -> Delimiters:
    """Return the given delimiters, or the process-wide default."""
    return delimiters if delimiters is not None else DEFAULT_DELIMITERS


def reset_default_delimiters() -> None:
    """Restore DEFAULT_DELIMITERS to the built-in values, in place."""
    DEFAULT_DELIMITERS.dsv = DSVDelimiters()
    DEFAULT_DELIMITERS.command = CommandDelimiters()


def _section_from_dict(section_cls, base, d: Dict[str, Any], section_name: str):
    if not isinstance(d, dict):
        raise ConfigError(f"Section '{section_name}' must be a mapping, got {type(d).__name__}")

    known = {f.name for f in fields(section_cls)}
    unknown = set(d) - known
    if unknown:
        raise ConfigError(f"Unknown keys in section '{section_name}': {sorted(unknown)}")

    changes = {}
    for key, value in d.items():
        if not isinstance(value, str) or value == "":
            raise ConfigError(f"'{section_name}.{key}' must be a non-empty string")
        if key in _PATTERN_FIELDS:
            try:
                value = re.compile(value)
            except re.error as e:
                raise ConfigError(f"'{section_name}.{key}' is not a valid regex: {e}") from e
        changes[key] = value

    return replace(base, **changes)


def delimiters_from_dict(d: Dict[str, Any] | None, base: Optional[Delimiters] = None) -> Delimiters:
    """
    Build a Delimiters instance from a plain mapping.

    Keys missing from the mapping keep the value from base (built-in
    defaults when base is None). Pattern fields are given as regex strings.

    Raises:
        ConfigError: on unknown sections/keys, non-string values or bad regexes
    """
    base = base if base is not None else Delimiters()
    if d is None:
        return replace(base)
    if not isinstance(d, dict):
        raise ConfigError(f"Delimiter config must be a mapping, got {type(d).__name__}")

    unknown = set(d) - {"dsv", "command"}
    if unknown:
        raise ConfigError(f"Unknown delimiter sections: {sorted(unknown)}")

    return Delimiters(
        dsv=_section_from_dict(DSVDelimiters, base.dsv, d.get("dsv", {}), "dsv"),
        command=_section_from_dict(CommandDelimiters, base.command, d.get("command", {}), "command"),
    )


def delimiters_from_yaml(s: str) -> Delimiters:
    try:
        d = yaml.safe_load(s)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid delimiter YAML: {e}") from e
    return delimiters_from_dict(d)


def load_delimiters(filepath: str) -> Delimiters:
    """
    Load delimiter overrides from a YAML file.

    Raises:
        FileNotFoundError: If file doesn't exist
        ConfigError: If the file content is invalid
    """
    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            content = f.read()
    except FileNotFoundError:
        raise FileNotFoundError(f"Delimiter config not found: {filepath}")

    return delimiters_from_yaml(content)


def delimiters_to_dict(delimiters: Delimiters) -> Dict[str, Any]:
    return {
        "dsv": {
            "prefix": delimiters.dsv.prefix,
            "separator": delimiters.dsv.separator,
            "terminator": delimiters.dsv.terminator,
            "name_separator": delimiters.dsv.name_separator.pattern,
        },
        "command": {
            "prefix": delimiters.command.prefix,
            "argument_separator": delimiters.command.argument_separator.pattern,
        },
    }
