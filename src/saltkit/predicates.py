"""
Predicate Layer for SALT

Stateless classification of the values found in the state object and in
scanned text.

All runtime type inspection happens in classify(). Every predicate below
is a check against the closed ValueKind set, never an ad hoc isinstance
chain of its own.
"""

import re
from collections.abc import Mapping
from enum import Enum
from typing import Any


class ValueKind(Enum):
    """
    The closed set of value shapes the runtime distinguishes.

    MISSING:  None
    SCALAR:   strings, numbers, booleans
    RECORD:   plain key/value mappings
    SEQUENCE: lists and tuples
    PATTERN:  compiled regular expressions
    CALLABLE: functions and other callables
    OTHER:    anything else (sets, arbitrary objects)
    """

    MISSING = "missing"
    SCALAR = "scalar"
    RECORD = "record"
    SEQUENCE = "sequence"
    PATTERN = "pattern"
    CALLABLE = "callable"
    OTHER = "other"


def classify(value: Any) -> ValueKind:
    """Return the ValueKind of a value."""
    if value is None:
        return ValueKind.MISSING
    if isinstance(value, (str, bool, int, float)):
        return ValueKind.SCALAR
    if isinstance(value, re.Pattern):
        return ValueKind.PATTERN
    if isinstance(value, Mapping):
        return ValueKind.RECORD
    if isinstance(value, (list, tuple)):
        return ValueKind.SEQUENCE
    if callable(value):
        return ValueKind.CALLABLE
    return ValueKind.OTHER


def is_string(value: Any) -> bool:
    return isinstance(value, str)


def has_content(value: Any) -> bool:
    """
    True if value is a string with at least one non-whitespace character.

    Anything that is not a string (including None) has no content.
    """
    return is_string(value) and len(value.strip()) > 0


def no_content(value: Any) -> bool:
    return not has_content(value)


def is_pattern(value: Any) -> bool:
    return classify(value) is ValueKind.PATTERN


def looks_like_pattern(value: Any) -> bool:
    """
    True if value can be used as a scan target.

    A compiled regex qualifies, and so does any string with content: a
    non-empty string is accepted as an ad hoc literal pattern.
    """
    return is_pattern(value) or has_content(value)


def is_callable(value: Any) -> bool:
    return classify(value) is ValueKind.CALLABLE


def is_plain_record(value: Any) -> bool:
    """
    True for plain key/value mappings.

    None, scalars, sequences, compiled patterns and callables are not
    records even though some of them are "technically objects".
    """
    return classify(value) is ValueKind.RECORD
