"""
Structured-Value Transform for SALT

Promotes a scalar property of any mapping into a structured record, and
decomposes a delimited string property into named fields.

These helpers work on any mutable mapping (the state's vars, a command
descriptor's bookkeeping, host data) and never raise for a missing key:
a missing property is promoted to an empty record with placeholder fields.
"""
from __future__ import annotations

import re
from typing import Any, List, MutableMapping, Optional, Sequence, Union

from saltkit.config import Delimiters, resolve_delimiters
from saltkit.predicates import ValueKind, classify, is_plain_record, is_string

VALUE_KEY = "_value"

Delimiter = Union[str, re.Pattern]


def string_to_list(text: str, delimiter: Optional[Delimiter] = None) -> List[str]:
    """
    Split a string by a literal delimiter or a compiled pattern.

    With no delimiter the configured name-list separator is used
    (whitespace and commas by default). Empty pieces are kept, so
    positional values line up with their fields.
    """
    if delimiter is None:
        delimiter = resolve_delimiters().dsv.name_separator
    if isinstance(delimiter, re.Pattern):
        return delimiter.split(text)
    return text.split(delimiter)


def split_names(names: Union[str, Sequence[str]], delimiter: Optional[Delimiter] = None) -> List[str]:
    """
    Turn a name list into a list of names.

    Accepts either a ready-made sequence of names or a string such as
    "hp, mp  gold". Empty names (from leading or trailing separators) are
    dropped.
    """
    if is_string(names):
        return [name for name in string_to_list(names, delimiter) if name]
    return [str(name) for name in names]


def promote_to_record(container: MutableMapping[str, Any], key: str, value_key: str = VALUE_KEY) -> bool:
    """
    Make container[key] a record if it isn't one already.

    - Missing key: an empty record is created, returns False.
    - Already a record: nothing changes, returns True.
    - Anything else: replaced by a new record holding the old value under
      value_key (unless the old value was None), returns True.

    Args:
        container: Mapping holding the property
        key: Property name
        value_key: Name of the sub-field that archives the old scalar

    Returns:
        True if the property existed before the call
    """
    if key not in container:
        container[key] = {}
        return False

    value = container[key]

    if not is_plain_record(value):
        container[key] = {}
        if value is not None:
            container[key][value_key] = value

    return True


def split_into_fields(
    container: MutableMapping[str, Any],
    key: str,
    delimiter: Delimiter,
    field_names: Union[str, Sequence[str]],
    value_key: str = VALUE_KEY,
    delimiters: Optional[Delimiters] = None,
) -> bool:
    """
    Split a delimited string property into named sub-fields.

    Example:
        container = {"hero": "Aria::12::sword"}
        split_into_fields(container, "hero", "::", "name hp weapon")

    Becomes:
        {"hero": {"_value": "Aria::12::sword", "name": "Aria",
                  "hp": "12", "weapon": "sword"}}

    Field order is authoritative. Extra values are dropped; fields left
    without a value are set to None. The original scalar stays archived
    under value_key. Field names given as a string are split with the
    name-list separator of delimiters (the process-wide default if None).

    If the property does not exist yet, the record is created with every
    field set to None and False is returned.

    Returns:
        True if the property existed before the call
    """
    existed = promote_to_record(container, key, value_key)
    names = split_names(field_names, resolve_delimiters(delimiters).dsv.name_separator)
    record = container[key]

    if not existed:
        for name in names:
            record[name] = None
        return False

    archived = record.get(value_key)
    if classify(archived) is ValueKind.SCALAR:
        values = string_to_list(str(archived), delimiter)
    else:
        values = []

    for index, name in enumerate(names):
        record[name] = values[index] if index < len(values) else None

    return True


__all__ = [
    "VALUE_KEY",
    "string_to_list",
    "split_names",
    "promote_to_record",
    "split_into_fields",
]
