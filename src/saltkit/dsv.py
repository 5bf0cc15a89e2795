"""
DSV Extraction & Binding for SALT (Text → Variables).

A DSV block is a delimiter-separated run of values embedded in prose:

    The gate creaks open.
    !!!Aria::12::sword
    She steps inside.

Block format (defaults, see config.py):
    - starts after the prefix "!!!"
    - ends at the next newline
    - fields are separated by "::"

Extraction is all-or-nothing: the raw block is staged in state.dsv only
when a complete, non-empty block is found. Binding then assigns the staged
fields to variable names by position.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Sequence, Union

from saltkit.config import Delimiters, resolve_delimiters
from saltkit.errors import MissingDSVError
from saltkit.model import RuntimeState
from saltkit.predicates import has_content, is_callable, no_content
from saltkit.records import Delimiter, split_into_fields, split_names, string_to_list

NameList = Union[str, Sequence[str]]


def read_block(text: str, delimiters: Optional[Delimiters] = None) -> Optional[str]:
    """
    Find the raw DSV block in text without touching any state.

    Returns:
        The text between prefix and terminator, or None when there is no
        prefix, no terminator after it, or no field with content.
    """
    dsv = resolve_delimiters(delimiters).dsv

    if no_content(text):
        return None

    prefix_index = text.find(dsv.prefix)
    if prefix_index == -1:
        return None

    start = prefix_index + len(dsv.prefix)
    end = text.find(dsv.terminator, start)
    if end == -1:
        return None

    block = text[start:end]

    # A block made only of separators carries no values
    if not any(has_content(value) for value in string_to_list(block, dsv.separator)):
        return None

    return block


def extract_block(text: str, state: RuntimeState, delimiters: Optional[Delimiters] = None) -> bool:
    """
    Read the DSV block from text and stage it in state.dsv.

    Args:
        text: Scanned text (scenario, context, player input...)
        state: State that receives the raw block
        delimiters: Optional override of the default delimiters

    Returns:
        True if a block was found and staged. On False, state.dsv is left
        exactly as it was.
    """
    block = read_block(text, delimiters)
    if block is None:
        return False

    state.dsv = block
    return True


def bind_variables(names: NameList, state: RuntimeState, delimiters: Optional[Delimiters] = None) -> Dict[str, Optional[str]]:
    """
    Assign the staged DSV fields to variables, by position.

    Example:
        state.dsv == "Aria::12::sword"
        bind_variables("name hp weapon", state)
        # state.vars -> {"name": "Aria", "hp": "12", "weapon": "sword"}

    Names beyond the available values are set to None; values beyond the
    declared names are ignored. Existing variables are overwritten.

    Returns:
        The assignments that were made, in name order

    Raises:
        MissingDSVError: If no block has been extracted into the state
    """
    if state.dsv is None:
        raise MissingDSVError("DSV not found in state; call extract_block() first")

    dsv = resolve_delimiters(delimiters).dsv
    values = string_to_list(state.dsv, dsv.separator)
    var_names = split_names(names, dsv.name_separator)

    assigned = {}
    for index, name in enumerate(var_names):
        value = values[index] if index < len(values) else None
        state.vars[name] = value
        assigned[name] = value

    return assigned


def split_variable(
    name: str,
    delimiter: Delimiter,
    field_names: NameList,
    state: RuntimeState,
    delimiters: Optional[Delimiters] = None,
) -> bool:
    """
    Split a variable's value into named sub-fields.

    See records.split_into_fields. A variable that does not exist yet is
    created as a record with every field set to None.

    Returns:
        True if the variable existed before the call
    """
    return split_into_fields(state.vars, name, delimiter, field_names, delimiters=delimiters)


def set_variables(
    names: NameList,
    value: Union[Any, Callable[[Dict[str, Any], str], Any]],
    state: RuntimeState,
    delimiters: Optional[Delimiters] = None,
) -> None:
    """
    Set every named variable to the same value.

    If value is callable it is used as a factory: it is called with the
    vars mapping and the variable name, and its return value is stored.
    """
    var_names = split_names(names, resolve_delimiters(delimiters).dsv.name_separator)

    for name in var_names:
        state.vars[name] = value(state.vars, name) if is_callable(value) else value


def variables_exist(names: NameList, state: RuntimeState, delimiters: Optional[Delimiters] = None) -> bool:
    """
    Check that every named variable is present in state.vars.

    Presence is what counts: a variable holding None still exists.
    """
    var_names = split_names(names, resolve_delimiters(delimiters).dsv.name_separator)
    return all(name in state.vars for name in var_names)


__all__ = [
    "read_block",
    "extract_block",
    "bind_variables",
    "split_variable",
    "set_variables",
    "variables_exist",
]
