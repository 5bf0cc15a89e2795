"""
Command Registry & Invocation Protocol for SALT.

A command is registered once and must survive the host's value-only
persistence, so its body is never stored as a function object. Two forms
are supported:

    source:
        The Python source text of the body (a def or a lambda) is captured
        at registration time and compiled again on every invocation.

    native:
        A stable key into a NativeCallbacks table. The table is filled at
        import time with @native_callback, so a reloaded state can still
        reach the callable by name.

Invocations are written in prose as:

    > name  first argument  second argument

The name ends at the first whitespace. Arguments are separated by runs
of two or more whitespace characters, so a single space stays inside an
argument.
"""
from __future__ import annotations

import ast
import builtins
import inspect
import textwrap
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from saltkit.config import Delimiters, resolve_delimiters
from saltkit.errors import CommandCorruptionError, CommandNotFoundError, CommandSourceError
from saltkit.model import NATIVE, CommandDescriptor, CommandInvocation, RuntimeState
from saltkit.predicates import has_content, is_string, no_content
from saltkit.records import split_names


class NativeCallbacks:
    """
    Table of Python callables addressable by a stable string key.

    Descriptors of kind "native" store only the key, which is plain data.
    """

    def __init__(self):
        self._callbacks: Dict[str, Callable] = {}

    def register(self, key: str, func: Callable) -> Callable:
        if no_content(key):
            raise ValueError("Native callback key must be a non-empty string")
        self._callbacks[key] = func
        return func

    def resolve(self, key: str) -> Optional[Callable]:
        return self._callbacks.get(key)

    def __contains__(self, key: str) -> bool:
        return key in self._callbacks


NATIVE_CALLBACKS = NativeCallbacks()


def native_callback(key: str, table: Optional[NativeCallbacks] = None):
    """Decorator registering a function in a NativeCallbacks table."""
    target = table if table is not None else NATIVE_CALLBACKS

    def decorator(func: Callable) -> Callable:
        return target.register(key, func)

    return decorator


# =========================================================================
# Capturing source text
# =========================================================================

def _positional_names(args: ast.arguments) -> List[str]:
    return [a.arg for a in args.posonlyargs + args.args]


def _find_definition(tree: ast.AST, func) -> Optional[ast.FunctionDef]:
    """Locate the def node that produced func."""
    first_line = func.__code__.co_firstlineno

    for node in ast.walk(tree):
        if isinstance(node, ast.FunctionDef) and node.name == func.__name__:
            start = min([node.lineno] + [d.lineno for d in node.decorator_list])
            if start == first_line:
                return node
    return None


def _lambda_text(module_source: str, node: ast.Lambda) -> str:
    segment = ast.get_source_segment(module_source, node)
    # continuation lines of a multi-line lambda need the brackets
    return f"({segment})" if "\n" in segment else segment


def _code_signature(code) -> tuple:
    """Bytecode, names and constants of a code object, without positions."""
    consts = tuple(_code_signature(c) if inspect.iscode(c) else c for c in code.co_consts)
    return (code.co_code, code.co_names, code.co_varnames, consts)


def _compiles_to(text: str, code) -> bool:
    try:
        compiled = compile(text, "<lambda>", "eval")
    except SyntaxError:
        return False
    inner = [c for c in compiled.co_consts if inspect.iscode(c)]
    return len(inner) == 1 and _code_signature(inner[0]) == _code_signature(code)


def _find_lambda_source(module_source: str, tree: ast.AST, func) -> str:
    """
    Return the source text of the lambda that produced func.

    Lambdas on the line where func starts, with the same argument names,
    are candidates. Each candidate is compiled and kept only if its
    bytecode matches func, so two lambdas sharing a line are told apart.

    Raises:
        CommandSourceError: If no candidate, or more than one distinct
            candidate, matches
    """
    code = func.__code__
    arg_names = list(code.co_varnames[:code.co_argcount])

    candidates = [
        _lambda_text(module_source, node)
        for node in ast.walk(tree)
        if isinstance(node, ast.Lambda)
        and node.lineno == code.co_firstlineno
        and _positional_names(node.args) == arg_names
    ]
    matches = [text for text in dict.fromkeys(candidates) if _compiles_to(text, code)]

    if not matches:
        raise CommandSourceError(f"Definition of {func.__qualname__} not found in its source file")
    if len(matches) > 1:
        raise CommandSourceError(
            f"Several lambdas on line {code.co_firstlineno} match {func.__qualname__}: {matches}"
        )
    return matches[0]


def callback_source(body: Union[str, Callable]) -> str:
    """
    Return the source text to store for a command body.

    Strings are taken verbatim. Functions and lambdas are read back from
    the file that defines them, without decorators.

    Raises:
        CommandSourceError: If body is a closure, a builtin, or its source
            cannot be found
    """
    if is_string(body):
        return body

    if not inspect.isfunction(body):
        raise CommandSourceError(
            f"Cannot capture source of {type(body).__name__}; register it as a native command instead"
        )

    if body.__code__.co_freevars:
        raise CommandSourceError(
            f"{body.__qualname__} captures {list(body.__code__.co_freevars)} from its enclosing scope; "
            "a stored command body must be self-contained"
        )

    try:
        lines, _ = inspect.findsource(body)
    except (OSError, TypeError) as e:
        raise CommandSourceError(f"Source of {body.__qualname__} is not available: {e}") from e

    module_source = "".join(lines)
    try:
        tree = ast.parse(module_source)
    except SyntaxError as e:
        raise CommandSourceError(f"Cannot parse the file defining {body.__qualname__}: {e}") from e

    if body.__name__ == "<lambda>":
        return _find_lambda_source(module_source, tree, body)

    node = _find_definition(tree, body)
    if node is None:
        raise CommandSourceError(f"Definition of {body.__qualname__} not found in its source file")

    return textwrap.dedent(ast.get_source_segment(module_source, node, padded=True))


# =========================================================================
# Registry
# =========================================================================

def register_command(
    name: str,
    arg_list: Union[str, Sequence[str]],
    body: Union[str, Callable],
    state: RuntimeState,
    delimiters: Optional[Delimiters] = None,
) -> CommandDescriptor:
    """
    Register a command whose body is stored as source text.

    Example:
        def greet(name):
            return "hi " + name

        register_command("greet", "name", greet, state)

    Re-registering a name replaces its descriptor.

    Args:
        name: Command name used in "> name ..." invocations
        arg_list: Argument names, as a list or a name-list string
        body: Function, lambda, or source text of one
        state: State that stores the descriptor
        delimiters: Optional override of the default delimiters

    Returns:
        The stored descriptor
    """
    if no_content(name):
        raise ValueError("Command name must be a non-empty string")

    descriptor = CommandDescriptor(
        args=split_names(arg_list, resolve_delimiters(delimiters).dsv.name_separator),
        callback_source=callback_source(body),
    )
    state.commands[name] = descriptor
    return descriptor


def register_native_command(
    name: str,
    arg_list: Union[str, Sequence[str]],
    key: str,
    state: RuntimeState,
    natives: Optional[NativeCallbacks] = None,
    delimiters: Optional[Delimiters] = None,
) -> CommandDescriptor:
    """
    Register a command that points at a NativeCallbacks entry.

    Raises:
        CommandSourceError: If key is not in the callbacks table
    """
    if no_content(name):
        raise ValueError("Command name must be a non-empty string")

    table = natives if natives is not None else NATIVE_CALLBACKS
    if key not in table:
        raise CommandSourceError(f"No native callback registered under {key!r}")

    descriptor = CommandDescriptor(
        args=split_names(arg_list, resolve_delimiters(delimiters).dsv.name_separator),
        native_key=key,
    )
    state.commands[name] = descriptor
    return descriptor


def unregister_command(name: str, state: RuntimeState) -> bool:
    """Remove a command. Returns True if it was registered."""
    return state.commands.pop(name, None) is not None


# =========================================================================
# Parsing
# =========================================================================

def parse_command_invocation(
    text: str,
    state: RuntimeState,
    delimiters: Optional[Delimiters] = None,
) -> Optional[CommandInvocation]:
    """
    Parse a command invocation out of a line of text.

    Returns None (never raises) when the text does not start with the
    command prefix or names a command that is not registered: most
    scanned text is simply not a command.
    """
    if no_content(text):
        return None

    cmd = resolve_delimiters(delimiters).command
    cmd_text = text.strip()

    if not cmd_text.startswith(cmd.prefix):
        return None

    cmd_text = cmd_text[len(cmd.prefix):].strip()
    if not cmd_text:
        return None

    parts = cmd_text.split(None, 1)
    name = parts[0]

    descriptor = state.get_command(name)
    if descriptor is None:
        return None

    rest = parts[1].strip() if len(parts) > 1 else ""
    args = [arg for arg in cmd.argument_separator.split(rest) if has_content(arg)]

    return CommandInvocation(name=name, descriptor=descriptor, args=args)


def find_invocations(
    text: str,
    state: RuntimeState,
    delimiters: Optional[Delimiters] = None,
) -> List[CommandInvocation]:
    """Parse every line of text and return the invocations found, in order."""
    if no_content(text):
        return []

    found = []
    for line in text.splitlines():
        invocation = parse_command_invocation(line, state, delimiters)
        if invocation is not None:
            found.append(invocation)
    return found


# =========================================================================
# Reconstruction & invocation
# =========================================================================

def reconstruct_callback(
    descriptor: CommandDescriptor,
    name: str = "<command>",
    namespace: Optional[Dict[str, Any]] = None,
    natives: Optional[NativeCallbacks] = None,
) -> Callable:
    """
    Turn a stored descriptor back into a callable.

    Source text is parsed and compiled from scratch each time. A single
    expression is evaluated only if it is a lambda or a name, so nothing
    else runs before the source is rejected. Otherwise the source is
    executed and its first top-level def is returned. The code sees the
    builtins plus whatever namespace provides.

    Raises:
        CommandCorruptionError: If the source is missing, does not parse,
            fails to execute, or yields no callable; or if a native key is
            not registered
    """
    if descriptor.kind == NATIVE:
        table = natives if natives is not None else NATIVE_CALLBACKS
        func = table.resolve(descriptor.native_key)
        if func is None:
            raise CommandCorruptionError(name, f"native key {descriptor.native_key!r} is not registered")
        return func

    source = descriptor.callback_source
    if no_content(source):
        raise CommandCorruptionError(name, "no callback source stored")

    filename = f"<command {name}>"
    try:
        tree = ast.parse(textwrap.dedent(source), filename=filename)
    except SyntaxError as e:
        raise CommandCorruptionError(name, f"syntax error on line {e.lineno}: {e.msg}") from e

    scope: Dict[str, Any] = {"__builtins__": builtins}
    scope.update(namespace or {})

    is_expression = len(tree.body) == 1 and isinstance(tree.body[0], ast.Expr)
    def_names = [node.name for node in tree.body if isinstance(node, ast.FunctionDef)]

    if is_expression and not isinstance(tree.body[0].value, (ast.Lambda, ast.Name)):
        raise CommandCorruptionError(name, "an expression source must be a lambda or a name")
    if not is_expression and not def_names:
        raise CommandCorruptionError(name, "source defines no function")

    try:
        if is_expression:
            func = eval(compile(ast.Expression(tree.body[0].value), filename, "eval"), scope)
        else:
            exec(compile(tree, filename, "exec"), scope)
            func = scope[def_names[0]]
    except Exception as e:
        raise CommandCorruptionError(name, f"{type(e).__name__}: {e}") from e

    if not callable(func):
        raise CommandCorruptionError(name, f"source evaluates to {type(func).__name__}, not a callable")

    return func


def invoke_command(
    name: str,
    args: Sequence[Any],
    state: RuntimeState,
    namespace: Optional[Dict[str, Any]] = None,
    natives: Optional[NativeCallbacks] = None,
) -> Any:
    """
    Run a registered command with positional arguments.

    The callable is rebuilt from the descriptor on every call; nothing is
    cached between invocations. Errors raised by the command body itself
    propagate unchanged.

    Raises:
        CommandNotFoundError: If name has no descriptor
        CommandCorruptionError: If the descriptor cannot be reconstructed
    """
    descriptor = state.get_command(name)
    if descriptor is None:
        raise CommandNotFoundError(name)

    callback = reconstruct_callback(descriptor, name, namespace, natives)
    return callback(*args)


__all__ = [
    "NativeCallbacks",
    "NATIVE_CALLBACKS",
    "native_callback",
    "callback_source",
    "register_command",
    "register_native_command",
    "unregister_command",
    "parse_command_invocation",
    "find_invocations",
    "reconstruct_callback",
    "invoke_command",
]
