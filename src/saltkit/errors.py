"""
Exception hierarchy for SALT.

Only caller-contract violations and corrupted data raise. Routine absence
(no DSV block in the text, text that names no registered command) is
reported through return values instead.
"""


class SaltError(Exception):
    """Base class for every error raised by saltkit."""
    pass


class ConfigError(SaltError):
    """Raised when a delimiter configuration cannot be loaded."""
    pass


class StateFormatError(SaltError):
    """Raised when a serialized state does not have the expected shape."""
    pass


class MissingDSVError(SaltError):
    """Raised when variables are bound before a DSV block was extracted."""
    pass


class CommandNotFoundError(SaltError, KeyError):
    """Raised when invoking a command name that has no descriptor."""

    def __init__(self, name: str):
        super().__init__(f"No command registered under {name!r}")
        self.name = name

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class CommandSourceError(SaltError, TypeError):
    """Raised when the source text of a command body cannot be captured."""
    pass


class CommandCorruptionError(SaltError):
    """Raised when a stored command body cannot be turned back into a callable."""

    def __init__(self, name: str, reason: str):
        super().__init__(f"Command {name!r} cannot be reconstructed: {reason}")
        self.name = name
        self.reason = reason


__all__ = [
    "SaltError",
    "ConfigError",
    "StateFormatError",
    "MissingDSVError",
    "CommandNotFoundError",
    "CommandSourceError",
    "CommandCorruptionError",
]
