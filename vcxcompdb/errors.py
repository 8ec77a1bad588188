"""Exception hierarchy for compile database generation."""
from __future__ import annotations


class CompdbError(RuntimeError):
    """Base class for errors raised by vcxcompdb."""


class FatalInputError(CompdbError):
    """The run cannot continue: no inputs, no projects, or an unwritable output."""


class ConfigurationError(FatalInputError):
    """A configuration file or option value is invalid."""


class RecoverableProjectError(CompdbError):
    """A single project cannot be translated; the run continues without it."""

    def __init__(self, path: object, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path
        self.reason = message


class ToolchainResolutionError(CompdbError):
    """An installation query failed; callers degrade to an empty result."""


__all__ = [
    "CompdbError",
    "ConfigurationError",
    "FatalInputError",
    "RecoverableProjectError",
    "ToolchainResolutionError",
]
