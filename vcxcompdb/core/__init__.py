"""Shared core utilities: process execution, configuration files and console output."""

from .command_runner import (
    CommandError,
    CommandResult,
    CommandRunner,
    RecordingCommandRunner,
    ScriptedResponse,
    SubprocessCommandRunner,
)
from .config_loader import FILE_LOADERS, load_config_file, load_section, locate_config_file
from .console import Console

__all__ = [
    "CommandError",
    "CommandResult",
    "CommandRunner",
    "RecordingCommandRunner",
    "ScriptedResponse",
    "SubprocessCommandRunner",
    "FILE_LOADERS",
    "load_config_file",
    "load_section",
    "locate_config_file",
    "Console",
]
