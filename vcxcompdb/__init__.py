"""Generate compile_commands.json from Visual Studio solutions and projects."""

from .cli import main

__all__ = ["main"]
