"""
Console output handler shared by every component of a run.
"""
import sys


class Console:
    """Simple console output handler with configurable log level.

    Levels: none < error < warning < info < debug
    Errors and warnings go to stderr, everything else to stdout.
    """

    LEVELS = {
        "none": 0,
        "error": 1,
        "warning": 2,
        "info": 3,
        "debug": 4,
    }

    def __init__(self, level: str = "info"):
        if level not in self.LEVELS:
            raise ValueError(f"Unknown log level: {level}")
        self.level_name = level
        self.level = self.LEVELS[level]

    def info(self, message: str) -> None:
        if self.level >= self.LEVELS["info"]:
            print(message)

    def error(self, message: str) -> None:
        if self.level >= self.LEVELS["error"]:
            print(f"[ERROR] {message}", file=sys.stderr)

    def warning(self, message: str) -> None:
        if self.level >= self.LEVELS["warning"]:
            print(f"[WARNING] {message}", file=sys.stderr)

    def debug(self, message: str) -> None:
        if self.level >= self.LEVELS["debug"]:
            print(f"[DEBUG] {message}")
