"""Path spelling helpers shared by the translator and the toolchain resolver."""
from __future__ import annotations

from pathlib import Path
import ntpath
import os


def to_forward_slashes(value: str) -> str:
    return value.replace("\\", "/")


def normalize_path(value: str | Path) -> str:
    """Lexically normalize ``value`` and spell it with ``/`` separators.

    Windows rules are applied on every host so that ``a\\..\\b`` and
    ``a/../b`` collapse identically. Nothing touches the filesystem.
    """

    text = str(value)
    if not text:
        return text
    return to_forward_slashes(ntpath.normpath(text))


def absolute_path(value: str | Path) -> Path:
    """Absolute, lexically normal form of ``value`` using native separators."""

    return Path(os.path.normpath(os.path.abspath(os.fspath(value))))


def native_relative(value: str) -> Path:
    """Turn a project-file relative reference (``src\\a.cpp``) into a native path."""

    return Path(to_forward_slashes(value))
