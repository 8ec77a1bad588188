"""Extraction of member project paths from ``.sln`` files."""
from __future__ import annotations

from pathlib import Path
from typing import List
import re

from .core.console import Console
from .paths import absolute_path, native_relative

PROJECT_REFERENCE_PATTERN = re.compile(r'"([^"]+\.vcxproj)"', re.IGNORECASE)


class SolutionExpander:
    """Find quoted ``*.vcxproj`` references in a solution.

    Solution syntax is otherwise ignored; no grammar is parsed.
    """

    def __init__(self, console: Console) -> None:
        self.console = console

    def expand(self, solution_path: str | Path) -> List[Path]:
        path = absolute_path(solution_path)
        try:
            content = path.read_text(encoding="utf-8-sig", errors="replace")
        except OSError as exc:
            self.console.error(f"Error opening file: {solution_path}: {exc}")
            return []

        projects: List[Path] = []
        for match in PROJECT_REFERENCE_PATTERN.finditer(content):
            projects.append(absolute_path(path.parent / native_relative(match.group(1))))
        self.console.debug(f"{path}: {len(projects)} project reference(s)")
        return projects
