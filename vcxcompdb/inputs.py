"""Classification of command line inputs into solutions and projects."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List

from .core.console import Console
from .paths import absolute_path
from .solution import SolutionExpander

SOLUTION_SUFFIX = ".sln"
PROJECT_SUFFIX = ".vcxproj"


@dataclass(slots=True)
class ClassifiedInputs:
    solutions: List[Path] = field(default_factory=list)
    projects: List[Path] = field(default_factory=list)

    def add(self, path: Path) -> None:
        suffix = path.suffix.lower()
        if suffix == SOLUTION_SUFFIX:
            self.solutions.append(absolute_path(path))
        elif suffix == PROJECT_SUFFIX:
            self.projects.append(absolute_path(path))


def classify_inputs(paths: Iterable[str | Path], console: Console) -> ClassifiedInputs:
    """Sort ``paths`` into solutions and projects.

    Directories are scanned one level deep. Files with other suffixes are
    ignored.
    """
    classified = ClassifiedInputs()
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            try:
                entries = sorted(path.iterdir())
            except OSError as exc:
                console.warning(f"cannot list {path}: {exc}")
                continue
            for entry in entries:
                if entry.is_file():
                    classified.add(entry)
        elif path.is_file():
            classified.add(path)
        else:
            console.warning(f"{raw} not exists")
    return classified


def _unique_sorted(paths: Iterable[Path]) -> List[Path]:
    return sorted(set(paths), key=str)


@dataclass(slots=True)
class DiscoveredInputs:
    solutions: List[Path]
    projects: List[Path]

    @property
    def all_paths(self) -> List[Path]:
        return [*self.solutions, *self.projects]


def discover_projects(paths: Iterable[str | Path], console: Console) -> DiscoveredInputs:
    """Classify inputs, expand solutions and deduplicate the project set."""
    classified = classify_inputs(paths, console)
    solutions = _unique_sorted(classified.solutions)
    expander = SolutionExpander(console)
    projects = list(classified.projects)
    for solution in solutions:
        projects.extend(expander.expand(solution))
    return DiscoveredInputs(solutions=solutions, projects=_unique_sorted(projects))
