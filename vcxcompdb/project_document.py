"""Read-only view over a parsed ``.vcxproj`` document.

MSBuild files declare a default XML namespace. Lookups here are done by local
tag name so callers can write ``first("PropertyGroup")`` without a namespace
map.
"""
from __future__ import annotations

from pathlib import Path
from typing import Iterator
import xml.etree.ElementTree as ET

from .errors import RecoverableProjectError


def _local_name(tag: str) -> str:
    if "}" in tag:
        return tag.split("}", 1)[1]
    return tag


class ProjectElement:
    """A single element of a project document."""

    __slots__ = ("_element",)

    def __init__(self, element: ET.Element):
        self._element = element

    @property
    def tag(self) -> str:
        return _local_name(self._element.tag)

    @property
    def text(self) -> str:
        return self._element.text or ""

    def attribute(self, name: str) -> str | None:
        value = self._element.get(name)
        if value is not None:
            return value
        for key, candidate in self._element.attrib.items():
            if _local_name(key) == name:
                return candidate
        return None

    def children(self, tag: str) -> Iterator["ProjectElement"]:
        """Direct children named ``tag``, in document order."""
        for child in self._element:
            if isinstance(child.tag, str) and _local_name(child.tag) == tag:
                yield ProjectElement(child)

    def first(self, tag: str) -> "ProjectElement | None":
        return next(self.children(tag), None)

    def child_text(self, tag: str) -> str | None:
        child = self.first(tag)
        if child is None:
            return None
        return child.text

    def __repr__(self) -> str:
        return f"ProjectElement({self.tag!r})"


class ProjectDocument:
    """Parsed project file rooted at its ``<Project>`` element."""

    def __init__(self, path: Path, root: ProjectElement):
        self.path = path
        self.root = root

    @classmethod
    def from_bytes(cls, data: bytes, path: Path) -> "ProjectDocument":
        try:
            element = ET.fromstring(data)
        except (ET.ParseError, LookupError, ValueError) as exc:
            # LookupError: unknown encoding named by the XML declaration
            raise RecoverableProjectError(path, f"malformed project file: {exc}") from exc
        root = ProjectElement(element)
        if root.tag != "Project":
            raise RecoverableProjectError(path, "cannot find root Project node")
        return cls(path, root)

    @classmethod
    def load(cls, path: Path) -> "ProjectDocument":
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise RecoverableProjectError(path, f"cannot read project file: {exc}") from exc
        return cls.from_bytes(data, path)
