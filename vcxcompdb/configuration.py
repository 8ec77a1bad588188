"""Selection of the configuration-specific settings of a project."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Tuple

from .errors import RecoverableProjectError
from .project_document import ProjectDocument, ProjectElement
from .settings import BuildTarget

DEFAULT_SDK_VERSION = "10.0"
INHERITANCE_MARKER = "%("


class CharacterSet(str, Enum):
    ANSI = "ANSI"
    UNICODE = "Unicode"
    NOT_SET = "NotSet"

    @classmethod
    def parse(cls, value: str) -> "CharacterSet":
        text = value.strip()
        if text == "MultiByte":
            return cls.ANSI
        for member in cls:
            if member.value == text:
                return member
        return cls.NOT_SET


def split_list(value: str | None) -> Tuple[str, ...]:
    """Split a ``;``-separated MSBuild list, dropping inherited and blank entries."""

    if not value:
        return ()
    items = []
    for raw in value.split(";"):
        item = raw.strip()
        if not item or item.startswith(INHERITANCE_MARKER):
            continue
        items.append(item)
    return tuple(items)


@dataclass(frozen=True, slots=True)
class ProjectSettings:
    character_set: CharacterSet
    toolset: str
    sdk_version: str = DEFAULT_SDK_VERSION
    is_dll: bool = False
    multi_threaded: bool = False
    use_mfc: bool = False
    language_standard: str = ""
    definitions: Tuple[str, ...] = field(default_factory=tuple)
    include_directories: Tuple[str, ...] = field(default_factory=tuple)


class ConfigurationMatcher:
    """Find the settings blocks whose ``Condition`` equals the build target.

    Matching is an exact string comparison: ``'Release|x64'`` does not match a
    block conditioned on ``'release|x64'`` and there is no fallback block.
    """

    GLOBALS_LABEL = "Globals"
    CONFIGURATION_LABEL = "Configuration"

    def match(self, document: ProjectDocument, target: BuildTarget) -> ProjectSettings:
        root = document.root
        sdk_version = self._sdk_version(root.children("PropertyGroup"))

        properties = self._find_configuration_group(root.children("PropertyGroup"), target)
        if properties is None:
            raise RecoverableProjectError(
                document.path,
                f"cannot find PropertyGroup node with matched target {target.condition}",
            )

        charset = properties.child_text("CharacterSet")
        if charset is None:
            raise RecoverableProjectError(document.path, "cannot find CharacterSet node")
        toolset = properties.child_text("PlatformToolset")
        if toolset is None:
            raise RecoverableProjectError(document.path, "cannot find PlatformToolset node")

        configuration_type = (properties.child_text("ConfigurationType") or "").strip()
        use_of_mfc = (properties.child_text("UseOfMfc") or "").strip()

        definitions_group = self._find_condition(root.children("ItemDefinitionGroup"), target)
        if definitions_group is None:
            raise RecoverableProjectError(
                document.path,
                f"cannot find ItemDefinitionGroup node with matched target {target.condition}",
            )
        compile_settings = definitions_group.first("ClCompile")
        if compile_settings is None:
            raise RecoverableProjectError(document.path, "cannot find definition ClCompile node")

        runtime_library = (compile_settings.child_text("RuntimeLibrary") or "").strip()

        return ProjectSettings(
            character_set=CharacterSet.parse(charset),
            toolset=toolset.strip(),
            sdk_version=sdk_version,
            is_dll=configuration_type == "DynamicLibrary",
            multi_threaded=runtime_library in {"MultiThreaded", "MultiThreadedDLL"},
            use_mfc=use_of_mfc == "Dynamic",
            language_standard=(compile_settings.child_text("LanguageStandard") or "").strip(),
            definitions=split_list(compile_settings.child_text("PreprocessorDefinitions")),
            include_directories=split_list(compile_settings.child_text("AdditionalIncludeDirectories")),
        )

    def _sdk_version(self, groups: Iterable[ProjectElement]) -> str:
        for group in groups:
            if group.attribute("Label") != self.GLOBALS_LABEL:
                continue
            version = group.child_text("WindowsTargetPlatformVersion")
            if version is not None and version.strip():
                return version.strip()
        return DEFAULT_SDK_VERSION

    def _find_configuration_group(
        self, groups: Iterable[ProjectElement], target: BuildTarget
    ) -> ProjectElement | None:
        labelled = (group for group in groups if group.attribute("Label") == self.CONFIGURATION_LABEL)
        return self._find_condition(labelled, target)

    @staticmethod
    def _find_condition(groups: Iterable[ProjectElement], target: BuildTarget) -> ProjectElement | None:
        condition = target.condition
        for group in groups:
            if group.attribute("Condition") == condition:
                return group
        return None
