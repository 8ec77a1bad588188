"""Compiler flag synthesis from matched project settings."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Tuple

from .configuration import CharacterSet, ProjectSettings
from .paths import normalize_path
from .toolchains import ResolvedToolchain

LANGUAGE_STANDARDS: Dict[str, str] = {
    "stdcpp11": "11",
    "stdcpp14": "14",
    "stdcpp17": "17",
    "stdcpp20": "20",
    "stdcpp23": "23",
    "stdcpplatest": "latest",
}
DEFAULT_STANDARD = "14"


class Language(str, Enum):
    C = "c"
    CXX = "c++"


def classify_source(path: str) -> Language:
    """A ``.c`` suffix, in any case, is C. Everything else is compiled as C++."""
    if path.lower().endswith(".c"):
        return Language.C
    return Language.CXX


@dataclass(frozen=True, slots=True)
class FlagStyle:
    """Spelling of each flag family for one compiler front end."""

    name: str
    syntax_only: Tuple[str, ...]
    language_selectors: Mapping[Language, Tuple[str, ...]]
    define_prefix: str
    include_prefix: str
    standard_flags: Mapping[str, str]
    compilers: Mapping[Language, str] | None = None


FLAG_STYLES: Dict[str, FlagStyle] = {
    "clang": FlagStyle(
        name="clang",
        syntax_only=("-fsyntax-only",),
        language_selectors={Language.CXX: ("-x", "c++"), Language.C: ("-x", "c")},
        define_prefix="-D",
        include_prefix="-I",
        standard_flags={
            "11": "-std=c++11",
            "14": "-std=c++14",
            "17": "-std=c++17",
            "20": "-std=c++20",
            "23": "-std=c++23",
            "latest": "-std=c++2c",
        },
        compilers={Language.CXX: "clang++", Language.C: "clang"},
    ),
    "msvc": FlagStyle(
        name="msvc",
        syntax_only=("/Zs",),
        language_selectors={Language.CXX: ("/TP",), Language.C: ("/TC",)},
        define_prefix="/D",
        include_prefix="/I",
        standard_flags={
            "11": "/std:c++11",
            "14": "/std:c++14",
            "17": "/std:c++17",
            "20": "/std:c++20",
            "23": "/std:c++23",
            "latest": "/std:c++latest",
        },
    ),
}

MSVC_DEFAULT_COMPILER = "cl.exe"


def quote_token(token: str) -> str:
    """Wrap ``token`` in double quotes when it contains whitespace."""
    if any(char.isspace() for char in token):
        return f'"{token}"'
    return token


def escape_definition(definition: str) -> str:
    return definition.replace("\\", "\\\\").replace('"', '\\"')


def standard_version(language_standard: str) -> str:
    return LANGUAGE_STANDARDS.get(language_standard, DEFAULT_STANDARD)


@dataclass(frozen=True, slots=True)
class CompileFlags:
    """Flags shared by every source file of one project."""

    style: FlagStyle
    compilers: Mapping[Language, str]
    definitions: Tuple[str, ...] = field(default_factory=tuple)
    standard: str = ""
    include_directories: Tuple[str, ...] = field(default_factory=tuple)

    def for_language(self, language: Language) -> List[str]:
        flags: List[str] = [*self.style.syntax_only, *self.style.language_selectors[language]]
        flags.extend(self.definitions)
        if language is Language.CXX:
            flags.append(self.standard)
        flags.extend(self.include_directories)
        return flags

    def command(self, source: str, language: Language | None = None) -> str:
        language = language or classify_source(source)
        parts = [quote_token(self.compilers[language]), *self.for_language(language), quote_token(source)]
        return " ".join(parts)


class FlagSynthesizer:
    """Build the ordered flag list: definitions, built-ins, standard, includes."""

    def __init__(self, style: str | FlagStyle = "clang", *, compiler: str | None = None) -> None:
        if isinstance(style, str):
            try:
                style = FLAG_STYLES[style]
            except KeyError:
                raise ValueError(f"Unknown flag style: {style}") from None
        self.style = style
        self.compiler = compiler

    def synthesize(self, settings: ProjectSettings, toolchain: ResolvedToolchain) -> CompileFlags:
        style = self.style
        definitions = [self._define(escape_definition(item)) for item in settings.definitions]
        definitions.extend(self._define(item) for item in self.builtin_definitions(settings))

        includes = [self._include(path) for path in toolchain.system_directories]
        includes.extend(self._include(normalize_path(path)) for path in settings.include_directories)

        return CompileFlags(
            style=style,
            compilers=self._compilers(toolchain),
            definitions=tuple(definitions),
            standard=style.standard_flags[standard_version(settings.language_standard)],
            include_directories=tuple(includes),
        )

    @staticmethod
    def builtin_definitions(settings: ProjectSettings) -> List[str]:
        names: List[str] = []
        if settings.character_set is CharacterSet.UNICODE:
            names.extend(["UNICODE", "_UNICODE"])
        if settings.use_mfc:
            names.append("_AFXDLL")
        if settings.multi_threaded:
            names.append("_MT")
        if settings.is_dll:
            names.append("_DLL")
        return names

    def _define(self, definition: str) -> str:
        return quote_token(f"{self.style.define_prefix}{definition}")

    def _include(self, directory: str) -> str:
        return quote_token(f"{self.style.include_prefix}{directory}")

    def _compilers(self, toolchain: ResolvedToolchain) -> Dict[Language, str]:
        if self.compiler:
            return {Language.CXX: self.compiler, Language.C: self.compiler}
        if self.style.compilers:
            return dict(self.style.compilers)
        compiler = toolchain.compiler or MSVC_DEFAULT_COMPILER
        return {Language.CXX: compiler, Language.C: compiler}
