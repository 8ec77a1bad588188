"""Run configuration: build target selection and tool-wide options."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from .errors import ConfigurationError

OUTPUT_FILENAME = "compile_commands.json"
DEFAULT_TARGET = "Release|x64"
FLAG_STYLES = ("clang", "msvc")
VERSION_COMPARISONS = ("lexical", "numeric")


@dataclass(frozen=True, slots=True)
class BuildTarget:
    """A ``Configuration|Platform`` pair and its MSBuild condition string."""

    selector: str

    @classmethod
    def from_selector(cls, selector: str) -> "BuildTarget":
        if not selector:
            raise ConfigurationError("Build target must not be empty")
        return cls(selector=selector)

    @property
    def condition(self) -> str:
        return f"'$(Configuration)|$(Platform)'=='{self.selector}'"

    @property
    def configuration(self) -> str:
        return self.selector.partition("|")[0]

    @property
    def platform(self) -> str:
        return self.selector.partition("|")[2]

    def __str__(self) -> str:
        return self.selector


@dataclass(frozen=True, slots=True)
class RunConfiguration:
    target: BuildTarget
    output_directory: Path
    flag_style: str = "clang"
    compiler: str | None = None
    version_compare: str = "lexical"
    program_files_x86: str | None = None
    vswhere: str | None = None
    query_timeout: float | None = None
    force: bool = False

    @property
    def output_path(self) -> Path:
        return self.output_directory / OUTPUT_FILENAME

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RunConfiguration":
        allowed_keys = {
            "target",
            "output_directory",
            "flag_style",
            "compiler",
            "version_compare",
            "program_files_x86",
            "vswhere",
            "query_timeout",
            "force",
            "log_level",
        }
        unknown = {str(key) for key in data.keys() if str(key) not in allowed_keys}
        if unknown:
            joined = ", ".join(sorted(unknown))
            raise ConfigurationError(f"Configuration contains unknown keys: {joined}")

        flag_style = str(data.get("flag_style") or "clang").lower()
        if flag_style not in FLAG_STYLES:
            raise ConfigurationError(
                f"Unknown flag style '{flag_style}'. Supported: {', '.join(FLAG_STYLES)}"
            )
        version_compare = str(data.get("version_compare") or "lexical").lower()
        if version_compare not in VERSION_COMPARISONS:
            raise ConfigurationError(
                f"Unknown version comparison '{version_compare}'. Supported: {', '.join(VERSION_COMPARISONS)}"
            )

        timeout_value = data.get("query_timeout")
        query_timeout: float | None = None
        if timeout_value is not None:
            try:
                query_timeout = float(timeout_value)
            except (TypeError, ValueError) as exc:
                raise ConfigurationError(f"query_timeout must be a number, got {timeout_value!r}") from exc
            if query_timeout <= 0:
                raise ConfigurationError("query_timeout must be positive")

        force = data.get("force", False)
        if force is None:
            force = False
        if not isinstance(force, bool):
            raise ConfigurationError(f"force must be true or false, got {force!r}")

        compiler = data.get("compiler")
        program_files_x86 = data.get("program_files_x86")
        vswhere = data.get("vswhere")
        return cls(
            target=BuildTarget.from_selector(str(data.get("target") or DEFAULT_TARGET)),
            output_directory=Path(str(data.get("output_directory") or ".")),
            flag_style=flag_style,
            compiler=str(compiler) if compiler else None,
            version_compare=version_compare,
            program_files_x86=str(program_files_x86) if program_files_x86 else None,
            vswhere=str(vswhere) if vswhere else None,
            query_timeout=query_timeout,
            force=force,
        )
