"""Resolution of MSVC toolset and Windows SDK system include directories."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Mapping, Protocol, Sequence, Tuple
import os
import re
import subprocess

from .core.command_runner import CommandError, CommandRunner
from .core.console import Console
from .errors import ToolchainResolutionError
from .paths import normalize_path

DEFAULT_PROGRAM_FILES_X86 = r"C:\Program Files (x86)"
SDK_SENTINEL_VERSION = "10.0"
SDK_SUBDIRECTORIES = ("ucrt", "um", "shared", "winrt", "cppwinrt")

LEGACY_TOOLSET = "v140"
LEGACY_REGISTRY_KEY = r"HKEY_LOCAL_MACHINE\SOFTWARE\WOW6432Node\Microsoft\VisualStudio\14.0"

TOOLSET_VERSION_RANGES: Dict[str, str] = {
    "v141": "[15.0,16.0)",  # 2017
    "v142": "[16.0,17.0)",  # 2019
    "v143": "[17.0,18.0)",  # 2022
    "v145": "[18.0,19.0)",  # 2026
}


def lexical_key(name: str) -> str:
    return name


def numeric_key(name: str) -> Tuple[Tuple[int, int | str], ...]:
    """Compare digit runs as integers so ``14.9`` sorts before ``14.10``."""
    parts: List[Tuple[int, int | str]] = []
    for token in re.findall(r"\d+|\D+", name):
        if token.isdigit():
            parts.append((0, int(token)))
        else:
            parts.append((1, token))
    return tuple(parts)


VERSION_KEYS: Dict[str, Callable[[str], object]] = {
    "lexical": lexical_key,
    "numeric": numeric_key,
}


def select_latest(names: Iterable[str], strategy: str = "lexical") -> str | None:
    """Pick the "latest" entry of ``names`` according to ``strategy``.

    The default lexical strategy is a plain string maximum, so ``v9`` is
    considered newer than ``v10``.
    """
    candidates = list(names)
    if not candidates:
        return None
    try:
        key = VERSION_KEYS[strategy]
    except KeyError:
        raise ValueError(f"Unknown version comparison strategy: {strategy}") from None
    return max(candidates, key=key)


def resolve_program_files_x86(configured: str | None, console: Console) -> str:
    if configured:
        return configured
    value = os.environ.get("ProgramFiles(x86)")
    if value:
        return value
    console.warning(f"cannot find ProgramFiles(x86) environment variable, assuming {DEFAULT_PROGRAM_FILES_X86}")
    return DEFAULT_PROGRAM_FILES_X86


@dataclass(frozen=True, slots=True)
class InstallationCriteria:
    """What to ask the installation registry for."""

    toolset: str
    version_range: str | None = None

    @property
    def legacy(self) -> bool:
        return self.toolset == LEGACY_TOOLSET


class InstallationQuery(Protocol):
    def query_installation(self, criteria: InstallationCriteria) -> str:
        """Return the installation root for ``criteria`` or raise ToolchainResolutionError."""
        ...


class VisualStudioInstallationQuery:
    """Locate Visual Studio installations through ``reg`` and ``vswhere``."""

    def __init__(
        self,
        runner: CommandRunner,
        *,
        program_files_x86: str,
        vswhere: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.runner = runner
        self.program_files_x86 = program_files_x86
        self.vswhere = vswhere or str(
            Path(program_files_x86) / "Microsoft Visual Studio" / "Installer" / "vswhere.exe"
        )
        self.timeout = timeout

    def query_installation(self, criteria: InstallationCriteria) -> str:
        if criteria.legacy:
            command = ["reg", "query", LEGACY_REGISTRY_KEY, "/v", "InstallDir"]
            return self.parse_registry_output(self._capture(command))
        if not criteria.version_range:
            raise ToolchainResolutionError(f"no version range known for toolset {criteria.toolset}")
        command = [
            self.vswhere,
            "-latest",
            "-version",
            criteria.version_range,
            "-property",
            "installationPath",
        ]
        for line in self._capture(command).splitlines():
            if line.strip():
                return line.strip()
        raise ToolchainResolutionError(
            f"no Visual Studio installation found for toolset {criteria.toolset} {criteria.version_range}"
        )

    def _capture(self, command: Sequence[str]) -> str:
        try:
            result = self.runner.run(command, check=True, timeout=self.timeout)
        except CommandError as exc:
            raise ToolchainResolutionError(str(exc)) from exc
        except subprocess.TimeoutExpired as exc:
            raise ToolchainResolutionError(f"timed out after {exc.timeout}s: {self.runner.format_command(command)}") from exc
        except OSError as exc:
            raise ToolchainResolutionError(f"cannot run {command[0]}: {exc}") from exc
        return result.stdout

    @staticmethod
    def parse_registry_output(output: str) -> str:
        """Extract the install root from ``reg query ... /v InstallDir`` output.

        The interesting line looks like
        ``InstallDir    REG_SZ    C:\\...\\Microsoft Visual Studio 14.0\\Common7\\IDE\\``.
        """
        for line in output.splitlines():
            if "InstallDir" not in line or "REG_SZ" not in line:
                continue
            value = line.split("REG_SZ", 1)[1].strip().rstrip("\\/")
            value = re.sub(r"[\\/]Common7[\\/]IDE$", "", value, flags=re.IGNORECASE)
            if value:
                return value
        raise ToolchainResolutionError("InstallDir value not found in registry output")


@dataclass(frozen=True, slots=True)
class ResolvedToolchain:
    include_directories: Tuple[str, ...] = field(default_factory=tuple)
    sdk_directories: Tuple[str, ...] = field(default_factory=tuple)
    compiler: str | None = None

    @property
    def system_directories(self) -> Tuple[str, ...]:
        return self.include_directories + self.sdk_directories


class ToolchainResolver:
    """Turn a platform toolset and SDK version into system include directories.

    Every failure degrades to an empty contribution plus a warning. Results
    are cached for the lifetime of the resolver, which is one run.
    """

    def __init__(
        self,
        query: InstallationQuery,
        console: Console,
        *,
        program_files_x86: str,
        version_compare: str = "lexical",
        toolset_ranges: Mapping[str, str] | None = None,
    ) -> None:
        if version_compare not in VERSION_KEYS:
            raise ValueError(f"Unknown version comparison strategy: {version_compare}")
        self.query = query
        self.console = console
        self.program_files_x86 = program_files_x86
        self.version_compare = version_compare
        self.toolset_ranges = dict(toolset_ranges or TOOLSET_VERSION_RANGES)
        self._cache: Dict[Tuple[str, str, bool], ResolvedToolchain] = {}
        self._install_roots: Dict[str, Path | None] = {}

    @property
    def sdk_include_root(self) -> Path:
        return Path(self.program_files_x86) / "Windows Kits" / "10" / "Include"

    def resolve(self, toolset: str, sdk_version: str, use_mfc: bool) -> ResolvedToolchain:
        key = (toolset, sdk_version, use_mfc)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        includes, compiler = self._toolset_directories(toolset, use_mfc)
        resolved = ResolvedToolchain(
            include_directories=tuple(normalize_path(path) for path in includes),
            sdk_directories=tuple(normalize_path(path) for path in self.sdk_directories(sdk_version)),
            compiler=normalize_path(compiler) if compiler else None,
        )
        self.console.debug(
            f"toolchain {toolset} (SDK {sdk_version}, MFC {'on' if use_mfc else 'off'}): "
            f"{len(resolved.system_directories)} system include directories"
        )
        self._cache[key] = resolved
        return resolved

    def sdk_directories(self, sdk_version: str) -> List[Path]:
        version = sdk_version
        if version == SDK_SENTINEL_VERSION:
            latest = select_latest(self._list_directories(self.sdk_include_root), self.version_compare)
            if latest is None:
                self.console.warning(f"cannot find any Windows SDK under {self.sdk_include_root}")
                return []
            version = latest
        base = self.sdk_include_root / version
        return [base / name for name in SDK_SUBDIRECTORIES]

    def _toolset_directories(self, toolset: str, use_mfc: bool) -> Tuple[List[Path], Path | None]:
        if toolset == LEGACY_TOOLSET:
            root = self._install_root(InstallationCriteria(toolset))
            if root is None:
                return [], None
            vc = root / "VC"
            includes = [vc / "include"]
            if use_mfc:
                includes.append(vc / "atlmfc" / "include")
            return includes, vc / "bin" / "cl.exe"

        version_range = self.toolset_ranges.get(toolset)
        if version_range is None:
            self.console.warning(f"unsupported platform toolset '{toolset}', compiler headers omitted")
            return [], None
        root = self._install_root(InstallationCriteria(toolset, version_range))
        if root is None:
            return [], None

        msvc_root = root / "VC" / "Tools" / "MSVC"
        msvc_version = select_latest(self._list_directories(msvc_root), self.version_compare)
        if msvc_version is None:
            self.console.warning(f"cannot find MSVC version under {msvc_root}")
            return [], None
        msvc = msvc_root / msvc_version
        includes: List[Path] = []
        if use_mfc:
            includes.append(msvc / "atlmfc" / "include")
        includes.append(msvc / "include")
        includes.append(root / "VC" / "Auxiliary" / "VS" / "include")
        return includes, msvc / "bin" / "Hostx64" / "x64" / "cl.exe"

    def _install_root(self, criteria: InstallationCriteria) -> Path | None:
        if criteria.toolset in self._install_roots:
            return self._install_roots[criteria.toolset]
        try:
            root: Path | None = Path(self.query.query_installation(criteria))
        except ToolchainResolutionError as exc:
            self.console.warning(f"cannot locate toolset {criteria.toolset}: {exc}")
            root = None
        self._install_roots[criteria.toolset] = root
        return root

    def _list_directories(self, path: Path) -> List[str]:
        try:
            return [entry.name for entry in path.iterdir() if entry.is_dir()]
        except OSError as exc:
            self.console.warning(f"cannot list {path}: {exc}")
            return []
