from __future__ import annotations

from pathlib import Path
import subprocess
import tempfile
import textwrap
import unittest

from project_samples import FakeInstallationQuery, make_visual_studio, make_windows_kits

from vcxcompdb.core.command_runner import CommandRunner, RecordingCommandRunner, ScriptedResponse
from vcxcompdb.core.console import Console
from vcxcompdb.errors import ToolchainResolutionError
from vcxcompdb.paths import normalize_path
from vcxcompdb.toolchains import (
    InstallationCriteria,
    ToolchainResolver,
    VisualStudioInstallationQuery,
    numeric_key,
    select_latest,
)


class SelectLatestTests(unittest.TestCase):
    def test_lexical_maximum(self) -> None:
        self.assertEqual(select_latest(["10.0.17763.0", "10.0.19041.0"]), "10.0.19041.0")

    def test_lexical_keeps_string_ordering(self) -> None:
        self.assertEqual(select_latest(["v10", "v9"]), "v9")
        self.assertEqual(select_latest(["14.9.1", "14.10.2"]), "14.9.1")

    def test_numeric_strategy(self) -> None:
        self.assertEqual(select_latest(["v10", "v9"], "numeric"), "v10")
        self.assertEqual(select_latest(["14.9.1", "14.10.2"], "numeric"), "14.10.2")
        self.assertLess(numeric_key("10.0.9"), numeric_key("10.0.10"))

    def test_empty(self) -> None:
        self.assertIsNone(select_latest([]))

    def test_unknown_strategy(self) -> None:
        with self.assertRaises(ValueError):
            select_latest(["a"], "semver")


class ToolchainResolverTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)
        self.program_files = self.root / "pf86"
        self.vs2022 = make_visual_studio(self.root / "vs2022", "14.36.32532", "14.38.33130")
        self.vs2015 = self.root / "vs2015"
        self.query = FakeInstallationQuery({"v143": self.vs2022, "v140": self.vs2015})
        self.console = Console("none")

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def _resolver(self, **kwargs) -> ToolchainResolver:
        return ToolchainResolver(
            self.query,
            self.console,
            program_files_x86=str(self.program_files),
            **kwargs,
        )

    def test_sdk_sentinel_selects_latest_installed(self) -> None:
        include_root = make_windows_kits(self.program_files, "10.0.17763.0", "10.0.19041.0")
        directories = self._resolver().sdk_directories("10.0")
        self.assertEqual(
            directories,
            [include_root / "10.0.19041.0" / name for name in ("ucrt", "um", "shared", "winrt", "cppwinrt")],
        )

    def test_explicit_sdk_version_used_verbatim(self) -> None:
        directories = self._resolver().sdk_directories("10.0.22621.0")
        self.assertEqual(len(directories), 5)
        self.assertTrue(all(path.parent.name == "10.0.22621.0" for path in directories))

    def test_missing_sdk_root_degrades_to_empty(self) -> None:
        self.assertEqual(self._resolver().sdk_directories("10.0"), [])

    def test_modern_toolset_without_mfc(self) -> None:
        make_windows_kits(self.program_files)
        toolchain = self._resolver().resolve("v143", "10.0", False)
        msvc = self.vs2022 / "VC" / "Tools" / "MSVC" / "14.38.33130"
        self.assertEqual(
            toolchain.include_directories,
            (
                normalize_path(msvc / "include"),
                normalize_path(self.vs2022 / "VC" / "Auxiliary" / "VS" / "include"),
            ),
        )
        self.assertFalse(any("atlmfc" in path for path in toolchain.system_directories))
        self.assertEqual(toolchain.compiler, normalize_path(msvc / "bin" / "Hostx64" / "x64" / "cl.exe"))
        self.assertEqual(len(toolchain.sdk_directories), 5)
        self.assertEqual(toolchain.system_directories[-1].rsplit("/", 1)[-1], "cppwinrt")

    def test_modern_toolset_mfc_precedes_core_headers(self) -> None:
        toolchain = self._resolver().resolve("v143", "10.0", True)
        msvc = self.vs2022 / "VC" / "Tools" / "MSVC" / "14.38.33130"
        self.assertEqual(toolchain.include_directories[0], normalize_path(msvc / "atlmfc" / "include"))
        self.assertEqual(toolchain.include_directories[1], normalize_path(msvc / "include"))

    def test_legacy_toolset_layout(self) -> None:
        toolchain = self._resolver().resolve("v140", "10.0.17763.0", True)
        self.assertEqual(
            toolchain.include_directories,
            (
                normalize_path(self.vs2015 / "VC" / "include"),
                normalize_path(self.vs2015 / "VC" / "atlmfc" / "include"),
            ),
        )
        self.assertEqual(toolchain.compiler, normalize_path(self.vs2015 / "VC" / "bin" / "cl.exe"))
        self.assertTrue(self.query.calls[0].legacy)

    def test_failed_query_degrades_to_empty(self) -> None:
        toolchain = self._resolver().resolve("v142", "10.0.19041.0", False)
        self.assertEqual(toolchain.include_directories, ())
        self.assertIsNone(toolchain.compiler)
        self.assertEqual(len(toolchain.sdk_directories), 5)

    def test_unknown_toolset_is_not_queried(self) -> None:
        toolchain = self._resolver().resolve("ClangCL", "10.0.19041.0", False)
        self.assertEqual(toolchain.include_directories, ())
        self.assertEqual(self.query.calls, [])

    def test_results_are_cached_per_combination(self) -> None:
        resolver = self._resolver()
        first = resolver.resolve("v143", "10.0", False)
        second = resolver.resolve("v143", "10.0", False)
        resolver.resolve("v143", "10.0", True)
        self.assertIs(first, second)
        self.assertEqual(len(self.query.calls), 1)

    def test_numeric_comparison_changes_msvc_choice(self) -> None:
        make_visual_studio(self.vs2022, "14.100.1")
        lexical = self._resolver().resolve("v143", "10.0", False)
        numeric = self._resolver(version_compare="numeric").resolve("v143", "10.0", False)
        self.assertIn("/14.38.33130/", lexical.include_directories[0])
        self.assertIn("/14.100.1/", numeric.include_directories[0])


class VisualStudioInstallationQueryTests(unittest.TestCase):
    def test_vswhere_command_and_first_line(self) -> None:
        runner = RecordingCommandRunner(
            {"vswhere.exe": "C:\\Program Files\\Microsoft Visual Studio\\2022\\Community\r\n"}
        )
        query = VisualStudioInstallationQuery(runner, program_files_x86="C:\\Program Files (x86)", timeout=5)
        root = query.query_installation(InstallationCriteria("v143", "[17.0,18.0)"))
        self.assertEqual(root, "C:\\Program Files\\Microsoft Visual Studio\\2022\\Community")
        recorded = runner.commands[0]
        self.assertEqual(recorded.command[1:], ["-latest", "-version", "[17.0,18.0)", "-property", "installationPath"])
        self.assertEqual(runner.programs(), ["vswhere.exe"])
        self.assertEqual(recorded.timeout, 5)

    def test_empty_vswhere_output_is_an_error(self) -> None:
        query = VisualStudioInstallationQuery(RecordingCommandRunner(), program_files_x86="C:\\PF86")
        with self.assertRaises(ToolchainResolutionError):
            query.query_installation(InstallationCriteria("v142", "[16.0,17.0)"))

    def test_failing_command_is_an_error(self) -> None:
        runner = RecordingCommandRunner({"reg": ScriptedResponse(returncode=1, stderr="not found")})
        query = VisualStudioInstallationQuery(runner, program_files_x86="C:\\PF86")
        with self.assertRaises(ToolchainResolutionError):
            query.query_installation(InstallationCriteria("v140"))

    def test_missing_executable_and_timeout_are_errors(self) -> None:
        class ExplodingRunner(CommandRunner):
            def __init__(self, error: BaseException) -> None:
                self.error = error

            def run(self, command, *, cwd=None, check=True, timeout=None):
                raise self.error

        for error in (FileNotFoundError("vswhere.exe"), subprocess.TimeoutExpired("vswhere.exe", 1.0)):
            query = VisualStudioInstallationQuery(ExplodingRunner(error), program_files_x86="C:\\PF86")
            with self.assertRaises(ToolchainResolutionError):
                query.query_installation(InstallationCriteria("v143", "[17.0,18.0)"))

    def test_registry_output_parsing(self) -> None:
        output = textwrap.dedent(
            """

            HKEY_LOCAL_MACHINE\\SOFTWARE\\WOW6432Node\\Microsoft\\VisualStudio\\14.0
                InstallDir    REG_SZ    C:\\Program Files (x86)\\Microsoft Visual Studio 14.0\\Common7\\IDE\\

            """
        )
        runner = RecordingCommandRunner({"reg": output})
        query = VisualStudioInstallationQuery(runner, program_files_x86="C:\\PF86")
        root = query.query_installation(InstallationCriteria("v140"))
        self.assertEqual(root, "C:\\Program Files (x86)\\Microsoft Visual Studio 14.0")
        self.assertEqual(runner.commands[0].command[:2], ["reg", "query"])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
