"""Running the installation queries (``reg``, ``vswhere``) and capturing their output."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Sequence
import shlex
import subprocess


@dataclass
class CommandResult:
    """Represents the outcome of an executed command."""

    command: Sequence[str]
    returncode: int
    stdout: str
    stderr: str


class CommandError(RuntimeError):
    """Raised when a checked command exits non-zero."""

    def __init__(self, result: CommandResult):
        detail = result.stderr.strip() or result.stdout.strip() or "no output"
        super().__init__(
            f"{shlex.join(result.command)} exited with {result.returncode}: {detail}"
        )
        self.result = result


class CommandRunner:
    """Abstract command runner interface."""

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        check: bool = True,
        timeout: float | None = None,
    ) -> CommandResult:
        raise NotImplementedError

    def format_command(self, command: Sequence[str]) -> str:
        return shlex.join(command)


class SubprocessCommandRunner(CommandRunner):
    """Command runner backed by :func:`subprocess.run`.

    ``timeout`` is handed to :mod:`subprocess` unchanged, so ``None`` waits for
    the child indefinitely and an expired timeout raises
    :class:`subprocess.TimeoutExpired`.
    """

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        check: bool = True,
        timeout: float | None = None,
    ) -> CommandResult:
        process = subprocess.run(
            list(command),
            cwd=str(cwd) if cwd else None,
            capture_output=True,
            text=True,
            check=False,
            timeout=timeout,
        )
        result = CommandResult(
            command=list(command),
            returncode=process.returncode,
            stdout=process.stdout or "",
            stderr=process.stderr or "",
        )
        if check and result.returncode != 0:
            raise CommandError(result)
        return result


@dataclass(slots=True)
class RecordedCommand:
    command: List[str]
    cwd: str | None
    timeout: float | None


@dataclass
class ScriptedResponse:
    stdout: str = ""
    returncode: int = 0
    stderr: str = ""


class RecordingCommandRunner(CommandRunner):
    """Records every command and answers it from a table of scripted responses.

    Responses are keyed by the lower-cased basename of the executable, so
    ``C:\\...\\vswhere.exe`` and ``vswhere.exe`` share one entry. Programs
    without an entry succeed with empty output.
    """

    def __init__(self, responses: Mapping[str, ScriptedResponse | str] | None = None) -> None:
        self.commands: List[RecordedCommand] = []
        self.responses: Dict[str, ScriptedResponse] = {}
        for name, response in (responses or {}).items():
            if isinstance(response, str):
                response = ScriptedResponse(stdout=response)
            self.responses[name.lower()] = response

    @staticmethod
    def program_name(command: Sequence[str]) -> str:
        if not command:
            return ""
        return command[0].replace("\\", "/").rsplit("/", 1)[-1].lower()

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        check: bool = True,
        timeout: float | None = None,
    ) -> CommandResult:
        self.commands.append(
            RecordedCommand(command=list(command), cwd=str(cwd) if cwd else None, timeout=timeout)
        )
        response = self.responses.get(self.program_name(command), ScriptedResponse())
        result = CommandResult(list(command), response.returncode, response.stdout, response.stderr)
        if check and result.returncode != 0:
            raise CommandError(result)
        return result

    def programs(self) -> List[str]:
        """Return the executable basenames run so far, in order."""

        return [self.program_name(record.command) for record in self.commands]


__all__ = [
    "CommandError",
    "CommandResult",
    "CommandRunner",
    "RecordedCommand",
    "RecordingCommandRunner",
    "ScriptedResponse",
    "SubprocessCommandRunner",
]
