"""Per-project translation into compilation records."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Tuple

from .configuration import ConfigurationMatcher
from .core.console import Console
from .errors import RecoverableProjectError
from .flags import CompileFlags, FlagSynthesizer, classify_source
from .paths import absolute_path, to_forward_slashes
from .project_document import ProjectDocument
from .settings import BuildTarget
from .toolchains import ToolchainResolver


@dataclass(frozen=True, slots=True)
class CompilationRecord:
    directory: str
    file: str
    command: str


class ProjectTranslator:
    """Drive matching, toolchain resolution and flag synthesis for one project at a time."""

    def __init__(
        self,
        target: BuildTarget,
        *,
        resolver: ToolchainResolver,
        synthesizer: FlagSynthesizer,
        console: Console,
        matcher: ConfigurationMatcher | None = None,
    ) -> None:
        self.target = target
        self.resolver = resolver
        self.synthesizer = synthesizer
        self.console = console
        self.matcher = matcher or ConfigurationMatcher()

    def translate(self, project_path: str | Path) -> Iterator[CompilationRecord]:
        """Records for every ``ClCompile`` item of ``project_path``.

        Project-level failures are reported and yield no records.
        """
        try:
            directory, document, flags = self._prepare(project_path)
        except RecoverableProjectError as exc:
            self.console.error(str(exc))
            return iter(())
        return self._records(directory, document, flags)

    def _prepare(self, project_path: str | Path) -> Tuple[str, ProjectDocument, CompileFlags]:
        path = absolute_path(project_path)
        if not path.is_file():
            raise RecoverableProjectError(project_path, "not exists")
        document = ProjectDocument.load(path)
        settings = self.matcher.match(document, self.target)
        toolchain = self.resolver.resolve(settings.toolset, settings.sdk_version, settings.use_mfc)
        flags = self.synthesizer.synthesize(settings, toolchain)
        self.console.debug(f"{path}: toolset {settings.toolset}, SDK {settings.sdk_version}")
        return to_forward_slashes(str(path.parent)), document, flags

    def _records(self, directory: str, document: ProjectDocument, flags: CompileFlags) -> Iterator[CompilationRecord]:
        for item_group in document.root.children("ItemGroup"):
            for item in item_group.children("ClCompile"):
                include = item.attribute("Include")
                if not include:
                    self.console.warning(f"{document.path}: cannot find Include attribute of ClCompile item")
                    continue
                source = to_forward_slashes(include)
                yield CompilationRecord(
                    directory=directory,
                    file=source,
                    command=flags.command(source, classify_source(source)),
                )
