"""Serialization of compilation records to ``compile_commands.json``."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, TextIO
import json
import os

from .errors import FatalInputError
from .translator import CompilationRecord


def should_skip(inputs: Iterable[Path], output: Path) -> bool:
    """True when ``output`` exists and no existing input is newer than it."""
    try:
        output_mtime = output.stat().st_mtime
    except OSError:
        return False
    for path in inputs:
        try:
            if path.stat().st_mtime > output_mtime:
                return False
        except OSError:
            continue
    return True


def _write_record(handle: TextIO, record: CompilationRecord) -> None:
    handle.write("\n{\n")
    handle.write(f'  "directory": {json.dumps(record.directory)},\n')
    handle.write(f'  "file": {json.dumps(record.file)},\n')
    handle.write(f'  "command": {json.dumps(record.command)}\n')
    handle.write("}")


class DatabaseWriter:
    """Stream records into a JSON array without holding them in memory.

    Records go to a sibling ``.tmp`` file that replaces ``output`` only once the
    array is complete, so an aborted run leaves any previous database intact.
    """

    def write(self, records: Iterable[CompilationRecord], output: Path) -> int:
        staging = output.with_name(output.name + ".tmp")
        try:
            handle = staging.open("w", encoding="utf-8", newline="\n")
        except OSError as exc:
            raise FatalInputError(f"Error opening file {output}: {exc}") from exc

        count = 0
        try:
            with handle:
                handle.write("[")
                for record in records:
                    if count:
                        handle.write(",")
                    _write_record(handle, record)
                    count += 1
                handle.write("\n]\n")
            try:
                os.replace(staging, output)
            except OSError as exc:
                raise FatalInputError(f"Error writing file {output}: {exc}") from exc
        except BaseException:
            staging.unlink(missing_ok=True)
            raise
        return count
