"""Command line interface for the compile database generator."""
from __future__ import annotations

from argparse import ArgumentParser, Namespace
from itertools import chain
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping
import sys

from .core.command_runner import SubprocessCommandRunner
from .core.config_loader import load_section, locate_config_file
from .core.console import Console
from .database import DatabaseWriter, should_skip
from .errors import ConfigurationError, FatalInputError
from .flags import FlagSynthesizer
from .inputs import discover_projects
from .paths import absolute_path
from .settings import DEFAULT_TARGET, FLAG_STYLES, OUTPUT_FILENAME, VERSION_COMPARISONS, RunConfiguration
from .toolchains import ToolchainResolver, VisualStudioInstallationQuery, resolve_program_files_x86
from .translator import ProjectTranslator

CONFIG_ENV_VAR = "VCXCOMPDB_CONFIG"
CONFIG_SECTION = "compdb"


def _build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="vcxcompdb",
        description=f"Generate {OUTPUT_FILENAME} from Visual Studio .sln/.vcxproj files",
        add_help=False,
    )
    parser.add_argument("-h", "--help", action="store_true", help="Produce help message")
    parser.add_argument(
        "inputs",
        nargs="*",
        metavar="PATH",
        help="A .sln or .vcxproj file, or a directory containing .sln/.vcxproj files",
    )
    parser.add_argument(
        "-i",
        "--input-path",
        dest="input_paths",
        action="append",
        nargs="+",
        default=[],
        metavar="PATH",
        help="Additional input paths (repeatable)",
    )
    parser.add_argument("-t", "--target", help=f"Build target (default: {DEFAULT_TARGET})")
    parser.add_argument("-o", "--output-directory", help="Output directory (default: current directory)")
    parser.add_argument("-c", "--config", type=Path, help=f"Configuration file (TOML, JSON or YAML); also ${CONFIG_ENV_VAR}")
    parser.add_argument("--flag-style", choices=FLAG_STYLES, help="Compiler flag syntax (default: clang)")
    parser.add_argument("--compiler", help="Compiler executable written into every command")
    parser.add_argument(
        "--version-compare",
        choices=VERSION_COMPARISONS,
        help="How the latest MSVC/SDK version directory is chosen (default: lexical)",
    )
    parser.add_argument("-f", "--force", action="store_true", default=None, help="Regenerate even when the output is up to date")
    parser.add_argument(
        "-l",
        "--log",
        choices=list(Console.LEVELS),
        help="Set log level (default: info)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output (maps to debug)")
    return parser


def _flatten_arg_groups(groups: Iterable[Iterable[str]]) -> List[str]:
    flattened: List[str] = []
    for group in groups:
        for value in group:
            if value:
                flattened.append(value)
    return flattened


def _config_file_values(args: Namespace) -> Mapping[str, Any]:
    return load_section(locate_config_file(args.config, CONFIG_ENV_VAR), CONFIG_SECTION)


def _merge_options(args: Namespace, file_values: Mapping[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = dict(file_values)
    cli_values = {
        "target": args.target,
        "output_directory": args.output_directory,
        "flag_style": args.flag_style,
        "compiler": args.compiler,
        "version_compare": args.version_compare,
        "force": args.force,
    }
    for key, value in cli_values.items():
        if value is not None:
            merged[key] = value
    return merged


def _log_level(args: Namespace, file_values: Mapping[str, Any]) -> str:
    if args.log:
        return args.log
    if args.verbose:
        return "debug"
    level = str(file_values.get("log_level") or "info").lower()
    return level if level in Console.LEVELS else "info"


def _make_translator(config: RunConfiguration, console: Console) -> ProjectTranslator:
    program_files_x86 = resolve_program_files_x86(config.program_files_x86, console)
    query = VisualStudioInstallationQuery(
        SubprocessCommandRunner(),
        program_files_x86=program_files_x86,
        vswhere=config.vswhere,
        timeout=config.query_timeout,
    )
    resolver = ToolchainResolver(
        query,
        console,
        program_files_x86=program_files_x86,
        version_compare=config.version_compare,
    )
    synthesizer = FlagSynthesizer(config.flag_style, compiler=config.compiler)
    return ProjectTranslator(config.target, resolver=resolver, synthesizer=synthesizer, console=console)


def main(argv: Iterable[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(sys.argv[1:] if argv is None else argv))

    if args.help:
        parser.print_help()
        return 1

    try:
        file_values = _config_file_values(args)
    except ConfigurationError as exc:
        Console("error").error(str(exc))
        return 1
    console = Console(_log_level(args, file_values))

    try:
        config = RunConfiguration.from_mapping(_merge_options(args, file_values))
    except ConfigurationError as exc:
        console.error(str(exc))
        return 1

    inputs = [*args.inputs, *_flatten_arg_groups(args.input_paths)]
    if not inputs:
        console.error("No input file is specified.")
        return 1

    discovered = discover_projects(inputs, console)
    if not discovered.projects:
        console.error("No valid .vcxproj file is found.")
        return 1

    output_path = absolute_path(config.output_path)
    if not config.force and should_skip(discovered.all_paths, output_path):
        console.info(f"No need to update {OUTPUT_FILENAME}")
        return 0

    translator = _make_translator(config, console)
    records = chain.from_iterable(translator.translate(project) for project in discovered.projects)
    try:
        count = DatabaseWriter().write(records, output_path)
    except FatalInputError as exc:
        console.error(str(exc))
        return 1

    console.debug(f"{count} compilation record(s) from {len(discovered.projects)} project(s)")
    console.info(f"{output_path} is written")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
