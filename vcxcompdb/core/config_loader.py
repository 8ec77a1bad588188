"""Locating and decoding the optional configuration file of a run."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, Mapping
import json
import os
import tomllib

import yaml

from ..errors import ConfigurationError


ConfigLoader = Callable[[Any], Any]


FILE_LOADERS: Dict[str, ConfigLoader] = {
    ".toml": tomllib.load,
    ".json": json.load,
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
}
"""Mapping of file suffixes to loader callables."""

DECODE_ERRORS = (tomllib.TOMLDecodeError, json.JSONDecodeError, yaml.YAMLError, UnicodeDecodeError)


def locate_config_file(explicit: Path | None, env_var: str) -> Path | None:
    """Return ``explicit`` or the path named by ``env_var``; ``None`` when neither is set."""

    if explicit is not None:
        return explicit
    value = os.environ.get(env_var)
    return Path(value) if value else None


def load_config_file(path: Path) -> Mapping[str, Any]:
    """Decode the mapping stored in ``path``, dispatching on its suffix."""

    suffix = path.suffix.lower()
    loader = FILE_LOADERS.get(suffix)
    if loader is None:
        supported = ", ".join(sorted(FILE_LOADERS))
        raise ConfigurationError(
            f"Unsupported configuration file extension '{suffix}' for {path}. Supported: {supported}"
        )

    try:
        if suffix == ".toml":
            with path.open("rb") as handle:
                data = loader(handle)
        else:
            with path.open("r", encoding="utf-8") as handle:
                data = loader(handle)
    except OSError as exc:
        raise ConfigurationError(f"Cannot read configuration file {path}: {exc}") from exc
    except DECODE_ERRORS as exc:
        raise ConfigurationError(f"Cannot parse configuration file {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"Configuration file {path} must contain a mapping at the root")
    return data


def load_section(path: Path | None, name: str) -> Mapping[str, Any]:
    """Return the ``name`` table of the file at ``path``.

    A missing ``path`` or a file without the table yields an empty mapping.
    """

    if path is None:
        return {}
    section = load_config_file(path).get(name)
    if section is None:
        return {}
    if not isinstance(section, Mapping):
        raise ConfigurationError(f"Section '{name}' of {path} must be a mapping")
    return section


__all__ = [
    "FILE_LOADERS",
    "load_config_file",
    "load_section",
    "locate_config_file",
]
