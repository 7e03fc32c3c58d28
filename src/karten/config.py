from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, List, Mapping, Optional, Tuple

from .dimensions import BASE, BASE_RESOLUTION, COLUMNS, ROWS, AspectRatio, parse_aspect_ratio
from .errors import ConfigError

DEFAULT_INPUT = Path("input")
DEFAULT_DIRECTORY = Path("export")
DECK_SUFFIXES = (".xml", ".deck")


@dataclass(frozen=True)
class RenderConfig:
    aspect_ratio: AspectRatio = BASE
    resolution: int = BASE_RESOLUTION
    rows: int = ROWS
    columns: int = COLUMNS
    inputs: Tuple[Path, ...] = (DEFAULT_INPUT,)
    directory: Path = DEFAULT_DIRECTORY
    create: bool = False
    jobs: int = 1
    sync_to_tts: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RenderConfig":
        """Defaults, overridden by ``ASPECT_RATIO``, ``RESOLUTION``, ``INPUT``, ``DIRECTORY`` and ``JOBS``."""
        env = os.environ if environ is None else environ
        config = cls()
        changes: dict[str, Any] = {}
        if env.get("ASPECT_RATIO"):
            changes["aspect_ratio"] = parse_aspect_ratio(env["ASPECT_RATIO"])
        if env.get("RESOLUTION"):
            changes["resolution"] = _positive_int("RESOLUTION", env["RESOLUTION"])
        if env.get("INPUT"):
            changes["inputs"] = tuple(Path(part) for part in env["INPUT"].split(os.pathsep) if part)
        if env.get("DIRECTORY"):
            changes["directory"] = Path(env["DIRECTORY"])
        if env.get("JOBS"):
            changes["jobs"] = _positive_int("JOBS", env["JOBS"])
        return replace(config, **changes)

    def override(self, **changes: Any) -> "RenderConfig":
        """Copy with every change that is not ``None`` applied."""
        return replace(self, **{key: value for key, value in changes.items() if value is not None})


def _positive_int(name: str, value: str) -> int:
    try:
        number = int(value.strip())
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None
    if number <= 0:
        raise ConfigError(f"{name} must be positive, got {number}")
    return number


def find_deck_files(inputs: Tuple[Path, ...]) -> List[Path]:
    """
    Expand the configured inputs into deck files.

    Files are taken as given; directories contribute their ``*.xml`` and
    ``*.deck`` files in sorted order.
    """
    files: List[Path] = []
    for location in inputs:
        if location.is_dir():
            files.extend(sorted(path for path in location.iterdir() if path.suffix.lower() in DECK_SUFFIXES))
        elif location.is_file():
            files.append(location)
        else:
            raise ConfigError(f"Input not found: {location}")
    return files


def prepare_directory(directory: Path, create: bool) -> Path:
    """Resolve the output directory, creating it only when asked to."""
    directory = directory.resolve()
    if not directory.is_dir():
        if not create:
            raise ConfigError(f"Output directory not found: {directory} (pass --create to create it)")
        directory.mkdir(parents=True, exist_ok=True)
    return directory
