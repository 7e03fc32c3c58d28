"""
Export stages for produced artifacts.

Every exporter takes an :class:`~karten.artifact.Artifact` and returns a new
one with different ``data`` but the same identity, so stages can be chained:
pixels -> PNG bytes -> file path.
"""
from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Iterable, Iterator, Protocol, Sequence

import fitz  # PyMuPDF

from .artifact import Artifact
from .errors import ExportError
from .log import get_logger

LOGGER = get_logger(__name__)

_SEPARATORS = ("/", "\\")


class Exporter(Protocol):
    def export(self, artifact: Artifact[Any]) -> Artifact[Any]: ...


class PngExporter:
    """Encodes ``fitz.Pixmap`` data as PNG bytes."""

    def export(self, artifact: Artifact[fitz.Pixmap]) -> Artifact[bytes]:
        started = time.perf_counter()
        pixmap = artifact.data
        try:
            data = pixmap.tobytes("png")
        except Exception as error:
            raise ExportError(f"couldn't encode {artifact} as png: {error}") from error

        LOGGER.debug("Exported %s.png in %.3fs", artifact, time.perf_counter() - started)
        return artifact.with_data(
            data,
            aspect_ratio=pixmap.width / pixmap.height,
            extension="png",
        )


class FileExporter:
    """
    Writes artifact bytes into ``directory``.

    Files are named after the artifact (``{deck}-{side}-{content}-{amount}``)
    plus its extension, if any.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory).resolve()

    def path_for(self, artifact: Artifact[Any]) -> Path:
        """
        Path of the file for ``artifact``.

        Raises:
            ExportError: If the name would leave ``directory``
        """
        name = str(artifact)
        if artifact.extension:
            name = f"{name}.{artifact.extension}"
        if any(separator in name for separator in _SEPARATORS) or name in (".", ".."):
            raise ExportError(f"deck name {artifact.deck!r} can't be used as a file name")
        path = self.directory / name
        if path.resolve().parent != self.directory:
            raise ExportError(f"{path} is outside of {self.directory}")
        return path

    def export(self, artifact: Artifact[bytes]) -> Artifact[Path]:
        path = self.path_for(artifact)
        try:
            path.write_bytes(artifact.data)
        except OSError as error:
            raise ExportError(f"couldn't write {path}: {error}") from error
        return artifact.with_data(path)


def export_all(artifacts: Iterable[Artifact[Any]], exporters: Sequence[Exporter]) -> Iterator[Artifact[Any]]:
    """Lazily pass every artifact through ``exporters`` in order."""
    for artifact in artifacts:
        for exporter in exporters:
            artifact = exporter.export(artifact)
        yield artifact
