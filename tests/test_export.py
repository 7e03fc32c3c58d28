"""Tests for the export stages."""
from __future__ import annotations

from pathlib import Path

import fitz  # PyMuPDF
import pytest

from karten.artifact import Artifact, Backside, SheetContent, Side, SingleAmount, SingleContent
from karten.errors import ExportError
from karten.export import FileExporter, PngExporter, export_all

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def pixmap(width: int, height: int) -> fitz.Pixmap:
    image = fitz.Pixmap(fitz.csRGB, fitz.IRect(0, 0, width, height), True)
    image.clear_with(255)
    return image


def artifact_with(data, side: Side = Side.FRONT) -> Artifact:
    return Artifact(
        deck="Fragen",
        side=side,
        shared=Backside.SHARED,
        content=SheetContent(rows=7, columns=10, occupied=3),
        amount=SingleAmount(),
        data=data,
    )


class TestPngExporter:
    def test_encodes_png(self):
        exported = PngExporter().export(artifact_with(pixmap(8, 4)))

        assert exported.data.startswith(PNG_SIGNATURE)
        assert exported.extension == "png"
        assert exported.aspect_ratio == 2.0
        assert exported.is_landscape
        assert str(exported) == "Fragen-front-r7c10t3-1of1"

    def test_portrait(self):
        exported = PngExporter().export(artifact_with(pixmap(4, 8)))

        assert exported.aspect_ratio == 0.5
        assert not exported.is_landscape

    def test_bad_data(self):
        with pytest.raises(ExportError):
            PngExporter().export(artifact_with(b"not a pixmap"))


class TestFileExporter:
    def test_writes_named_file(self, tmp_path: Path):
        source = artifact_with(b"bytes").with_data(b"bytes", extension="png")

        exported = FileExporter(tmp_path).export(source)

        assert exported.data == tmp_path.resolve() / "Fragen-front-r7c10t3-1of1.png"
        assert exported.data.read_bytes() == b"bytes"

    def test_without_extension(self, tmp_path: Path):
        exporter = FileExporter(tmp_path)

        assert exporter.path_for(artifact_with(b"")).name == "Fragen-front-r7c10t3-1of1"

    def test_missing_directory(self, tmp_path: Path):
        exporter = FileExporter(tmp_path / "missing")

        with pytest.raises(ExportError):
            exporter.export(artifact_with(b"bytes"))

    @pytest.mark.parametrize("deck", ["../escaped", "a/b", "a\\b"])
    def test_deck_name_cannot_leave_the_directory(self, tmp_path: Path, deck: str):
        directory = tmp_path / "export"
        directory.mkdir()
        source = Artifact(
            deck=deck,
            side=Side.BACK,
            shared=Backside.SHARED,
            content=SingleContent(),
            amount=SingleAmount(),
            data=b"x",
            extension="png",
        )

        with pytest.raises(ExportError):
            FileExporter(directory).export(source)

        assert list(tmp_path.rglob("*.png")) == []

    def test_dots_inside_a_deck_name_are_fine(self, tmp_path: Path):
        source = Artifact(
            deck="v1..2",
            side=Side.FRONT,
            shared=Backside.SHARED,
            content=SheetContent(rows=7, columns=10, occupied=3),
            amount=SingleAmount(),
            data=b"x",
            extension="png",
        )

        exported = FileExporter(tmp_path).export(source)

        assert exported.data.parent == tmp_path.resolve()
        assert exported.data.name == "v1..2-front-r7c10t3-1of1.png"


class TestExportAll:
    def test_chains_exporters_lazily(self, tmp_path: Path):
        artifacts = [artifact_with(pixmap(2, 2)), artifact_with(pixmap(2, 2), side=Side.BACK)]

        exported = export_all(artifacts, [PngExporter(), FileExporter(tmp_path)])
        assert list(tmp_path.iterdir()) == []

        paths = [artifact.data for artifact in exported]
        assert [path.name for path in paths] == [
            "Fragen-front-r7c10t3-1of1.png",
            "Fragen-back-r7c10t3-1of1.png",
        ]
        assert all(path.read_bytes().startswith(PNG_SIGNATURE) for path in paths)
