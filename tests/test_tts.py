"""Tests for the Tabletop Simulator integration."""
from __future__ import annotations

import json
import socket
import threading
from pathlib import Path
from typing import List

import pytest

from karten.artifact import (
    Artifact,
    Backside,
    MultipleAmount,
    SheetContent,
    Side,
    SingleAmount,
    SingleContent,
)
from karten.errors import HostError
from karten.tts import ExternalEditorApi, image_url, pair_faces, spawn_deck, spawn_script


class RecordingApi:
    def __init__(self) -> None:
        self.scripts: List[str] = []

    def execute(self, script: str) -> None:
        self.scripts.append(script)


def exported(side: Side, amount, content, path: str, aspect_ratio: float = 0.7) -> Artifact:
    return Artifact(
        deck="Fragen",
        side=side,
        shared=Backside.SHARED,
        content=content,
        amount=amount,
        data=Path(path),
        aspect_ratio=aspect_ratio,
        extension="png",
    )


class TestSpawnScript:
    def test_sheet_becomes_custom_deck(self, tmp_path: Path):
        script = spawn_script(
            (1.0, 2.0, 3.0),
            tmp_path / "front.png",
            tmp_path / "back.png",
            SheetContent(rows=7, columns=10, occupied=42),
            sideways=False,
        )

        assert 'type = "DeckCustom"' in script
        assert "position = {1.0, 2.0, 3.0}" in script
        assert "width = 10" in script
        assert "height = 7" in script
        assert "number = 42" in script
        assert "sideways = false" in script
        assert "back_is_hidden = true" in script
        assert f'face = "{(tmp_path / "front.png").resolve().as_uri()}"' in script

    def test_single_becomes_custom_card(self):
        script = spawn_script(
            (0, 0, 0),
            "https://example.org/front.png",
            "https://example.org/back.png",
            SingleContent(),
            sideways=True,
        )

        assert 'type = "CardCustom"' in script
        assert 'face = "https://example.org/front.png"' in script
        assert "sideways = true" in script
        assert "number =" not in script

    def test_urls_are_escaped_lua_strings(self):
        script = spawn_script(
            (0, 0, 0),
            'https://example.org/say "hi".png',
            "https://example.org/back\\slash.png",
            SingleContent(),
            sideways=False,
        )

        assert 'face = "https://example.org/say \\"hi\\".png"' in script
        assert 'back = "https://example.org/back\\\\slash.png"' in script

    def test_image_url(self, tmp_path: Path):
        assert image_url("http://host/a.png") == "http://host/a.png"
        assert image_url(tmp_path / "a b.png").startswith("file://")
        assert "a%20b.png" in image_url(tmp_path / "a b.png")


class TestSpawnDeck:
    def test_shared_back_serves_every_page(self):
        artifacts = [
            exported(Side.BACK, SingleAmount(), SingleContent(), "/x/back.png"),
            exported(Side.FRONT, MultipleAmount(1, 2), SheetContent(7, 10, 70), "/x/front1.png"),
            exported(Side.FRONT, MultipleAmount(2, 2), SheetContent(7, 10, 5), "/x/front2.png"),
        ]
        api = RecordingApi()

        assert spawn_deck(api, artifacts, (0.0, 0.0, 0.0)) == 2
        assert all("back.png" in script for script in api.scripts)
        assert "number = 70" in api.scripts[0]
        assert "number = 5" in api.scripts[1]

    def test_unique_backs_pair_by_page(self):
        artifacts = [
            exported(Side.FRONT, MultipleAmount(1, 2), SheetContent(7, 10, 70), "/x/front1.png"),
            exported(Side.BACK, MultipleAmount(1, 2), SheetContent(7, 10, 70), "/x/back1.png"),
            exported(Side.FRONT, MultipleAmount(2, 2), SheetContent(7, 10, 1), "/x/front2.png"),
            exported(Side.BACK, MultipleAmount(2, 2), SheetContent(7, 10, 1), "/x/back2.png"),
        ]

        pairs = pair_faces(artifacts)

        assert [(front.data.name, back.data.name) for front, back in pairs] == [
            ("front1.png", "back1.png"),
            ("front2.png", "back2.png"),
        ]

    def test_landscape_fronts_spawn_sideways(self):
        artifacts = [
            exported(Side.FRONT, SingleAmount(), SheetContent(7, 10, 3), "/x/front.png", aspect_ratio=1.6),
            exported(Side.BACK, SingleAmount(), SingleContent(), "/x/back.png", aspect_ratio=1.6),
        ]
        api = RecordingApi()

        spawn_deck(api, artifacts, (0.0, 0.0, 0.0))

        assert "sideways = true" in api.scripts[0]

    def test_nothing_to_spawn_without_backs(self):
        artifacts = [exported(Side.FRONT, SingleAmount(), SheetContent(7, 10, 3), "/x/front.png")]
        api = RecordingApi()

        assert spawn_deck(api, artifacts, (0.0, 0.0, 0.0)) == 0
        assert api.scripts == []


class TestExternalEditorApi:
    def test_sends_lua_as_json(self):
        server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        server.bind(("127.0.0.1", 0))
        server.listen(1)
        received: List[bytes] = []

        def accept() -> None:
            connection, _ = server.accept()
            with connection:
                chunks = []
                while True:
                    chunk = connection.recv(4096)
                    if not chunk:
                        break
                    chunks.append(chunk)
                received.append(b"".join(chunks))

        thread = threading.Thread(target=accept, daemon=True)
        thread.start()
        try:
            ExternalEditorApi(port=server.getsockname()[1]).execute('print("hi")')
            thread.join(timeout=5)
        finally:
            server.close()

        message = json.loads(received[0].decode("utf-8"))
        assert message == {"messageID": 3, "guid": "-1", "script": 'print("hi")'}

    def test_unreachable_host(self):
        probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        probe.bind(("127.0.0.1", 0))
        port = probe.getsockname()[1]
        probe.close()

        with pytest.raises(HostError):
            ExternalEditorApi(port=port, timeout=1.0).execute("print(1)")
