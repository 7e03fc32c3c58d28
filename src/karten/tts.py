"""
Spawning exported decks in Tabletop Simulator.

Tabletop Simulator listens on localhost:39999 for its External Editor API;
message ``3`` executes Lua in the global script. Each front sheet is spawned
as a ``DeckCustom`` (or a ``CardCustom`` for single images) pointing at the
exported face and back images.
"""
from __future__ import annotations

import json
import socket
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple, Union

from .artifact import Artifact, SheetContent, Side
from .errors import HostError
from .log import get_logger

LOGGER = get_logger(__name__)

Position = Tuple[float, float, float]

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 39999
EXECUTE_LUA = 3

_LUA_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r", "\0": "\\0"}


class ExternalEditorApi:
    """Minimal client for the Tabletop Simulator External Editor API."""

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT, timeout: float = 5.0) -> None:
        self.host = host
        self.port = port
        self.timeout = timeout

    def execute(self, script: str) -> None:
        """Run ``script`` as global Lua code in the running game."""
        message = json.dumps({"messageID": EXECUTE_LUA, "guid": "-1", "script": script})
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout) as connection:
                connection.sendall(message.encode("utf-8"))
        except OSError as error:
            raise HostError(
                f"couldn't reach Tabletop Simulator at {self.host}:{self.port}: {error}"
            ) from error


def image_url(location: Union[Path, str]) -> str:
    """Turn an exported location into a URL Tabletop Simulator can load."""
    text = str(location)
    if text.startswith(("http://", "https://", "file://")):
        return text
    return Path(text).resolve().as_uri()


def _lua_bool(value: bool) -> str:
    return "true" if value else "false"


def _lua_string(text: str) -> str:
    """Quote ``text`` as a double-quoted Lua string literal."""
    escaped = "".join(_LUA_ESCAPES.get(char, char) for char in text)
    return f'"{escaped}"'


def spawn_script(
    position: Position,
    face: Union[Path, str],
    back: Union[Path, str],
    content: object,
    sideways: bool,
    back_is_hidden: bool = True,
) -> str:
    """
    Build the Lua ``spawnObject`` call for one face/back pair.

    Sheets become ``DeckCustom`` objects sized to their grid; single images
    become ``CardCustom`` objects.
    """
    x, y, z = position
    face_url = _lua_string(image_url(face))
    back_url = _lua_string(image_url(back))

    if isinstance(content, SheetContent):
        return f"""spawnObject({{
    type = "DeckCustom",
    position = {{{x}, {y}, {z}}},
    snap_to_grid = true,
    callback_function = function(spawned_object)
        spawned_object.setCustomObject({{
            face = {face_url},
            back = {back_url},
            width = {content.columns},
            height = {content.rows},
            number = {content.occupied},
            sideways = {_lua_bool(sideways)},
            back_is_hidden = {_lua_bool(back_is_hidden)},
        }})
    end
}})"""

    return f"""spawnObject({{
    type = "CardCustom",
    position = {{{x}, {y}, {z}}},
    snap_to_grid = true,
    callback_function = function(spawned_object)
        spawned_object.setCustomObject({{
            face = {face_url},
            back = {back_url},
            sideways = {_lua_bool(sideways)},
        }})
    end
}})"""


def pair_faces(artifacts: Sequence[Artifact[Path]]) -> List[Tuple[Artifact[Path], Artifact[Path]]]:
    """
    Pair every front with a back.

    Backs are cycled, so a single shared back serves every front page while
    unique backs pair up page by page.
    """
    fronts = [artifact for artifact in artifacts if artifact.side == Side.FRONT]
    backs = [artifact for artifact in artifacts if artifact.side == Side.BACK]
    if not backs:
        return []
    return [(front, backs[index % len(backs)]) for index, front in enumerate(fronts)]


def spawn_deck(api: ExternalEditorApi, artifacts: Iterable[Artifact[Path]], position: Position) -> int:
    """
    Spawn one exported deck at ``position``.

    Returns:
        The number of objects spawned
    """
    pairs = pair_faces(list(artifacts))
    for front, back in pairs:
        api.execute(
            spawn_script(
                position,
                front.data,
                back.data,
                front.content,
                sideways=front.is_landscape,
            )
        )
    if pairs:
        LOGGER.info("Spawned %d object(s) for deck %s", len(pairs), pairs[0][0].deck)
    return len(pairs)
