"""
Deck documents in XML.

    <deck name="Fragen" theme="dark" back="unique">
        <card>Who <i>really</i> ate the <blank/>?<bottom><tiny>round 1</tiny></bottom></card>
    </deck>

Recognized card tags are ``blank``, ``br``, ``italic``/``i``, ``tiny``,
``bottom`` and ``font`` (``family``, ``size``); every other tag is kept as
:class:`~karten.markup.Unknown`.
"""
from __future__ import annotations

import re
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, TypeVar, Union
from xml.etree import ElementTree as ET
from xml.parsers import expat

from .artifact import Backside
from .errors import (
    InvalidAttributeValueError,
    MarkupParseError,
    MissingDeckNameError,
    UnexpectedTagError,
)
from .log import get_logger
from .markup import (
    Blank,
    Bottom,
    Card,
    Deck,
    Font,
    Italic,
    Markup,
    Plain,
    Theme,
    Tiny,
    Unknown,
)

LOGGER = get_logger(__name__)

E = TypeVar("E")

THEME_VALUES: Mapping[str, Theme] = {
    "light": Theme.LIGHT,
    "Light": Theme.LIGHT,
    "LIGHT": Theme.LIGHT,
    "dark": Theme.DARK,
    "Dark": Theme.DARK,
    "DARK": Theme.DARK,
}
BACK_VALUES: Mapping[str, Backside] = {
    "shared": Backside.SHARED,
    "unique": Backside.UNIQUE,
}

_TAG_MISMATCH = expat.errors.codes[expat.errors.XML_ERROR_TAG_MISMATCH]
_CLOSING_TAG = re.compile(r"</\s*([^\s>/]+)")


def load_deck(path: Union[str, Path]) -> Deck:
    """Read and parse a deck file."""
    path = Path(path)
    LOGGER.debug("Parsing deck file %s", path)
    return parse_deck(path.read_bytes())


def parse_deck(data: Union[bytes, str]) -> Deck:
    """
    Parse a deck document.

    Args:
        data: The XML document, as bytes or text

    Returns:
        The deck with every card already cleaned up

    Raises:
        MissingDeckNameError: If the root has no ``name`` attribute
        UnexpectedTagError: If the root is not ``deck`` or a closing tag does not match
        InvalidAttributeValueError: If ``theme`` or ``back`` has an unknown value
        MarkupParseError: For any other malformed document
    """
    return _deck_from_element(_parse_tree(data))


def _parse_tree(data: Union[bytes, str]) -> ET.Element:
    parser = ET.XMLPullParser(events=("start", "end"))
    parser.feed(data)

    open_tags: List[str] = []
    root: Optional[ET.Element] = None
    try:
        for event, element in parser.read_events():
            if event == "start":
                if root is None:
                    root = element
                open_tags.append(_local_name(element.tag))
            else:
                open_tags.pop()
        parser.close()
    except ET.ParseError as error:
        if error.code == _TAG_MISMATCH and open_tags:
            raise UnexpectedTagError(
                expected=open_tags[-1],
                actual=_closing_tag_at(data, error.position),
            ) from error
        raise MarkupParseError(str(error)) from error

    if root is None:
        raise MarkupParseError("the document has no root element")
    return root


def _closing_tag_at(data: Union[bytes, str], position: tuple[int, int]) -> str:
    text = data.decode("utf-8", errors="replace") if isinstance(data, bytes) else data
    line, column = position
    lines = text.splitlines(keepends=True)
    # expat may point at "<" or just past "</" of the offending tag
    offset = max(0, sum(len(previous) for previous in lines[: line - 1]) + column - 2)
    match = _CLOSING_TAG.search(text, offset) or _last_match_before(text, offset)
    return match.group(1) if match else "unknown"


def _last_match_before(text: str, offset: int) -> Optional[re.Match[str]]:
    matches = list(_CLOSING_TAG.finditer(text, 0, offset))
    return matches[-1] if matches else None


def _local_name(tag: str) -> str:
    # Drop "{namespace}" prefixes
    return tag.rsplit("}", 1)[-1]


def _deck_from_element(element: ET.Element) -> Deck:
    tag = _local_name(element.tag)
    if tag != "deck":
        raise UnexpectedTagError(expected="deck", actual=tag)

    name = element.get("name")
    if name is None:
        raise MissingDeckNameError()

    return Deck(
        name=name,
        theme=_enum_attribute(element, "theme", THEME_VALUES, ("light", "dark"), Theme.LIGHT),
        back=_enum_attribute(element, "back", BACK_VALUES, ("shared", "unique"), Backside.SHARED),
        cards=[
            _card_from_element(child)
            for child in element
            if _local_name(child.tag) == "card"
        ],
    )


def _enum_attribute(
    element: ET.Element,
    attribute: str,
    values: Mapping[str, E],
    allowed: tuple[str, ...],
    default: E,
) -> E:
    value = element.get(attribute)
    if value is None:
        return default
    if value not in values:
        raise InvalidAttributeValueError(
            tag=_local_name(element.tag),
            attribute=attribute,
            value=value,
            allowed=allowed,
        )
    return values[value]


def _card_from_element(element: ET.Element) -> Card:
    tag = _local_name(element.tag)
    if tag != "card":
        raise UnexpectedTagError(expected="card", actual=tag)
    card = Card(content=_content_of(element))
    card.cleanup()
    return card


def _content_of(element: ET.Element) -> List[Markup]:
    content: List[Markup] = []
    if element.text:
        content.append(Plain(element.text))
    for child in element:
        content.append(_markup_from_element(child))
        if child.tail:
            content.append(Plain(child.tail))
    return content


def _font(element: ET.Element) -> Markup:
    size = element.get("size")
    return Font(
        content=_content_of(element),
        family=element.get("family"),
        size=_parse_size(size) if size is not None else None,
    )


def _parse_size(value: str) -> float:
    try:
        return float(value.strip())
    except ValueError:
        LOGGER.warning("Ignoring unparseable font size %r, using 1.0", value)
        return 1.0


_BUILDERS: Dict[str, Callable[[ET.Element], Markup]] = {
    "blank": lambda element: Blank(),
    "br": lambda element: Plain("\n"),
    "italic": lambda element: Italic(_content_of(element)),
    "i": lambda element: Italic(_content_of(element)),
    "tiny": lambda element: Tiny(_content_of(element)),
    "bottom": lambda element: Bottom(_content_of(element)),
    "font": _font,
}


def _markup_from_element(element: ET.Element) -> Markup:
    tag = _local_name(element.tag)
    builder = _BUILDERS.get(tag)
    if builder is not None:
        return builder(element)
    return Unknown(
        tag=tag,
        attributes=list(element.attrib.items()),
        content=_content_of(element),
    )
