"""
Card content model.

A card is a list of :class:`Markup` nodes. Before a card can be drawn its
tree is flattened into a plain string plus a sorted list of
:class:`StyleAnnotation` ranges over that string. The optional footer lives in
a trailing :class:`Bottom` node and is flattened separately.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, List, Optional, Sequence, Tuple

from .artifact import Backside

if TYPE_CHECKING:
    from .dimensions import Dimensions

BLANK_PLACEHOLDER = "____"
TINY_FACTOR = 0.5


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"

    def __str__(self) -> str:
        return self.value


class Markup:
    """Base class of all content nodes."""

    def is_empty(self) -> bool:
        raise NotImplementedError

    def trim_start(self) -> None:
        """Strip leading whitespace; only plain text nodes change."""

    def trim_end(self) -> None:
        """Strip trailing whitespace; only plain text nodes change."""


@dataclass
class Plain(Markup):
    text: str

    def is_empty(self) -> bool:
        return not self.text

    def trim_start(self) -> None:
        self.text = self.text.lstrip()

    def trim_end(self) -> None:
        self.text = self.text.rstrip()

    def __str__(self) -> str:
        return self.text


@dataclass
class Blank(Markup):
    """A gap to fill in, drawn as a run of underscores."""

    def is_empty(self) -> bool:
        return False

    def __str__(self) -> str:
        return BLANK_PLACEHOLDER


@dataclass
class _Container(Markup):
    content: List[Markup] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.content

    def _inner(self) -> str:
        return "".join(str(markup) for markup in self.content)


@dataclass
class Italic(_Container):
    def __str__(self) -> str:
        return f"*{self._inner()}*"


@dataclass
class Tiny(_Container):
    """Half-size text."""

    def __str__(self) -> str:
        return f"*{self._inner()}*"


@dataclass
class Bottom(_Container):
    """Footer region, drawn anchored to the bottom of the card."""

    def __str__(self) -> str:
        return f"\n\n{self._inner()}"


@dataclass
class Font(_Container):
    family: Optional[str] = None
    size: Optional[float] = None

    def __str__(self) -> str:
        return self._inner()


@dataclass
class Unknown(_Container):
    """An unrecognized tag, kept so it can be shown but never styled."""

    tag: str = ""
    attributes: List[Tuple[str, str]] = field(default_factory=list)

    def __str__(self) -> str:
        attributes = "".join(f' {key}="{value}"' for key, value in self.attributes)
        return f"<{self.tag}{attributes}>{self._inner()}</{self.tag}>"


class StyleKind(str, Enum):
    ITALIC = "italic"
    FONT = "font"
    SIZE = "size"


@dataclass(frozen=True)
class Style:
    kind: StyleKind
    value: Any = None

    @classmethod
    def italic(cls) -> "Style":
        return cls(StyleKind.ITALIC)

    @classmethod
    def font(cls, family: str) -> "Style":
        return cls(StyleKind.FONT, family)

    @classmethod
    def size(cls, factor: float) -> "Style":
        return cls(StyleKind.SIZE, factor)


@dataclass(frozen=True)
class StyleAnnotation:
    """``style`` applies to ``text[start:end]`` of the flattened string."""

    start: int
    end: int
    style: Style

    @property
    def range(self) -> range:
        return range(self.start, self.end)

    def covers(self, index: int) -> bool:
        return self.start <= index < self.end


Flattened = Tuple[str, List[StyleAnnotation]]


def flatten(content: Sequence[Markup]) -> Flattened:
    """
    Flatten markup into plain text and style annotations.

    ``Bottom`` nodes are skipped. Nested annotations are all kept (never
    merged) and the result is sorted by ``(start, end)``; ties keep the order
    in which they were produced.
    """
    parts: List[str] = []
    annotations: List[StyleAnnotation] = []
    _collect(content, parts, [0], annotations)
    annotations.sort(key=lambda annotation: (annotation.start, annotation.end))
    return "".join(parts), annotations


def _collect(
    content: Sequence[Markup],
    parts: List[str],
    length: List[int],
    annotations: List[StyleAnnotation],
) -> None:
    # length[0] tracks len("".join(parts)) without re-joining
    for markup in content:
        if isinstance(markup, Plain):
            parts.append(markup.text)
            length[0] += len(markup.text)
        elif isinstance(markup, Blank):
            parts.append(BLANK_PLACEHOLDER)
            length[0] += len(BLANK_PLACEHOLDER)
        elif isinstance(markup, Bottom):
            continue
        elif isinstance(markup, _Container):
            start = length[0]
            _collect(markup.content, parts, length, annotations)
            end = length[0]
            for style in _styles_of(markup):
                annotations.append(StyleAnnotation(start, end, style))
        else:
            raise TypeError(f"unsupported markup node: {markup!r}")


def _styles_of(markup: Markup) -> List[Style]:
    if isinstance(markup, Italic):
        return [Style.italic()]
    if isinstance(markup, Tiny):
        return [Style.size(TINY_FACTOR)]
    if isinstance(markup, Font):
        styles = []
        if markup.family is not None:
            styles.append(Style.font(markup.family))
        if markup.size is not None:
            styles.append(Style.size(markup.size))
        return styles
    return []


def _trim_edges(content: List[Markup]) -> List[Markup]:
    nodes = list(content)
    while nodes:
        nodes[0].trim_start()
        if not nodes[0].is_empty():
            break
        nodes.pop(0)
    while nodes:
        nodes[-1].trim_end()
        if not nodes[-1].is_empty():
            break
        nodes.pop()
    return nodes


@dataclass
class Card:
    content: List[Markup] = field(default_factory=list)

    def cleanup(self) -> None:
        """
        Trim surrounding whitespace and drop empty top-level nodes.

        Inside every top-level ``Bottom`` and then at the top level, edge
        nodes are trimmed and dropped while they end up empty, so the first
        and last remaining nodes never start or end with whitespace. Empty
        nodes in between are removed too. Running it again changes nothing.
        """
        for markup in self.content:
            if isinstance(markup, Bottom):
                markup.content = _trim_edges(markup.content)
        self.content = [markup for markup in _trim_edges(self.content) if not markup.is_empty()]

    @property
    def footer(self) -> Optional[Bottom]:
        if self.content and isinstance(self.content[-1], Bottom):
            return self.content[-1]
        return None

    def annotated_top(self) -> Optional[Flattened]:
        """Flattened body text, or ``None`` for an empty card or one that starts with its footer."""
        if not self.content or isinstance(self.content[0], Bottom):
            return None
        return flatten(self.content)

    def annotated_bottom(self) -> Optional[Flattened]:
        """Flattened footer text, or ``None`` when the card has no trailing ``Bottom``."""
        footer = self.footer
        if footer is None:
            return None
        return flatten(footer.content)

    def draw(self, deck: "Deck", ctx: Any, index: int, dimensions: "Dimensions") -> None:
        from .draw import draw_front

        draw_front(self, deck, ctx, index, dimensions)

    def draw_back(self, deck: "Deck", ctx: Any, index: int, dimensions: "Dimensions") -> None:
        from .draw import draw_back

        draw_back(self, deck, ctx, index, dimensions)

    def __str__(self) -> str:
        return "".join(str(markup) for markup in self.content)


@dataclass
class Deck:
    name: str
    cards: List[Card] = field(default_factory=list)
    theme: Theme = Theme.LIGHT
    back: Backside = Backside.SHARED
