"""
Greedy line layout for flattened card text.

Lines break at spaces, always at ``\\n`` and optionally at soft hyphens
(U+00AD). A soft hyphen is invisible unless a line actually breaks there, in
which case a ``-`` is drawn at the end of that line.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase._fontdata import standardFonts

from .markup import StyleAnnotation, StyleKind

SHY = "\u00ad"
DASH = "-"
LEADING = 1.2

# Font families that map onto the standard PDF fonts: (regular, italic)
FONT_FAMILIES: Dict[str, Tuple[str, str]] = {
    "helvetica": ("Helvetica", "Helvetica-Oblique"),
    "sans": ("Helvetica", "Helvetica-Oblique"),
    "sans-serif": ("Helvetica", "Helvetica-Oblique"),
    "arial": ("Helvetica", "Helvetica-Oblique"),
    "times": ("Times-Roman", "Times-Italic"),
    "times new roman": ("Times-Roman", "Times-Italic"),
    "serif": ("Times-Roman", "Times-Italic"),
    "courier": ("Courier", "Courier-Oblique"),
    "courier new": ("Courier", "Courier-Oblique"),
    "monospace": ("Courier", "Courier-Oblique"),
}

_TOKENS = re.compile(r"\n|[^\S\n]+|\S+")


@dataclass(frozen=True)
class RunStyle:
    font: str
    size: float


@dataclass
class Span:
    text: str
    style: RunStyle
    x: float
    width: float


@dataclass
class Line:
    spans: List[Span] = field(default_factory=list)
    width: float = 0.0
    ascent: float = 0.0

    @property
    def height(self) -> float:
        return self.ascent * LEADING

    @property
    def hyphenated(self) -> bool:
        return bool(self.spans) and self.spans[-1].text == DASH


@dataclass
class TextBlock:
    lines: List[Line]

    @property
    def width(self) -> float:
        return max((line.width for line in self.lines), default=0.0)

    @property
    def height(self) -> float:
        return sum(line.height for line in self.lines)

    @property
    def text(self) -> str:
        return "\n".join("".join(span.text for span in line.spans) for line in self.lines)


def resolve_font(family: Optional[str], italic: bool, default: Tuple[str, str]) -> str:
    """Pick a reportlab font name; unknown families fall back to ``default``."""
    regular, oblique = default
    if family is not None:
        known = FONT_FAMILIES.get(family.strip().lower())
        if known is not None:
            regular, oblique = known
        elif family in standardFonts or family in pdfmetrics.getRegisteredFontNames():
            return family
    return oblique if italic else regular


def char_styles(
    text: str,
    annotations: Sequence[StyleAnnotation],
    font: str,
    size: float,
) -> List[RunStyle]:
    """
    Resolve the style of every character.

    Annotations are applied in the given order, so for the same property a
    later annotation wins over an earlier one.
    """
    default = FONT_FAMILIES.get(font.lower(), (font, font))
    italic = [False] * len(text)
    family: List[Optional[str]] = [None] * len(text)
    factor = [1.0] * len(text)
    for annotation in annotations:
        for index in range(max(annotation.start, 0), min(annotation.end, len(text))):
            if annotation.style.kind == StyleKind.ITALIC:
                italic[index] = True
            elif annotation.style.kind == StyleKind.FONT:
                family[index] = annotation.style.value
            else:
                factor[index] = float(annotation.style.value)

    cache: Dict[Tuple[Optional[str], bool, float], RunStyle] = {}
    styles = []
    for index in range(len(text)):
        key = (family[index], italic[index], factor[index])
        style = cache.get(key)
        if style is None:
            style = RunStyle(resolve_font(key[0], key[1], default), size * key[2])
            cache[key] = style
        styles.append(style)
    return styles


class _LineBuilder:
    def __init__(self, text: str, styles: List[RunStyle], base: RunStyle, max_width: float) -> None:
        self.text = text
        self.styles = styles
        self.base = base
        self.max_width = max_width
        self.lines: List[Line] = []
        self.pieces: List[Tuple[int, int]] = []
        self.width = 0.0

    def measure(self, start: int, end: int) -> float:
        return sum(span.width for span in self._spans(start, end, 0.0))

    def dash_width(self, index: int) -> float:
        style = self.styles[index]
        return pdfmetrics.stringWidth(DASH, style.font, style.size)

    def add(self, start: int, end: int, width: float) -> None:
        self.pieces.append((start, end))
        self.width += width

    def flush(self, dash: bool) -> None:
        line = Line()
        x = 0.0
        for start, end in self.pieces:
            for span in self._spans(start, end, x):
                line.spans.append(span)
                x += span.width
        if dash and self.pieces:
            style = self.styles[self.pieces[-1][1] - 1]
            width = pdfmetrics.stringWidth(DASH, style.font, style.size)
            line.spans.append(Span(DASH, style, x, width))
            x += width
        line.width = x
        line.ascent = max((span.style.size for span in line.spans), default=self.base.size)
        self.lines.append(line)
        self.pieces = []
        self.width = 0.0

    def _spans(self, start: int, end: int, x: float) -> List[Span]:
        spans: List[Span] = []
        index = start
        while index < end:
            style = self.styles[index]
            stop = index
            while stop < end and self.styles[stop] == style:
                stop += 1
            chunk = self.text[index:stop].replace(SHY, "")
            if chunk:
                width = pdfmetrics.stringWidth(chunk, style.font, style.size)
                spans.append(Span(chunk, style, x, width))
                x += width
            index = stop
        return spans

    def place_word(self, start: int, end: int, space: Optional[Tuple[int, int]]) -> None:
        syllables = _syllables(self.text, start, end)
        space_width = self.measure(*space) if space and self.pieces else 0.0
        word_width = self.measure(start, end)

        if self.pieces:
            if self.width + space_width + word_width <= self.max_width:
                if space_width:
                    self.add(space[0], space[1], space_width)
                self.add(start, end, word_width)
                return
            split = self._fitting_prefix(syllables, self.width + space_width)
            if split:
                if space_width:
                    self.add(space[0], space[1], space_width)
                head_end = syllables[split - 1][1]
                self.add(start, head_end, self.measure(start, head_end))
                self.flush(dash=True)
                syllables = syllables[split:]
            else:
                self.flush(dash=False)

        while syllables:
            first, last = syllables[0][0], syllables[-1][1]
            width = self.measure(first, last)
            if width <= self.max_width:
                self.add(first, last, width)
                return
            split = self._fitting_prefix(syllables, 0.0)
            if not split:
                # Nothing fits, let the word overflow
                self.add(first, last, width)
                return
            head_end = syllables[split - 1][1]
            self.add(first, head_end, self.measure(first, head_end))
            self.flush(dash=True)
            syllables = syllables[split:]

    def _fitting_prefix(self, syllables: List[Tuple[int, int]], used: float) -> int:
        """Largest number of leading syllables that fit together with a dash (0 if none)."""
        first = syllables[0][0]
        for count in range(len(syllables) - 1, 0, -1):
            head_end = syllables[count - 1][1]
            needed = used + self.measure(first, head_end) + self.dash_width(head_end - 1)
            if needed <= self.max_width:
                return count
        return 0


def _syllables(text: str, start: int, end: int) -> List[Tuple[int, int]]:
    # Each syllable keeps its trailing soft hyphen
    result = []
    begin = start
    for index in range(start, end):
        if text[index] == SHY:
            result.append((begin, index + 1))
            begin = index + 1
    if begin < end:
        result.append((begin, end))
    return [syllable for syllable in result if syllable[1] > syllable[0]]


def layout_lines(
    text: str,
    annotations: Sequence[StyleAnnotation],
    font: str,
    size: float,
    max_width: float,
) -> TextBlock:
    """
    Break styled text into lines no wider than ``max_width`` where possible.

    Args:
        text: Flattened card text
        annotations: Sorted style annotations over ``text``
        font: Base font name or family (e.g. ``"Helvetica"``)
        size: Base font size; size annotations are factors of it
        max_width: Available width in logical units

    Returns:
        The laid out lines with span positions relative to the line start
    """
    styles = char_styles(text, annotations, font, size)
    base = RunStyle(resolve_font(None, False, FONT_FAMILIES.get(font.lower(), (font, font))), size)
    builder = _LineBuilder(text, styles, base, max_width)

    space: Optional[Tuple[int, int]] = None
    for match in _TOKENS.finditer(text):
        start, end = match.span()
        token = match.group()
        if token == "\n":
            builder.flush(dash=False)
            space = None
        elif token.isspace():
            space = (start, end)
        else:
            builder.place_word(start, end, space)
            space = None

    if builder.pieces:
        builder.flush(dash=False)
    return TextBlock(builder.lines)
