"""
Sheet and card geometry.

Card drawing code always works in a logical coordinate space derived from
``BASE_RESOLUTION``; the device pixel scale is only applied when a canvas is
rasterized. :func:`compute` derives both from the requested resolution and
the card aspect ratio.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

from .errors import AspectRatioError, GeometryError

# Tabletop Simulator reads decks as grids of up to 10 x 7 cards
BASE_RESOLUTION = 4096
BASE_ASPECT_RATIO = 5 / 7.2
ROWS = 7
COLUMNS = 10

# Corner radius of the rounded card outline, in logical units
CARD_RADIUS = 20.0


@dataclass(frozen=True)
class AspectRatio:
    """Width divided by height of a single card."""

    value: float

    @classmethod
    def from_size(cls, width: float, height: float) -> "AspectRatio":
        return cls(width / height)

    @property
    def is_landscape(self) -> bool:
        return self.value > 1.0

    @property
    def is_portrait(self) -> bool:
        return self.value <= 1.0

    @property
    def is_square(self) -> bool:
        return self.value == 1.0

    def is_wider_than(self, other: "AspectRatio") -> bool:
        return self.value > other.value

    def is_taller_than(self, other: "AspectRatio") -> bool:
        return self.value < other.value

    def __float__(self) -> float:
        return self.value

    def __str__(self) -> str:
        return f"1/{1.0 / self.value:.2f}"


BASE = AspectRatio(BASE_ASPECT_RATIO)


def parse_aspect_ratio(text: str) -> AspectRatio:
    """
    Parse an aspect ratio written as ``"W/H"`` or as a single decimal.

    Args:
        text: e.g. ``"5/7.2"``, ``"63 / 88"`` or ``"0.75"``

    Returns:
        The parsed ratio

    Raises:
        AspectRatioError: naming the component that could not be parsed
    """
    parts = text.split("/")

    if len(parts) == 1:
        return AspectRatio(_parse_float(parts[0], text, "ratio"))
    if len(parts) == 2:
        width = _parse_float(parts[0], text, "width")
        height = _parse_float(parts[1], text, "height")
        if height == 0:
            raise AspectRatioError(text, "height")
        return AspectRatio.from_size(width, height)
    raise AspectRatioError(text, "parts")


def _parse_float(part: str, text: str, component: str) -> float:
    try:
        return float(part.strip())
    except ValueError:
        raise AspectRatioError(text, component) from None


class Size(NamedTuple):
    width: float
    height: float


@dataclass(frozen=True)
class Dimensions:
    """
    Derived geometry of one render session.

    ``width``/``height`` are the sheet size in device pixels, ``card`` is the
    size of one card in logical units and ``pix_scale`` maps logical units
    onto device pixels.
    """

    height: int
    width: int
    card: Size
    pix_scale: float
    rows: int = ROWS
    columns: int = COLUMNS

    @property
    def sheet(self) -> Size:
        """Logical size of a whole sheet."""
        return Size(self.card.width * self.columns, self.card.height * self.rows)

    @property
    def card_pixels(self) -> tuple[int, int]:
        """Device pixel size of a single card image."""
        return (
            max(1, int(self.width / self.columns)),
            max(1, int(self.height / self.rows)),
        )


def compute(
    max_side: int,
    card_aspect_ratio: AspectRatio | float,
    rows: int = ROWS,
    columns: int = COLUMNS,
) -> Dimensions:
    """
    Derive sheet and card geometry from a resolution and a card aspect ratio.

    ``max_side`` becomes the longer sheet side; the other side is derived from
    the card aspect ratio and truncated to whole pixels.

    Args:
        max_side: Pixel length of the driving sheet side
        card_aspect_ratio: Width / height of one card
        rows: Cards per sheet column
        columns: Cards per sheet row

    Returns:
        The computed Dimensions

    Raises:
        GeometryError: If the resolution or the ratio is not positive
    """
    ratio = float(card_aspect_ratio)
    if isinstance(max_side, bool) or not isinstance(max_side, int) or max_side <= 0:
        raise GeometryError(f"resolution must be a positive integer, got {max_side!r}")
    if not ratio > 0:
        raise GeometryError(f"aspect ratio must be positive, got {ratio!r}")
    if rows <= 0 or columns <= 0:
        raise GeometryError(f"grid must have at least one cell, got {rows}x{columns}")

    if ratio > BASE_ASPECT_RATIO:
        # Wider cards: the sheet width is fixed and the height follows
        deck_width = max_side
        actual_card_width = deck_width / columns
        actual_card_height = actual_card_width / ratio
        deck_height = _truncated(actual_card_height * rows, max_side, ratio, rows, columns)
        pix_scale = deck_height / BASE_RESOLUTION
        card_width = (BASE_RESOLUTION / columns) / pix_scale
        card_height = card_width / ratio
    elif ratio == BASE_ASPECT_RATIO:
        # Square texture for the default ratio
        deck_height = max_side
        deck_width = max_side
        pix_scale = max_side / BASE_RESOLUTION
        card_width = BASE_RESOLUTION / columns
        card_height = BASE_RESOLUTION / rows
    else:
        deck_height = max_side
        actual_card_height = deck_height / rows
        actual_card_width = actual_card_height * ratio
        deck_width = _truncated(actual_card_width * columns, max_side, ratio, rows, columns)
        pix_scale = deck_width / BASE_RESOLUTION
        card_height = (BASE_RESOLUTION / rows) / pix_scale
        card_width = card_height * ratio

    return Dimensions(
        height=deck_height,
        width=deck_width,
        card=Size(card_width, card_height),
        pix_scale=pix_scale,
        rows=rows,
        columns=columns,
    )


def _truncated(pixels: float, max_side: int, ratio: float, rows: int, columns: int) -> int:
    # Floor, never round
    result = int(pixels)
    if result <= 0:
        raise GeometryError(
            f"resolution {max_side} is too small for aspect ratio {ratio:.4f} on a {rows}x{columns} grid"
        )
    return result
