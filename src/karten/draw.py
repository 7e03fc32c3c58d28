"""Drawing of markup cards onto a :class:`~karten.renderer.CanvasContext`."""
from __future__ import annotations

from typing import TYPE_CHECKING

from .dimensions import CARD_RADIUS, Dimensions
from .palette import Palette, palette_for
from .textlayout import TextBlock, layout_lines

if TYPE_CHECKING:
    from .markup import Card, Deck
    from .renderer import CanvasContext

# Text inset from the card edge, in logical units
BORDER_X = 56.0
BORDER_Y = 64.0
NUMBER_SIZE = 24.0
BACK_TEXT_SIZE = 64.0


def draw_front(card: "Card", deck: "Deck", ctx: "CanvasContext", index: int, dimensions: Dimensions) -> None:
    """
    Draw the face of ``card``.

    The body starts at the top-left inset, the footer (if any) is anchored to
    the bottom inset and ``index + 1`` is printed centred at the bottom edge.
    """
    palette = palette_for(deck.theme)
    width, height = dimensions.card
    max_width = width - BORDER_X * 2

    ctx.fill_rounded_rect(width, height, CARD_RADIUS, palette.background)

    top = card.annotated_top()
    if top is not None:
        block = layout_lines(*top, palette.font, palette.text_size, max_width)
        _draw_block(ctx, block, BORDER_X, BORDER_Y, palette)

    bottom = card.annotated_bottom()
    if bottom is not None:
        block = layout_lines(*bottom, palette.font, palette.text_size, max_width)
        _draw_block(ctx, block, BORDER_X, height - BORDER_Y - block.height, palette)

    number = str(index + 1)
    number_width = ctx.string_width(number, palette.font, NUMBER_SIZE)
    ctx.draw_text((width - number_width) / 2, height - BORDER_Y / 2, number, palette.font, NUMBER_SIZE, palette.color)

    ctx.stroke_rounded_rect(width, height, CARD_RADIUS, palette.border_color, palette.border_size)


def draw_back(card: "Card", deck: "Deck", ctx: "CanvasContext", index: int, dimensions: Dimensions) -> None:
    """Draw the back: the deck name centred on the card."""
    palette = palette_for(deck.theme)
    width, height = dimensions.card

    ctx.fill_rounded_rect(width, height, CARD_RADIUS, palette.background)

    block = layout_lines(deck.name, [], palette.font, BACK_TEXT_SIZE, width - BORDER_X * 2)
    y = (height - block.height) / 2
    for line in block.lines:
        x = (width - line.width) / 2
        for span in line.spans:
            ctx.draw_text(x + span.x, y + line.ascent, span.text, span.style.font, span.style.size, palette.back_text)
        y += line.height

    ctx.stroke_rounded_rect(width, height, CARD_RADIUS, palette.border_color, palette.border_size)


def _draw_block(ctx: "CanvasContext", block: TextBlock, x: float, y: float, palette: Palette) -> None:
    for line in block.lines:
        baseline = y + line.ascent
        for span in line.spans:
            ctx.draw_text(x + span.x, baseline, span.text, span.style.font, span.style.size, palette.color)
        y += line.height
