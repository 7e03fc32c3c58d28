"""Colours and sizes used when drawing cards."""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass

from reportlab.lib import colors
from reportlab.lib.colors import Color

from .markup import Theme


@dataclass(frozen=True)
class Palette:
    font: str
    text_size: float
    color: Color
    background: Color
    border_size: float
    border_color: Color
    back_text: Color


LIGHT = Palette(
    font="Helvetica",
    text_size=36.0,
    color=colors.black,
    background=colors.white,
    border_size=16.0,
    border_color=Color(0.95, 0.95, 0.95),
    back_text=Color(0.8, 0.8, 0.8),
)

DARK = dataclasses.replace(
    LIGHT,
    color=colors.white,
    background=colors.black,
    border_color=Color(0.1, 0.1, 0.1),
)


def palette_for(theme: Theme) -> Palette:
    return DARK if theme == Theme.DARK else LIGHT
