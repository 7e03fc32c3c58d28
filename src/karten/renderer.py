"""
Renderers turn a draw callback into an image.

A draw callback receives a drawing context and the session
:class:`~karten.dimensions.Dimensions`; it always draws in logical units with
the origin in the top-left corner, no matter how many pixels the final
image has.
"""
from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Optional, Protocol, Tuple, TypeVar

import fitz  # PyMuPDF
from reportlab.lib.colors import Color
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

from .device import DevicePool, RasterDevice
from .dimensions import Dimensions
from .errors import KartenError, RenderError
from .log import get_logger

LOGGER = get_logger(__name__)

Output = TypeVar("Output", covariant=True)


class DrawingContext(Protocol):
    """The part of a context that sheet layout relies on."""

    def saved(self) -> Any:
        """Context manager restoring transform and clip on exit."""

    def translate(self, dx: float, dy: float) -> None: ...

    def clip_rounded_rect(self, width: float, height: float, radius: float) -> None: ...


DrawFn = Callable[[Any, Dimensions], None]


class Renderer(Protocol[Output]):
    def create_sheet(self, draw: DrawFn) -> Output: ...

    def create_card(self, draw: DrawFn) -> Output: ...


class CanvasContext:
    """
    Top-left origin drawing context over a reportlab canvas.

    reportlab puts the origin at the bottom-left; this wrapper keeps its own
    translation so callers can use screen-like coordinates. ``scale_x`` and
    ``scale_y`` map logical units to canvas points (pixels).
    """

    def __init__(self, pdf_canvas: canvas.Canvas, logical_height: float, scale_x: float, scale_y: float) -> None:
        self.canvas = pdf_canvas
        self.logical_height = logical_height
        self._offset = (0.0, 0.0)
        self._stack: List[Tuple[float, float]] = []
        pdf_canvas.scale(scale_x, scale_y)

    @contextmanager
    def saved(self) -> Iterator["CanvasContext"]:
        self.canvas.saveState()
        self._stack.append(self._offset)
        try:
            yield self
        finally:
            self._offset = self._stack.pop()
            self.canvas.restoreState()

    def translate(self, dx: float, dy: float) -> None:
        x, y = self._offset
        self._offset = (x + dx, y + dy)

    def _to_canvas(self, x: float, y: float) -> Tuple[float, float]:
        ox, oy = self._offset
        return ox + x, self.logical_height - (oy + y)

    def _rect_origin(self, x: float, y: float, height: float) -> Tuple[float, float]:
        # reportlab rectangles grow upwards from their bottom-left corner
        return self._to_canvas(x, y + height)

    def clip_rounded_rect(self, width: float, height: float, radius: float) -> None:
        x, y = self._rect_origin(0.0, 0.0, height)
        path = self.canvas.beginPath()
        path.roundRect(x, y, width, height, radius)
        self.canvas.clipPath(path, stroke=0, fill=0)

    def fill_rounded_rect(self, width: float, height: float, radius: float, color: Color) -> None:
        x, y = self._rect_origin(0.0, 0.0, height)
        self.canvas.setFillColor(color)
        self.canvas.roundRect(x, y, width, height, radius, stroke=0, fill=1)

    def stroke_rounded_rect(
        self, width: float, height: float, radius: float, color: Color, line_width: float
    ) -> None:
        x, y = self._rect_origin(0.0, 0.0, height)
        self.canvas.setStrokeColor(color)
        self.canvas.setLineWidth(line_width)
        self.canvas.roundRect(x, y, width, height, radius, stroke=1, fill=0)

    def draw_text(self, x: float, baseline: float, text: str, font: str, size: float, color: Color) -> None:
        cx, cy = self._to_canvas(x, baseline)
        self.canvas.setFont(font, size)
        self.canvas.setFillColor(color)
        self.canvas.drawString(cx, cy, text)

    @staticmethod
    def string_width(text: str, font: str, size: float) -> float:
        return pdfmetrics.stringWidth(text, font, size)


class ImageRenderer:
    """
    Renders sheets and single cards into ``fitz.Pixmap`` images.

    All copies of a renderer should share one pool; pass ``pool`` to share it
    between renderers with different dimensions.
    """

    def __init__(self, dimensions: Dimensions, pool: Optional[DevicePool[RasterDevice]] = None) -> None:
        self.dimensions = dimensions
        self.pool = pool if pool is not None else DevicePool(RasterDevice)

    def create_sheet(self, draw: DrawFn) -> fitz.Pixmap:
        sheet = self.dimensions.sheet
        return self._render("sheet", self.dimensions.width, self.dimensions.height, sheet.width, sheet.height, draw)

    def create_card(self, draw: DrawFn) -> fitz.Pixmap:
        width, height = self.dimensions.card_pixels
        card = self.dimensions.card
        return self._render("card", width, height, card.width, card.height, draw)

    def _render(
        self,
        kind: str,
        width: int,
        height: int,
        logical_width: float,
        logical_height: float,
        draw: DrawFn,
    ) -> fitz.Pixmap:
        started = time.perf_counter()
        with self.pool.acquire() as device:
            acquired = time.perf_counter()
            pdf_canvas, buffer = device.new_canvas(width, height)
            ctx = CanvasContext(
                pdf_canvas,
                logical_height=logical_height,
                scale_x=width / logical_width,
                scale_y=height / logical_height,
            )
            try:
                draw(ctx, self.dimensions)
            except KartenError:
                raise
            except Exception as error:
                raise RenderError(f"drawing the {kind} failed: {error}") from error
            drawn = time.perf_counter()
            try:
                pixmap = device.rasterize(pdf_canvas, buffer)
            except Exception as error:
                raise RenderError(f"rasterizing the {kind} failed: {error}") from error

        finished = time.perf_counter()
        total = finished - started
        LOGGER.debug(
            "Rendered %s (%dx%d) in %.3fs: %.0f%% waiting for device, %.0f%% drawing, %.0f%% rasterizing",
            kind,
            width,
            height,
            total,
            _share(acquired - started, total),
            _share(drawn - acquired, total),
            _share(finished - drawn, total),
        )
        return pixmap


def _share(part: float, total: float) -> float:
    return part / total * 100.0 if total > 0 else 0.0
