"""
Package initialization for karten.

This package turns card decks written in a small XML markup into the sheet
images Tabletop Simulator imports as custom decks.

Modules:
    - markup: Card content tree, flattening into text plus style annotations
    - xml_format: Deck documents in XML
    - dimensions: Sheet and card geometry for a resolution and aspect ratio
    - artifact: Identity and naming of produced images
    - pagination: Splitting decks into sheets of rows x columns cards
    - device: Rendering devices and the thread-safe pool sharing them
    - renderer: reportlab drawing contexts rasterized with PyMuPDF
    - draw, textlayout, palette: How a card face and back look
    - export: PNG encoding and file output
    - tts: Spawning decks in a running Tabletop Simulator
    - config: Render configuration and input discovery
"""

from .artifact import (
    # Identity
    Artifact,
    Backside,
    MultipleAmount,
    SheetContent,
    Side,
    SingleAmount,
    SingleContent,
    order_artifacts,
)
from .config import RenderConfig
from .device import DevicePool, RasterDevice
from .dimensions import AspectRatio, Dimensions, compute, parse_aspect_ratio
from .errors import KartenError
from .export import FileExporter, PngExporter, export_all
from .markup import (
    # Content tree
    Blank,
    Bottom,
    Card,
    Deck,
    Font,
    Italic,
    Plain,
    Style,
    StyleAnnotation,
    Theme,
    Tiny,
    Unknown,
    flatten,
)
from .pagination import build
from .renderer import ImageRenderer
from .xml_format import load_deck, parse_deck

__version__ = "0.1.0"

__all__ = [
    "Artifact",
    "AspectRatio",
    "Backside",
    "Blank",
    "Bottom",
    "Card",
    "Deck",
    "DevicePool",
    "Dimensions",
    "FileExporter",
    "Font",
    "ImageRenderer",
    "Italic",
    "KartenError",
    "MultipleAmount",
    "Plain",
    "PngExporter",
    "RasterDevice",
    "RenderConfig",
    "SheetContent",
    "Side",
    "SingleAmount",
    "SingleContent",
    "Style",
    "StyleAnnotation",
    "Theme",
    "Tiny",
    "Unknown",
    "build",
    "compute",
    "export_all",
    "flatten",
    "load_deck",
    "order_artifacts",
    "parse_aspect_ratio",
    "parse_deck",
]
