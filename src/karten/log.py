"""Shared console and logging setup."""
from __future__ import annotations

import logging
import os
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

# Rich console instance shared by the CLI and the log handler
console = Console()

_DEFAULT_LEVEL = "WARNING"
_ROOT = "karten"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger below the ``karten`` namespace, installing the rich handler once."""
    root = logging.getLogger(_ROOT)
    if not root.handlers:
        handler = RichHandler(console=console, show_path=False, markup=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(handler)
        root.setLevel(os.environ.get("KARTEN_LOG_LEVEL", _DEFAULT_LEVEL).upper())
        root.propagate = False
    return logging.getLogger(name or _ROOT)


def set_level(level: int | str) -> None:
    """Change the level of every karten logger."""
    get_logger().setLevel(level)
