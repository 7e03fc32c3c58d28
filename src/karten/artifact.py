"""
Identity metadata for produced sheet and card images.

An :class:`Artifact` is created once per image by the pagination step and is
then threaded through the export stages, each of which swaps ``data`` (pixels,
then encoded bytes, then a storage path) while keeping the identity fields.
``str(artifact)`` is the canonical name used for files and objects::

    {deck}-{side}-{content}-{amount}
    e.g. "Fragen-front-r7c10t70-1of3"
"""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Iterable, List, Optional, Tuple, TypeVar, Union

T = TypeVar("T")


class Side(str, Enum):
    FRONT = "front"
    BACK = "back"

    def __str__(self) -> str:
        return self.value


class Backside(str, Enum):
    """Whether all cards of a deck share one back image or every card has its own."""

    SHARED = "shared"
    UNIQUE = "unique"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class SingleContent:
    """The image shows exactly one card."""

    def __str__(self) -> str:
        return "single"


@dataclass(frozen=True)
class SheetContent:
    """The image is a grid of ``rows`` x ``columns`` cells, ``occupied`` of them used."""

    rows: int
    columns: int
    occupied: int

    def __str__(self) -> str:
        return f"r{self.rows}c{self.columns}t{self.occupied}"


Content = Union[SingleContent, SheetContent]


@dataclass(frozen=True)
class SingleAmount:
    """The deck side fits into one image."""

    def sort_key(self) -> Tuple[int, int]:
        return (0, 0)

    def __str__(self) -> str:
        return "1of1"


@dataclass(frozen=True)
class MultipleAmount:
    """Image ``index`` (1-based) of ``total`` images for one deck side."""

    index: int
    total: int

    def sort_key(self) -> Tuple[int, int]:
        return (1, self.index)

    def __str__(self) -> str:
        return f"{self.index}of{self.total}"


Amount = Union[SingleAmount, MultipleAmount]


@dataclass(frozen=True)
class Artifact(Generic[T]):
    """A produced image plus everything needed to name and place it downstream."""

    deck: str
    side: Side
    shared: Backside
    content: Content
    amount: Amount
    data: T
    aspect_ratio: Optional[float] = None
    extension: Optional[str] = None

    @property
    def name(self) -> str:
        return f"{self.deck}-{self.side}-{self.content}-{self.amount}"

    @property
    def is_landscape(self) -> bool:
        return self.aspect_ratio is not None and self.aspect_ratio > 1.0

    def with_data(self, data: Any, **changes: Any) -> "Artifact[Any]":
        """Return a copy carrying ``data`` (and any other field ``changes``)."""
        return dataclasses.replace(self, data=data, **changes)

    def __str__(self) -> str:
        return self.name


def order_artifacts(artifacts: Iterable[Artifact[T]]) -> List[Artifact[T]]:
    """
    Sort artifacts so that fronts and their matching backs are adjacent.

    ``SingleAmount`` comes first, then ``MultipleAmount`` by ascending page
    index. The sort is stable, so a front stays ahead of the back with the
    same amount when the input lists fronts first.
    """
    return sorted(artifacts, key=lambda artifact: artifact.amount.sort_key())
