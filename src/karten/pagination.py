"""
Pagination of a deck into Tabletop Simulator sheets.

Cards are cut into consecutive pages of ``rows * columns`` cards. Each page
becomes one front sheet; backs are either one shared card image drawn from
the first card or, for unique backs, one sheet per page laid out exactly like
the fronts.
"""
from __future__ import annotations

from concurrent.futures import Executor
from typing import Any, Callable, Iterator, List, Protocol, Sequence, TypeVar

from .artifact import (
    Amount,
    Artifact,
    Backside,
    MultipleAmount,
    SheetContent,
    Side,
    SingleAmount,
    SingleContent,
)
from .dimensions import CARD_RADIUS, COLUMNS, ROWS, Dimensions
from .errors import KartenError, RenderError
from .log import get_logger
from .renderer import DrawingContext, Renderer

LOGGER = get_logger(__name__)

Output = TypeVar("Output")


class DrawableCard(Protocol):
    def draw(self, deck: Any, ctx: Any, index: int, dimensions: Dimensions) -> None: ...

    def draw_back(self, deck: Any, ctx: Any, index: int, dimensions: Dimensions) -> None: ...


class DrawableDeck(Protocol):
    name: str
    cards: Sequence[DrawableCard]
    back: Backside


def page_count(cards: int, capacity: int) -> int:
    """Number of pages needed for ``cards`` cards, i.e. ``ceil(cards / capacity)``."""
    return -(-cards // capacity)


def page_amount(page: int, cards: int, capacity: int) -> Amount:
    """Amount of the 0-based ``page`` of a deck side with ``cards`` cards."""
    if cards <= capacity:
        return SingleAmount()
    return MultipleAmount(index=page + 1, total=page_count(cards, capacity))


def build(
    deck: DrawableDeck,
    renderer: Renderer[Output],
    rows: int = ROWS,
    columns: int = COLUMNS,
    executor: Executor | None = None,
) -> Iterator[Artifact[Output]]:
    """
    Produce every image of ``deck``: the front pages, then the back(s).

    Without an executor each image is rendered when the iterator reaches it.
    With one, all images are submitted at once and yielded in order; a
    failing image raises when it is reached, without cancelling the others.

    Args:
        deck: Deck with ``name``, ``cards`` and ``back``
        renderer: Creates the sheet and card canvases
        rows: Cards per sheet column
        columns: Cards per sheet row
        executor: Optional executor to render pages in parallel

    Yields:
        One Artifact per produced image

    Raises:
        RenderError: When a draw callback fails
    """
    jobs = list(_jobs(deck, renderer, rows, columns))
    LOGGER.debug("Deck %r: %d card(s) into %d image(s)", deck.name, len(deck.cards), len(jobs))

    if executor is None:
        return (job() for job in jobs)
    return _collect(executor, jobs)


def _collect(executor: Executor, jobs: List[Callable[[], Artifact[Output]]]) -> Iterator[Artifact[Output]]:
    futures = [executor.submit(job) for job in jobs]
    for future in futures:
        yield future.result()


def _jobs(
    deck: DrawableDeck,
    renderer: Renderer[Output],
    rows: int,
    columns: int,
) -> Iterator[Callable[[], Artifact[Output]]]:
    if not deck.cards:
        return

    yield from _sheet_jobs(deck, renderer, Side.FRONT, rows, columns)

    if deck.back == Backside.SHARED:
        yield lambda: _shared_back(deck, renderer)
    else:
        yield from _sheet_jobs(deck, renderer, Side.BACK, rows, columns)


def _sheet_jobs(
    deck: DrawableDeck,
    renderer: Renderer[Output],
    side: Side,
    rows: int,
    columns: int,
) -> Iterator[Callable[[], Artifact[Output]]]:
    capacity = rows * columns
    cards = deck.cards
    # Page i holds cards[i * capacity : (i + 1) * capacity]
    for page, first in enumerate(range(0, len(cards), capacity)):
        chunk = cards[first : first + capacity]
        yield _bind_sheet(deck, renderer, side, page, chunk, rows, columns)


def _bind_sheet(
    deck: DrawableDeck,
    renderer: Renderer[Output],
    side: Side,
    page: int,
    chunk: Sequence[DrawableCard],
    rows: int,
    columns: int,
) -> Callable[[], Artifact[Output]]:
    def job() -> Artifact[Output]:
        return _render_sheet(deck, renderer, side, page, chunk, rows, columns)

    return job


def _render_sheet(
    deck: DrawableDeck,
    renderer: Renderer[Output],
    side: Side,
    page: int,
    chunk: Sequence[DrawableCard],
    rows: int,
    columns: int,
) -> Artifact[Output]:
    image = _guarded(
        f"{side} page {page + 1} of deck {deck.name!r}",
        lambda: renderer.create_sheet(
            lambda ctx, dimensions: draw_sheet(ctx, dimensions, deck, page, chunk, side, rows, columns)
        ),
    )
    return Artifact(
        deck=deck.name,
        side=side,
        shared=deck.back,
        content=SheetContent(rows=rows, columns=columns, occupied=len(chunk)),
        amount=page_amount(page, len(deck.cards), rows * columns),
        data=image,
    )


def _shared_back(deck: DrawableDeck, renderer: Renderer[Output]) -> Artifact[Output]:
    first = deck.cards[0]
    image = _guarded(
        f"shared back of deck {deck.name!r}",
        lambda: renderer.create_card(lambda ctx, dimensions: first.draw_back(deck, ctx, 0, dimensions)),
    )
    return Artifact(
        deck=deck.name,
        side=Side.BACK,
        shared=deck.back,
        content=SingleContent(),
        amount=SingleAmount(),
        data=image,
    )


def _guarded(what: str, render: Callable[[], Output]) -> Output:
    try:
        return render()
    except KartenError:
        raise
    except Exception as error:
        raise RenderError(f"rendering the {what} failed: {error}") from error


def draw_sheet(
    ctx: DrawingContext,
    dimensions: Dimensions,
    deck: DrawableDeck,
    page: int,
    cards: Sequence[DrawableCard],
    side: Side,
    rows: int = ROWS,
    columns: int = COLUMNS,
) -> None:
    """
    Draw one page of cards into their grid cells.

    Each card is drawn in its own saved state, translated to its cell and
    clipped to the rounded card outline. Cards receive their index within
    the whole deck so numbering continues across pages.
    """
    width, height = dimensions.card
    first_index = page * rows * columns
    for local_index, card in enumerate(cards):
        with ctx.saved():
            ctx.translate((local_index % columns) * width, (local_index // columns) * height)
            ctx.clip_rounded_rect(width, height, CARD_RADIUS)
            if side == Side.BACK:
                card.draw_back(deck, ctx, first_index + local_index, dimensions)
            else:
                card.draw(deck, ctx, first_index + local_index, dimensions)
