"""CLI entry point for karten."""
from __future__ import annotations

import argparse
import sys
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from rich import box
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from karten.artifact import Artifact, order_artifacts
from karten.config import RenderConfig, find_deck_files, prepare_directory
from karten.dimensions import compute, parse_aspect_ratio
from karten.errors import KartenError
from karten.export import FileExporter, PngExporter, export_all
from karten.log import console, get_logger, set_level
from karten.pagination import build
from karten.renderer import ImageRenderer
from karten.tts import ExternalEditorApi, spawn_deck
from karten.xml_format import load_deck

LOGGER = get_logger(__name__)

# Distance between spawned decks on the table
SPAWN_SPACING = 2.4


@dataclass
class DeckResult:
    path: Path
    name: str = ""
    artifacts: Optional[List[Artifact[Path]]] = None
    error: Optional[str] = None
    seconds: float = 0.0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="karten",
        description="Karten – Render card decks into Tabletop Simulator sheets",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output.")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Build command - render, export and optionally spawn
    build_cmd = subparsers.add_parser("build", help="Render every deck into sheet images")
    build_cmd.add_argument(
        "-a",
        "--aspect-ratio",
        type=str,
        default=None,
        help="Card aspect ratio as W/H or a decimal (default: 1/1.44).",
    )
    build_cmd.add_argument(
        "-r",
        "--resolution",
        type=int,
        default=None,
        help="Pixel length of the longer sheet side (default: 4096).",
    )
    build_cmd.add_argument(
        "-i",
        "--input",
        action="append",
        default=None,
        help="Deck file or directory of decks; repeatable (default: input/).",
    )
    build_cmd.add_argument(
        "-d",
        "--directory",
        type=str,
        default=None,
        help="Output directory for the images (default: export/).",
    )
    build_cmd.add_argument(
        "--create",
        action="store_true",
        default=None,
        help="Create the output directory if it does not exist.",
    )
    build_cmd.add_argument(
        "-j",
        "--jobs",
        type=int,
        default=None,
        help="Number of decks rendered in parallel (default: 1).",
    )
    build_cmd.add_argument(
        "-s",
        "--sync-to-tts",
        action="store_true",
        default=None,
        help="Spawn the exported decks in a running Tabletop Simulator.",
    )
    build_cmd.add_argument("-v", "--verbose", action="store_true", default=argparse.SUPPRESS, help=argparse.SUPPRESS)

    # Check command - parse only
    check_cmd = subparsers.add_parser("check", help="Parse decks and show their cards without rendering")
    check_cmd.add_argument(
        "-i",
        "--input",
        action="append",
        default=None,
        help="Deck file or directory of decks; repeatable (default: input/).",
    )
    check_cmd.add_argument("-v", "--verbose", action="store_true", default=argparse.SUPPRESS, help=argparse.SUPPRESS)

    return parser


def config_from_args(args: argparse.Namespace, base: RenderConfig) -> RenderConfig:
    return base.override(
        aspect_ratio=parse_aspect_ratio(args.aspect_ratio) if getattr(args, "aspect_ratio", None) else None,
        resolution=getattr(args, "resolution", None),
        inputs=tuple(Path(value) for value in args.input) if args.input else None,
        directory=Path(args.directory) if getattr(args, "directory", None) else None,
        create=getattr(args, "create", None),
        jobs=getattr(args, "jobs", None),
        sync_to_tts=getattr(args, "sync_to_tts", None),
    )


def render_deck(path: Path, renderer: ImageRenderer, exporter: FileExporter, config: RenderConfig) -> DeckResult:
    """Parse, render and export one deck file; failures are recorded, not raised."""
    started = time.perf_counter()
    result = DeckResult(path=path)
    try:
        deck = load_deck(path)
        result.name = deck.name
        artifacts = build(deck, renderer, rows=config.rows, columns=config.columns)
        result.artifacts = order_artifacts(export_all(artifacts, [PngExporter(), exporter]))
    except KartenError as error:
        LOGGER.debug("Deck %s failed", path, exc_info=True)
        result.error = str(error)
    except OSError as error:
        result.error = f"couldn't read {path}: {error}"
    result.seconds = time.perf_counter() - started
    return result


def print_failed_decks_report(results: List[DeckResult]) -> None:
    """Print report of failed decks."""
    failed = [result for result in results if result.error is not None]
    if not failed:
        return

    console.print()
    console.print(f"[red]✘ {len(failed)} deck(s) could not be rendered:[/red]")
    failed_table = Table(box=box.SIMPLE, border_style="red", show_header=True)
    failed_table.add_column("File", style="dim")
    failed_table.add_column("Deck", style="white")
    failed_table.add_column("Error", style="red")
    for result in failed:
        error = result.error or ""
        failed_table.add_row(result.path.name, result.name, error[:80] + "..." if len(error) > 80 else error)
    console.print(failed_table)


def run_build(config: RenderConfig) -> int:
    """Run the build command."""
    console.print()
    console.print(Panel.fit(
        "[bold cyan]🃏  Karten - Build Decks[/bold cyan]\n"
        "[dim]Rendering decks into Tabletop Simulator sheets[/dim]",
        border_style="cyan",
    ))
    console.print()

    files = find_deck_files(config.inputs)
    directory = prepare_directory(config.directory, config.create)
    dimensions = compute(config.resolution, config.aspect_ratio, rows=config.rows, columns=config.columns)
    renderer = ImageRenderer(dimensions)
    exporter = FileExporter(directory)

    results: List[DeckResult] = []
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Rendering decks", total=len(files))
        with ThreadPoolExecutor(max_workers=config.jobs) as executor:
            futures = [executor.submit(render_deck, path, renderer, exporter, config) for path in files]
            for future in as_completed(futures):
                result = future.result()
                results.append(result)
                progress.update(
                    task, advance=1, description=f"Rendered {result.path.name} ({result.seconds:.1f}s)"
                )

    # Keep the input order for the summary and for spawning
    order = {path: index for index, path in enumerate(files)}
    results.sort(key=lambda result: order[result.path])

    spawned = 0
    if config.sync_to_tts:
        api = ExternalEditorApi()
        rendered = [result for result in results if result.artifacts]
        for index, result in enumerate(rendered):
            try:
                spawned += spawn_deck(api, result.artifacts or [], (index * SPAWN_SPACING, 0.0, 0.0))
            except KartenError as error:
                result.error = str(error)
                break

    # Print summary
    console.print()

    table = Table(box=box.ROUNDED, border_style="cyan")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="white")

    images = sum(len(result.artifacts or []) for result in results)
    failed = sum(1 for result in results if result.error is not None)
    table.add_row("📚 Decks", f"[bold]{len(results) - failed}[/bold] of {len(results)}")
    table.add_row("🖼️  Images", f"[bold]{images}[/bold]")
    table.add_row("📐 Sheet size", f"[bold]{dimensions.width}x{dimensions.height}[/bold] px")
    table.add_row("🃏 Aspect ratio", f"[bold]{config.aspect_ratio}[/bold]")
    table.add_row("📁 Output folder", f"[bold]{directory}[/bold]")
    if config.sync_to_tts:
        table.add_row("🎲 Spawned in TTS", f"[bold]{spawned}[/bold]")

    console.print(table)
    print_failed_decks_report(results)

    console.print()
    if failed:
        console.print("[yellow]⚠[/yellow] [bold yellow]Done with errors.[/bold yellow]")
        console.print()
        return 1
    console.print("[green]✔[/green] [bold green]Done![/bold green] Decks rendered successfully.")
    console.print()
    return 0


def run_check(config: RenderConfig) -> int:
    """Run the check command."""
    failed = 0
    for path in find_deck_files(config.inputs):
        try:
            deck = load_deck(path)
        except (KartenError, OSError) as error:
            console.print(f"[red]✘ {path.name}:[/red] {error}")
            failed += 1
            continue

        table = Table(
            title=f"{deck.name} [dim]({deck.theme}, {deck.back} back)[/dim]",
            box=box.ROUNDED,
            border_style="cyan",
            show_lines=True,
        )
        table.add_column("#", style="cyan", justify="right")
        table.add_column("Card", style="white")
        for index, card in enumerate(deck.cards, start=1):
            table.add_row(str(index), str(card))
        console.print(table)

    return 1 if failed else 0


COMMANDS = ("build", "check")


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    # Default to 'build' if no command specified
    if not any(arg in COMMANDS for arg in argv) and not {"-h", "--help"} & set(argv):
        argv = ["build"] + argv

    args = build_parser().parse_args(argv)
    if args.verbose:
        set_level("DEBUG")

    try:
        config = config_from_args(args, RenderConfig.from_env())
        if args.command == "check":
            return run_check(config)
        return run_build(config)
    except KartenError as error:
        console.print(f"[red]✘[/red] {error}")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
