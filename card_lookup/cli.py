"""Typer CLI: identify a card under a point in an image or on screen, or look one up by name."""

import asyncio
from pathlib import Path
from typing import Awaitable, Callable

import typer
from PIL import Image, UnidentifiedImageError
from rich.console import Console
from rich.table import Table

from card_lookup.core.config import get_config
from card_lookup.core.logging import get_flight_logger, setup_logging
from card_lookup.imaging.capture import RegionCapturer, Scene
from card_lookup.lookup.orchestrator import LookupOrchestrator, StateChange
from card_lookup.lookup.pipeline import build_pipeline
from card_lookup.models.entities import CardRecord, Found, LookupResult, OverlayState, Point

app = typer.Typer(no_args_is_help=True, help="Identify trading cards on screen and look up card data.")

FALLBACK_STATES = (OverlayState.no_match, OverlayState.error_fallback)


def _card_table(card: CardRecord) -> Table:
    table = Table(title=card.name, show_header=False)
    table.add_column("Field")
    table.add_column("Value")
    rows = [
        ("Mana cost", card.mana_cost),
        ("Type", card.type_line),
        ("Set", f"{card.set_name} ({card.set_code})" if card.set_name else card.set_code),
        ("Rarity", card.rarity),
        ("Oracle text", card.oracle_text),
        ("Image", card.image_url),
        ("Back face", card.back_image_url),
    ]
    for label, value in rows:
        if value:
            table.add_row(label, value)
    return table


class ConsoleRenderer:
    """StateListener that renders overlay states to the terminal."""

    def __init__(self, console: Console, save_capture: Path | None = None) -> None:
        self.console = console
        self.save_capture = save_capture

    def __call__(self, change: StateChange) -> None:
        if change.loading:
            if change.message:
                self.console.print(f"[dim]{change.message}[/dim]")
            return
        if change.state == OverlayState.resolved and isinstance(change.result, Found):
            self.console.print(_card_table(change.result.card))
        elif change.state == OverlayState.no_match:
            self.console.print(f"[yellow]{change.message}[/yellow]")
        elif change.state == OverlayState.error_fallback:
            self.console.print(f"[red]{change.message}[/red]")
        elif change.state == OverlayState.debug_resolved:
            self._render_debug(change)

    def _render_debug(self, change: StateChange) -> None:
        self.console.print("[bold]Debug Mode - OCR Detection[/bold]")
        if change.message:
            self.console.print(f"[red]{change.message}[/red]")
        if change.debug_text:
            self.console.print(f"[green]{change.debug_text}[/green]")
        if change.capture is None:
            self.console.print("No canvas captured")
            return
        self.console.print(f"Captured {change.capture.width}x{change.capture.height} region")
        if self.save_capture is not None:
            change.capture.image.save(self.save_capture, format="PNG")
            self.console.print(f"Capture saved to {self.save_capture}")


def _build_orchestrator(
    scene_provider: Callable[[], Scene],
    renderer: ConsoleRenderer,
) -> LookupOrchestrator:
    cfg = get_config()
    return LookupOrchestrator(
        RegionCapturer(scale=cfg.capture_scale),
        build_pipeline(cfg),
        scene_provider,
        renderer,
        capture_width=cfg.capture_width,
        capture_height=cfg.capture_height,
    )


async def _drive(
    orchestrator: LookupOrchestrator,
    first: Callable[[], Awaitable[LookupResult]],
    prompt: bool,
) -> LookupResult:
    """Run the first lookup, then keep offering manual entry while a fallback is showing."""
    result = await first()
    while prompt and orchestrator.state in FALLBACK_STATES:
        detected = orchestrator.current.detected_name
        label = f"Enter card name (detected: {detected}; blank to quit)" if detected else "Enter card name (blank to quit)"
        name = typer.prompt(label, default="", show_default=False)
        if not name.strip():
            orchestrator.dismiss()
            break
        result = await orchestrator.identify_from_name(name)
    return result


def _finish(orchestrator: LookupOrchestrator, result: LookupResult, dump_log: bool) -> None:
    if dump_log:
        fl = get_flight_logger()
        if fl is not None:
            typer.echo(f"Flight log written to {fl.dump('cli')}")
    if not isinstance(result, Found) or orchestrator.state not in (
        OverlayState.resolved,
        OverlayState.debug_resolved,
    ):
        raise typer.Exit(1)


def _prepare(config_path: Path | None) -> None:
    if config_path is not None:
        try:
            get_config(config_path)
        except FileNotFoundError as e:
            typer.secho(str(e), fg=typer.colors.RED, err=True)
            raise typer.Exit(1)
    setup_logging()


@app.command("lookup")
def lookup(
    name: str = typer.Argument(..., help="Card name to look up (fuzzy matched)."),
    no_prompt: bool = typer.Option(False, "--no-prompt", help="Do not offer manual entry when nothing matches."),
    dump_log: bool = typer.Option(False, "--dump-log", help="Write the in-memory log buffer to the forensics dir."),
    config_path: Path | None = typer.Option(None, "--config", help="Path to a card_lookup.yml file."),
) -> None:
    """Look up a card by name, skipping capture and OCR."""
    _prepare(config_path)
    renderer = ConsoleRenderer(Console())

    def _no_scene() -> Scene:
        raise ValueError("name lookups do not capture")

    orchestrator = _build_orchestrator(_no_scene, renderer)
    result = asyncio.run(_drive(orchestrator, lambda: orchestrator.identify_from_name(name), not no_prompt))
    _finish(orchestrator, result, dump_log)


@app.command("identify")
def identify(
    image_path: Path = typer.Argument(..., help="Screenshot or video frame to read from."),
    x: float = typer.Option(..., "--x", help="Cursor x position in image pixels."),
    y: float = typer.Option(..., "--y", help="Cursor y position in image pixels."),
    debug: bool = typer.Option(False, "--debug", help="Show what the recognizer sees instead of the card."),
    save_capture: Path | None = typer.Option(None, "--save-capture", help="Debug mode: write the capture PNG here."),
    no_prompt: bool = typer.Option(False, "--no-prompt", help="Do not offer manual entry when nothing matches."),
    dump_log: bool = typer.Option(False, "--dump-log", help="Write the in-memory log buffer to the forensics dir."),
    config_path: Path | None = typer.Option(None, "--config", help="Path to a card_lookup.yml file."),
) -> None:
    """Identify the card name under (x, y) in an image file."""
    _prepare(config_path)
    try:
        with Image.open(image_path) as img:
            frame = img.convert("RGB")
    except (FileNotFoundError, UnidentifiedImageError) as e:
        typer.secho(f"Cannot open image: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    renderer = ConsoleRenderer(Console(), save_capture=save_capture)
    orchestrator = _build_orchestrator(lambda: Scene.from_image(frame), renderer)
    point = Point(x, y)
    result = asyncio.run(
        _drive(orchestrator, lambda: orchestrator.identify_from_region(point, debug=debug), not (no_prompt or debug))
    )
    _finish(orchestrator, result, dump_log)


@app.command("screen")
def screen(
    x: float = typer.Option(..., "--x", help="Cursor x position in screen pixels."),
    y: float = typer.Option(..., "--y", help="Cursor y position in screen pixels."),
    debug: bool = typer.Option(False, "--debug", help="Show what the recognizer sees instead of the card."),
    save_capture: Path | None = typer.Option(None, "--save-capture", help="Debug mode: write the capture PNG here."),
    no_prompt: bool = typer.Option(False, "--no-prompt", help="Do not offer manual entry when nothing matches."),
    dump_log: bool = typer.Option(False, "--dump-log", help="Write the in-memory log buffer to the forensics dir."),
    config_path: Path | None = typer.Option(None, "--config", help="Path to a card_lookup.yml file."),
) -> None:
    """Identify the card name under (x, y) on the desktop."""
    _prepare(config_path)
    renderer = ConsoleRenderer(Console(), save_capture=save_capture)
    orchestrator = _build_orchestrator(Scene.from_screen, renderer)
    point = Point(x, y)
    result = asyncio.run(
        _drive(orchestrator, lambda: orchestrator.identify_from_region(point, debug=debug), not (no_prompt or debug))
    )
    _finish(orchestrator, result, dump_log)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
