"""Command line interface for gamerelay."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import typer
from rich.console import Console

from gamerelay.app import build_resolver, build_runtime
from gamerelay.channels.events import DecisionRecord, InvocationError, LevelEnd, RelayEvent, SessionEnd, StateUpdate
from gamerelay.config import load_settings
from gamerelay.core.composer import compose_prompt
from gamerelay.core.snapshot import StateSnapshot
from gamerelay.errors import ChannelError, ConfigurationError
from gamerelay.logging_utils import configure_logging

app = typer.Typer(
    name="gamerelay",
    help="Relay a real-time game loop to a slow LLM decision service",
    add_completion=False,
)


class EventRenderer:
    """Print relay events to the terminal."""

    def __init__(self, console: Console | None = None, *, show_ticks: bool = False) -> None:
        self.console = console or Console()
        self._show_ticks = show_ticks

    def __call__(self, event: RelayEvent) -> None:
        if isinstance(event, StateUpdate):
            if self._show_ticks:
                self.console.print(
                    f"[dim]tick {event.tick} score={event.score} health={event.health} -> {event.action}[/dim]"
                )
        elif isinstance(event, DecisionRecord):
            marker = "" if event.matched else " [yellow](unparsed)[/yellow]"
            self.console.print(
                f"[bold cyan]decision[/bold cyan] tick {event.tick}: [magenta]{event.action}[/magenta]"
                f" in {event.elapsed_ms:.0f}ms{marker}"
            )
        elif isinstance(event, LevelEnd):
            self.console.print(
                f"[bold green]level {event.level} ended[/bold green] score={event.score} winner={event.winner}"
            )
        elif isinstance(event, SessionEnd):
            self.console.print(f"[bold]session ended[/bold] ({event.reason}), levels played: {event.levels_played}")
        elif isinstance(event, InvocationError):
            self.console.print(f"[bold red]LLM error:[/bold red] {event.message}")


@app.command()
def run(
    host: str | None = typer.Option(None, "--host", help="Simulation peer host"),
    port: int | None = typer.Option(None, "--port", "-p", help="Simulation peer port"),
    model: str | None = typer.Option(None, "--model", "-m", help="Decision model id"),
    game_id: str | None = typer.Option(None, "--game-id", help="Game id used to resolve prompt layers"),
    game_name: str | None = typer.Option(None, "--game-name", help="Game name for {{gameName}}"),
    prompts_dir: Path | None = typer.Option(None, "--prompts-dir", help="Prompt configuration directory"),  # noqa: B008
    log_level: str | None = typer.Option(None, "--log-level", help="Log level"),
    show_ticks: bool = typer.Option(False, "--show-ticks", help="Print every tick"),
) -> None:
    """Connect to a running simulation peer and relay decisions until the session ends."""

    settings = load_settings(host=host, port=port, model=model, prompts_dir=prompts_dir, log_level=log_level)
    configure_logging(profile="console", level=settings.log_level)

    async def _main() -> None:
        runtime = build_runtime(settings, game_id=game_id, game_name=game_name)
        runtime.events.subscribe(EventRenderer(show_ticks=show_ticks))
        if not await runtime.validate_api_key():
            typer.echo("Warning: API key rejected; cloud model calls will fail.", err=True)
        await runtime.run()

    try:
        asyncio.run(_main())
    except (ChannelError, ConfigurationError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    except KeyboardInterrupt:
        typer.echo("Interrupted.")


@app.command("check-key")
def check_key(
    model: str | None = typer.Option(None, "--model", "-m", help="Decision model id"),
) -> None:
    """Validate the configured API key against the cloud provider."""

    settings = load_settings(model=model)
    configure_logging(profile="console", level=settings.log_level)
    runtime = build_runtime(settings)

    async def _check() -> bool:
        try:
            return await runtime.validate_api_key()
        finally:
            await runtime.backend.aclose()

    if not asyncio.run(_check()):
        typer.echo("API key is invalid.", err=True)
        raise typer.Exit(code=1)
    typer.echo("API key OK.")


@app.command("render-prompt")
def render_prompt(
    snapshot_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON state snapshot"),  # noqa: B008
    game_id: str | None = typer.Option(None, "--game-id"),
    game_name: str | None = typer.Option(None, "--game-name"),
    level: int = typer.Option(0, "--level", min=0),
    prompts_dir: Path | None = typer.Option(None, "--prompts-dir"),  # noqa: B008
) -> None:
    """Print the decision input composed for one snapshot."""

    settings = load_settings(prompts_dir=prompts_dir)
    config = build_resolver(settings).resolve(game_id, level).with_game_name(game_name)
    snapshot = StateSnapshot.from_payload(snapshot_file.read_text(encoding="utf-8"))
    prompt = compose_prompt(snapshot, config)
    typer.echo(json.dumps(prompt.messages(), ensure_ascii=False, indent=2))
