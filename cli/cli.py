"""Terminal client for the study tracker.

Drives the same session lifecycle and stats view as the Streamlit dashboard,
against the backend configured by BACKEND_URL.
"""

import asyncio

import typer
from loguru import logger
from rich.console import Console, Group
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.prompt import Confirm, Prompt
from rich.table import Table
from rich.text import Text

from app.main import Tracker, build_tracker, init_logging
from app.sessions.models import Confirming, Level, Phase, duration_label
from app.stats.progress import DailyChart, GoalProgress
from app.stats.view import StatsRender

# Initialize Rich console for output
console = Console()

# Initialize Typer app
app = typer.Typer(
    name="study-tracker",
    help="Study Tracker - time study sessions and watch progress toward B1+/B2",
    add_completion=False,
)

CANCEL_CHOICE = "cancel"


# -------------------------------------------------
# Rendering
# -------------------------------------------------
def _bar_row(bar: GoalProgress) -> list[object]:
    status = Text(f"{bar.status_label} 🎉", style="bold green") if bar.goal_reached else Text(bar.status_label)
    return [
        Text(bar.label, style="bold"),
        ProgressBar(total=100, completed=bar.percent, width=30),
        bar.percent_label,
        bar.hours_label,
        status,
    ]


def _chart_table(chart: DailyChart) -> Table | Text:
    if chart.is_empty:
        return Text(chart.empty_message, style="dim")

    table = Table(title=chart.title, show_edge=False, box=None)
    table.add_column("Date")
    table.add_column("Hours", justify="right")
    table.add_column("")
    peak = max(p.hours for p in chart.points) or 1.0
    for label, point in zip(chart.tick_labels(), chart.points, strict=True):
        width = round(point.hours / peak * 30)
        table.add_row(label, f"{point.hours:.1f}", Text("█" * width, style=chart.color))
    return table


def render_stats(view: StatsRender) -> Group:
    parts: list[object] = []
    if view.error_message:
        parts.append(Text(view.error_message, style="bold red"))

    if view.bars:
        table = Table(title="Cumulative Progress", show_header=False, box=None)
        for _ in range(5):
            table.add_column()
        for bar in view.bars:
            table.add_row(*_bar_row(bar))
        parts.append(table)

    if view.charts:
        parts.append(Text("Daily Activity", style="bold"))
        parts.extend(_chart_table(chart) for chart in view.charts)

    return Group(*parts)


def _print_error(tracker: Tracker) -> None:
    if tracker.lifecycle.last_error is not None:
        console.print(f"[red]Error:[/red] {tracker.lifecycle.last_error}")


# -------------------------------------------------
# Session flow
# -------------------------------------------------
async def _choose_level(tracker: Tracker, level: Level | None) -> bool:
    lifecycle = tracker.lifecycle
    lifecycle.request_start()
    while lifecycle.phase is Phase.CHOOSING_LEVEL:
        if level is None:
            choice = Prompt.ask(
                "Which level are you studying?",
                choices=[lvl.value for lvl in Level] + [CANCEL_CHOICE],
                console=console,
            )
            if choice == CANCEL_CHOICE:
                lifecycle.cancel()
                return False
            level = Level(choice)

        if await lifecycle.choose_level(level):
            return True
        _print_error(tracker)
        if not Confirm.ask("Retry?", default=True, console=console):
            lifecycle.cancel()
            return False
    return False


async def _stop(tracker: Tracker) -> None:
    lifecycle = tracker.lifecycle
    while lifecycle.phase is Phase.RUNNING:
        Prompt.ask("Press Enter when you're done studying", default="", show_default=False, console=console)
        if not await lifecycle.stop():
            _print_error(tracker)


async def _settle(tracker: Tracker) -> None:
    lifecycle = tracker.lifecycle
    while isinstance(lifecycle.state, Confirming):
        console.print(Text(f"You studied {duration_label(lifecycle.state.duration_minutes)}.", style="bold"))
        if Confirm.ask("Do you want to log this session?", default=True, console=console):
            await lifecycle.confirm()
            console.print("[green]✓ Session logged[/green]")
            console.print(render_stats(tracker.stats.render()))
        elif await lifecycle.discard():
            console.print("[yellow]Session discarded[/yellow]")
        else:
            _print_error(tracker)


async def _track(tracker: Tracker, level: Level | None) -> None:
    try:
        if not await _choose_level(tracker, level):
            console.print("[dim]Cancelled[/dim]")
            return
        running = tracker.lifecycle.snapshot()
        console.print(
            Panel(
                Text(f"Session running · {running.chosen_level.label}", style="bold green"),
                subtitle=f"id {running.session_id}",
                border_style="green",
            )
        )
        await _stop(tracker)
        await _settle(tracker)
    finally:
        await tracker.aclose()


async def _show_stats(tracker: Tracker) -> bool:
    try:
        await tracker.stats.refresh()
        view = tracker.stats.render()
        console.print(render_stats(view))
        return view.error_message is None
    finally:
        await tracker.aclose()


async def _watch(tracker: Tracker) -> None:
    view = tracker.stats

    def redraw() -> None:
        console.clear()
        console.print(render_stats(view.render()))
        console.print(f"[dim]Refreshing every {view.poll_interval:g}s. Ctrl+C to quit.[/dim]")

    try:
        await view.start_polling(on_refresh=redraw)
    finally:
        await view.stop_polling()
        await tracker.aclose()


# -------------------------------------------------
# Commands
# -------------------------------------------------
@app.command()
def track(
    level: Level | None = typer.Option(None, "--level", "-l", help="Level to study (prompted if omitted)"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """Time one study session, then log or discard it."""
    init_logging(debug=debug)
    asyncio.run(_track(build_tracker(), level))


@app.command()
def stats(
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """Print cumulative progress and daily activity once."""
    init_logging(debug=debug)
    if not asyncio.run(_show_stats(build_tracker())):
        raise typer.Exit(1)


@app.command()
def watch(
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """Keep the progress view on screen, refreshing on the poll interval."""
    init_logging(debug=debug)
    try:
        asyncio.run(_watch(build_tracker()))
    except KeyboardInterrupt:
        logger.info("Watch stopped by user")


if __name__ == "__main__":
    app()
