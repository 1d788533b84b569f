"""CLI interface for ringur using typer"""

import logging
from datetime import date
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .actions import ACTION_LABELS, to_canonical
from .config import DEFAULT_CONFIG, Config
from .dates import days_since
from .decay import STRENGTH_COLORS, STRENGTH_LABELS, decay_status_message
from .escalation import message_for
from .importer import LegacyImporter
from .models import CatchupFrequency, ConnectionLifecycle, RingTier
from .priority import FREQUENCY_LABELS, NEVER_CONTACTED_SCORE, SortMode, priority_score
from .relationship import RelationshipTracker
from .store import RecordStore
from .streak import days_to_next_milestone, is_streak_at_risk, streak_message

app = typer.Typer(help="ringur - keep the people who matter from quietly drifting away")
console = Console()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show engine logging")):
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def get_tracker(data_dir: Optional[Path] = None) -> RelationshipTracker:
    """Build a tracker over the configured (or given) data directory"""
    config = Config()
    if data_dir is None:
        data_dir = config.data_dir

    data_dir.mkdir(parents=True, exist_ok=True)
    return RelationshipTracker(RecordStore(data_dir), config.decay_thresholds())


def _find(tracker: RelationshipTracker, name_or_id: str):
    connection = tracker.store.find_connection(name_or_id)
    if connection is None:
        console.print(f"[red]Error: no connection named '{name_or_id}'[/red]")
        raise typer.Exit(1)
    return connection


def _strength_text(strength) -> str:
    return f"[{STRENGTH_COLORS[strength]}]{STRENGTH_LABELS[strength]}[/]"


@app.command()
def add(
    name: str = typer.Argument(..., help="Name of the person"),
    frequency: CatchupFrequency = typer.Option(CatchupFrequency.MONTHLY, "--frequency", "-f", help="Catch-up cadence"),
    ring: RingTier = typer.Option(RingTier.CORE, "--ring", "-r", help="Core or outer circle"),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", "-d", help="Data directory")
):
    """Add a connection"""
    tracker = get_tracker(data_dir)

    if tracker.store.find_connection(name):
        console.print(f"[red]Error: '{name}' already exists[/red]")
        raise typer.Exit(1)

    connection = tracker.add_connection(name, frequency, ring)
    console.print(f"[green]✓ Added {connection.name}[/green] ({FREQUENCY_LABELS[frequency]}, {ring.value} circle)")


@app.command()
def log(
    name: str = typer.Argument(..., help="Connection name or id"),
    action: str = typer.Argument(..., help="text, call or in_person_1on1 (legacy names accepted)"),
    on: Optional[str] = typer.Option(None, "--date", help="Date of the contact (YYYY-MM-DD)"),
    notes: Optional[str] = typer.Option(None, "--notes", "-n", help="What you talked about"),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", "-d", help="Data directory")
):
    """Log a contact with a connection"""
    tracker = get_tracker(data_dir)
    connection = _find(tracker, name)

    try:
        action_type = to_canonical(action)
        when = date.fromisoformat(on) if on else None
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    logged, health = tracker.log_action(connection.id, action_type, on=when, notes=notes)

    console.print(f"[green]✓ Logged {ACTION_LABELS[logged.action_type]} with {connection.name}[/green] (+{logged.weight})")
    console.print(f"Strength: {_strength_text(health.current_strength)}")

    nudge = message_for(logged.action_type)
    if nudge:
        console.print(f"[dim]{nudge}[/dim]")


@app.command(name="list")
def list_connections(
    sort: Optional[SortMode] = typer.Option(None, "--sort", "-s", help="priority or alphabetical"),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", "-d", help="Data directory")
):
    """List connections, most urgent first"""
    tracker = get_tracker(data_dir)
    if sort is None:
        configured = Config().get("display.sort_mode", SortMode.PRIORITY.value)
        try:
            sort = SortMode(configured)
        except ValueError:
            console.print(f"[yellow]Unknown display.sort_mode '{configured}', using priority[/yellow]")
            sort = SortMode.PRIORITY

    connections = tracker.sorted_connections(sort)
    if not connections:
        console.print("[yellow]No connections yet[/yellow]")
        return

    today = date.today()
    table = Table(title="Connections")
    table.add_column("Name", style="cyan")
    table.add_column("Strength")
    table.add_column("Cadence")
    table.add_column("Due", justify="right")
    table.add_column("Last Contact")
    table.add_column("Status")

    for connection in connections:
        health = tracker.get_health(connection.id)
        score = priority_score(connection, today)
        if score == NEVER_CONTACTED_SCORE:
            due = "-"
        elif score < 0:
            due = f"[red]{-score}d overdue[/red]"
        else:
            due = f"in {score}d"

        last = connection.last_interaction_date.isoformat() if connection.last_interaction_date else "Never"
        status = decay_status_message(
            days_since(health.last_action_date, today), health.current_strength, tracker.thresholds
        )
        if connection.lifecycle is ConnectionLifecycle.PENDING_ACTION:
            status = f"[red]Needs decision[/red] - {status}"

        table.add_row(
            connection.name,
            _strength_text(health.current_strength),
            FREQUENCY_LABELS[connection.catchup_frequency],
            due,
            last,
            status,
        )

    console.print(table)


@app.command()
def refresh(
    rebuild: bool = typer.Option(False, "--rebuild", help="Re-derive strengths from the full action history"),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", "-d", help="Data directory")
):
    """Recompute relationship strengths for today"""
    tracker = get_tracker(data_dir)

    if rebuild:
        for connection in tracker.store.list_connections():
            tracker.rebuild_health(connection.id)
        console.print(f"[green]✓ Rebuilt {len(tracker.store.connections)} strength caches[/green]")
        return

    refreshed = tracker.refresh()
    console.print(f"[green]✓ Refreshed {len(refreshed)} connections[/green]")


@app.command()
def review(
    week: Optional[str] = typer.Option(None, "--week", "-w", help="Any date in the week to review (YYYY-MM-DD)"),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", "-d", help="Data directory")
):
    """Weekly pattern review with suggested actions"""
    tracker = get_tracker(data_dir)

    try:
        week_of = date.fromisoformat(week) if week else None
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    patterns, suggestions = tracker.weekly_review(week_of)

    console.print(Panel(patterns.insight_message, title="This Week", border_style="cyan", expand=False))

    table = Table(title="Patterns")
    table.add_column("Score", style="cyan")
    table.add_column("Value", style="magenta")
    table.add_row("Depth", str(patterns.depth_score))
    table.add_row("Variety", str(patterns.variety_score))
    table.add_row("Consistency", str(patterns.consistency_score))
    dominant = ACTION_LABELS[patterns.dominant_action_type] if patterns.dominant_action_type else "-"
    table.add_row("Most common", dominant)
    table.add_row("Valid days (last 7)", str(tracker.weekly_valid_days()))
    console.print(table)

    if suggestions:
        console.print("\n[cyan]Suggested actions:[/cyan]")
        for suggestion in suggestions:
            target = f" with {suggestion.target_connection_name}" if suggestion.target_connection_name else ""
            console.print(
                f"- ({suggestion.priority.value}) {ACTION_LABELS[suggestion.action_type]}{target}: {suggestion.reason}"
            )


@app.command()
def streak(
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", "-d", help="Data directory")
):
    """Show the valid-day streak"""
    tracker = get_tracker(data_dir)
    today = date.today()

    logs = tracker.habit_logs()
    current = tracker.streak(today)
    last_valid = next((entry.log_date for entry in logs if entry.is_valid_day), None)
    todays = next((entry for entry in logs if entry.log_date == today), None)
    progress = todays.total_weight if todays else 0

    console.print(f"Streak: [green]{current}[/green] day{'s' if current != 1 else ''}")
    longest = tracker.longest_streak(today)
    console.print(f"Longest: {longest} day{'s' if longest != 1 else ''}")
    to_go = days_to_next_milestone(current)
    if to_go is not None:
        console.print(f"Next milestone in {to_go} day{'s' if to_go != 1 else ''}")
    if is_streak_at_risk(current, last_valid, today):
        console.print("[yellow]Streak at risk: nothing valid logged today yet[/yellow]")
    console.print(streak_message(current, last_valid, progress, today))


@app.command()
def nudge(
    name: str = typer.Argument(..., help="Connection name or id"),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", "-d", help="Data directory")
):
    """Suggest a deeper way to connect"""
    tracker = get_tracker(data_dir)
    connection = _find(tracker, name)

    suggestion = tracker.nudge(connection.id)
    if suggestion is None:
        console.print(f"[yellow]No further suggestions for {connection.name}[/yellow]")
        return

    console.print(f"[cyan]{connection.name}:[/cyan] {suggestion.suggestion} (level {suggestion.level})")


@app.command()
def schedule(
    name: str = typer.Argument(..., help="Connection name or id"),
    when: Optional[str] = typer.Argument(None, help="Next catch-up date (YYYY-MM-DD); omit to clear"),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", "-d", help="Data directory")
):
    """Set or clear the next planned catch-up"""
    tracker = get_tracker(data_dir)
    connection = _find(tracker, name)

    try:
        next_date = date.fromisoformat(when) if when else None
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    tracker.set_next_catchup(connection.id, next_date)
    if next_date:
        console.print(f"[green]✓ Next catch-up with {connection.name} on {next_date.isoformat()}[/green]")
    else:
        console.print(f"[green]✓ Cleared planned catch-up with {connection.name}[/green]")


@app.command()
def remove(
    name: str = typer.Argument(..., help="Connection name or id"),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", "-d", help="Data directory")
):
    """Delete a connection and its logged actions"""
    tracker = get_tracker(data_dir)
    connection = _find(tracker, name)

    tracker.store.remove_connection(connection.id)
    console.print(f"[green]✓ Removed {connection.name}[/green]")


@app.command()
def import_legacy(
    file_path: Path = typer.Argument(..., help="Path to the legacy interactions JSON export"),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", "-d", help="Data directory")
):
    """Import interactions exported from the old app"""
    if not file_path.exists():
        console.print(f"[red]Error: File not found: {file_path}[/red]")
        raise typer.Exit(1)

    tracker = get_tracker(data_dir)
    console.print(f"[cyan]Importing legacy interactions from {file_path}[/cyan]")

    try:
        stats = LegacyImporter(tracker).import_from_file(file_path)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error during import: {e}[/red]")
        raise typer.Exit(1)

    table = Table(title="Import Results")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", style="green")

    table.add_row("Actions imported", str(stats["actions_imported"]))
    table.add_row("Connections created", str(stats["connections_created"]))
    table.add_row("Already imported", str(stats["duplicates"]))
    table.add_row("Skipped records", str(stats["skipped"]))

    console.print(table)
    console.print("[green]✓ Import completed successfully![/green]")


CONFIG_ACTIONS = ("get", "set", "delete", "list")


def _show_config(settings: Config, prefix: str):
    keys = sorted(settings.list_keys(prefix))
    if not keys:
        console.print("[yellow]No configuration keys found[/yellow]")
        return

    table = Table(title="Configuration Settings")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")
    table.add_column("Default", style="dim")

    for key in keys:
        default = _default_for(key)
        table.add_row(key, str(settings.get(key)), "-" if default is None else str(default))

    console.print(table)


def _default_for(key: str):
    value = DEFAULT_CONFIG
    for part in key.split('.'):
        if not isinstance(value, dict) or part not in value:
            return None
        value = value[part]
    return value


@app.command()
def config(
    action: str = typer.Argument(..., help="Action: get, set, delete, list"),
    key: Optional[str] = typer.Argument(None, help="Configuration key (dot notation), or a prefix for list"),
    value: Optional[str] = typer.Argument(None, help="Value to set")
):
    """Manage configuration settings"""
    if action not in CONFIG_ACTIONS:
        console.print(f"[red]Unknown action: {action}[/red]")
        console.print(f"Valid actions: {', '.join(CONFIG_ACTIONS)}")
        raise typer.Exit(1)

    settings = Config()
    if action == "list":
        _show_config(settings, key or "")
        return

    if not key:
        console.print(f"[red]Error: key required for {action} action[/red]")
        raise typer.Exit(1)

    if action == "get":
        current = settings.get(key)
        if current is None:
            console.print(f"[yellow]Key '{key}' not found[/yellow]")
        else:
            console.print(f"[cyan]{key}[/cyan] = [green]{current}[/green]")

    elif action == "delete":
        if not settings.delete(key):
            console.print(f"[yellow]Key '{key}' not found[/yellow]")
            return
        default = _default_for(key)
        note = f" (default {default} applies)" if default is not None else ""
        console.print(f"[green]✓ Deleted {key}[/green]{note}")

    else:
        if value is None:
            console.print("[red]Error: value required for set action[/red]")
            raise typer.Exit(1)
        try:
            settings.set(key, value)
        except ValueError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(1)
        console.print(f"[green]✓ {key} = {settings.get(key)}[/green]")


if __name__ == "__main__":
    app()
