"""Command-line interface for the Schedule Widget."""

import asyncio
import logging
import sys
from datetime import date, timedelta
from pathlib import Path
from typing import Awaitable, Callable, Optional, TypeVar

import click
from rich.console import Console
from rich.table import Table

from .config import Config, ConfigModel, get_config, save_config
from .domain import DeleteMode, ScheduleError, TaskSpec, parse_weekdays
from .services.notifications import Notification
from .sync import EnvelopeError, RemoteError, SyncCoordinator
from .sync.remote_store import BlobStore
from .utils.datetime import format_day, parse_day, today


T = TypeVar("T")

console = Console()


def get_console() -> Console:
    return console


def default_store_factory(config: ConfigModel) -> BlobStore:
    return config.create_store()


def setup_logging(level: str, verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def resolve_day(day: Optional[str], offset: int) -> date:
    """Turn ``--date``/``--offset`` into a calendar day (default: today)."""
    try:
        base = parse_day(day) if day else today()
    except ValueError:
        raise click.BadParameter(f"Expected YYYY-MM-DD, got {day!r}", param_hint="--date")
    return base + timedelta(days=offset)


def day_options(func):
    func = click.option("--offset", "-o", type=int, default=0, help="Days relative to --date (e.g. -1, 1)")(func)
    func = click.option("--date", "-d", "day", help="Day (YYYY-MM-DD), defaults to today")(func)
    return func


def print_notification(notification: Notification, verbose: bool = False):
    if notification.is_error:
        get_console().print(f"[red]❌ {notification.message}[/red]")
    elif verbose:
        get_console().print(f"[dim]{notification.message}[/dim]")


def run_with_schedule(ctx: click.Context, action: Callable[[SyncCoordinator], Awaitable[T]]) -> T:
    """Load the remote schedule, run ``action`` against it and exit 1 on errors."""
    config: ConfigModel = ctx.obj["config"]
    if not config.is_configured():
        get_console().print("[yellow]Not configured. Run 'schedule configure --token ... --repo owner/name'.[/yellow]")
        sys.exit(1)

    async def _run() -> T:
        async with ctx.obj["store_factory"](config) as store:
            coordinator = SyncCoordinator(store, path=config.path, commit_message=config.commit_message)
            coordinator.notifier.subscribe(lambda n: print_notification(n, ctx.obj["verbose"]))
            await coordinator.load()
            return await action(coordinator)

    try:
        return asyncio.run(_run())
    except (ScheduleError, RemoteError, EnvelopeError):
        # Already reported through the notification channel.
        sys.exit(1)


# Rendering

def render_day(coordinator: SyncCoordinator, day: date):
    tasks = coordinator.tasks_on(day)
    title = f"{day.strftime('%A, %d %B %Y')}"

    if not tasks:
        get_console().print(f"[bold]{title}[/bold]")
        get_console().print("[dim]No tasks for this day. Add one with 'schedule add'.[/dim]")
        return

    table = Table(title=title)
    table.add_column("ID", style="dim")
    table.add_column("", width=2)
    table.add_column("Time")
    table.add_column("Task")
    table.add_column("Type", style="cyan")

    for task in tasks:
        done = task.is_completed_on(day)
        labels = []
        if task.is_period:
            labels.append("period")
        if task.is_recurring:
            labels.append(f"repeats {task.days_label()}")
        table.add_row(
            str(task.id),
            "✓" if done else "·",
            task.time_label(),
            f"[strike]{task.title}[/strike]" if done else task.title,
            ", ".join(labels),
        )
    get_console().print(table)


def render_habits(coordinator: SyncCoordinator, day: date):
    if not coordinator.habits:
        get_console().print("[dim]No habits yet. Add one with 'schedule habit add'.[/dim]")
        return

    table = Table(title="Habits")
    table.add_column("ID", style="dim")
    table.add_column("", width=2)
    table.add_column("Habit")
    table.add_column("Goal")
    table.add_column("Streak", justify="right")
    for habit in coordinator.habits:
        table.add_row(
            str(habit.id),
            "✓" if habit.is_done_on(day) else "·",
            habit.title,
            habit.goal or "",
            f"🔥 {coordinator.streak_of(habit, day)}",
        )
    get_console().print(table)


def render_backlog(coordinator: SyncCoordinator):
    if not coordinator.backlog:
        get_console().print("[dim]Backlog is empty.[/dim]")
        return

    table = Table(title="Backlog")
    table.add_column("ID", style="dim")
    table.add_column("", width=2)
    table.add_column("Item")
    table.add_column("Description")
    for item in coordinator.backlog:
        table.add_row(str(item.id), "✓" if item.completed else "·", item.title, item.description or "")
    get_console().print(table)


# Commands

@click.group()
@click.option("--config", "config_path", type=click.Path(), help="Path to config file")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def main(ctx, config_path, verbose):
    """Schedule Widget - plan your day, track habits, keep a backlog."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj.setdefault("store_factory", default_store_factory)
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    config = Config.reload(ctx.obj["config_path"]) if config_path else get_config()
    ctx.obj["config"] = config
    setup_logging(config.log_level, verbose)


@main.command()
@click.option("--token", help="Access token for the contents API")
@click.option("--repo", help="Repository holding the document (owner/name)")
@click.option("--path", "doc_path", help="Document path inside the repository")
@click.option("--branch", help="Branch to read and write")
@click.option("--api-url", help="API root URL")
@click.pass_context
def configure(ctx, token, repo, doc_path, branch, api_url):
    """Store connection settings."""
    config_path = ctx.obj["config_path"]
    config = Config.read_file(config_path)
    if token:
        config.token = token
    if repo:
        config.repo = repo
    if doc_path:
        config.path = doc_path
    if branch:
        config.branch = branch
    if api_url:
        config.api_url = api_url

    if not config.token or not config.repo:
        get_console().print("[red]Both --token and --repo are required[/red]")
        sys.exit(1)

    saved_to = save_config(config, config_path)
    Config.reload(config_path)
    get_console().print(f"[green]✅ Configuration saved to {saved_to}[/green]")


@main.command()
@day_options
@click.option("--all", "show_all", is_flag=True, help="Also show habits and backlog")
@click.pass_context
def show(ctx, day, offset, show_all):
    """Show tasks for one day."""
    target = resolve_day(day, offset)

    async def action(coordinator: SyncCoordinator):
        render_day(coordinator, target)
        if show_all:
            render_habits(coordinator, target)
            render_backlog(coordinator)

    run_with_schedule(ctx, action)


@main.command()
@click.argument("title")
@day_options
@click.option("--time", "-t", "start", help="Start time (HH:MM)")
@click.option("--end", "-e", help="End time (HH:MM), makes the task a period")
@click.option("--days", "-r", help="Repeat on weekdays, e.g. 'mon,wed' or '1,3' (0=Sunday)")
@click.pass_context
def add(ctx, title, day, offset, start, end, days):
    """Add a task for a day, or a recurring task with --days."""
    if days and (day or offset):
        raise click.UsageError("--days repeats the task weekly and cannot be combined with --date or --offset")

    try:
        weekdays = parse_weekdays(days) if days else frozenset()
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--days")

    spec = TaskSpec(
        title=title,
        date=None if days else resolve_day(day, offset),
        time=start,
        end_time=end,
        recurring=bool(days),
        days_of_week=weekdays,
    )

    async def action(coordinator: SyncCoordinator):
        task = await coordinator.add_task(spec)
        get_console().print(f"[green]✅ Added task {task.id}: {task.title}[/green]")

    run_with_schedule(ctx, action)


@main.command()
@click.argument("task_id", type=int)
@day_options
@click.pass_context
def done(ctx, task_id, day, offset):
    """Toggle completion of a task on a day."""
    target = resolve_day(day, offset)

    async def action(coordinator: SyncCoordinator):
        if not await coordinator.toggle_completion(task_id, target):
            get_console().print(f"[yellow]Task {task_id} not found[/yellow]")
            return
        render_day(coordinator, target)

    run_with_schedule(ctx, action)


@main.command()
@click.argument("task_id", type=int)
@click.option("--occurrence", is_flag=True, help="Only remove this day's occurrence of a recurring task")
@day_options
@click.pass_context
def rm(ctx, task_id, occurrence, day, offset):
    """Delete a task, or one occurrence of a recurring task."""
    target = resolve_day(day, offset)
    mode = DeleteMode.OCCURRENCE if occurrence else DeleteMode.ALL

    async def action(coordinator: SyncCoordinator):
        if not await coordinator.delete_task(task_id, mode, target):
            get_console().print(f"[yellow]Task {task_id} not found[/yellow]")
            return
        what = f"occurrence on {format_day(target)}" if occurrence else "task"
        get_console().print(f"[green]✅ Deleted {what} {task_id}[/green]")

    run_with_schedule(ctx, action)


@main.group()
def habit():
    """Track daily habits."""


@habit.command("add")
@click.argument("title")
@click.option("--goal", "-g", help="What you are aiming for")
@click.pass_context
def habit_add(ctx, title, goal):
    """Add a habit."""
    async def action(coordinator: SyncCoordinator):
        created = await coordinator.add_habit(title, goal)
        get_console().print(f"[green]✅ Added habit {created.id}: {created.title}[/green]")

    run_with_schedule(ctx, action)


@habit.command("done")
@click.argument("habit_id", type=int)
@day_options
@click.pass_context
def habit_done(ctx, habit_id, day, offset):
    """Toggle a habit for a day."""
    target = resolve_day(day, offset)

    async def action(coordinator: SyncCoordinator):
        if not await coordinator.toggle_habit_day(habit_id, target):
            get_console().print(f"[yellow]Habit {habit_id} not found[/yellow]")
            return
        render_habits(coordinator, target)

    run_with_schedule(ctx, action)


@habit.command("rm")
@click.argument("habit_id", type=int)
@click.pass_context
def habit_rm(ctx, habit_id):
    """Delete a habit."""
    async def action(coordinator: SyncCoordinator):
        if await coordinator.delete_habit(habit_id):
            get_console().print(f"[green]✅ Deleted habit {habit_id}[/green]")
        else:
            get_console().print(f"[yellow]Habit {habit_id} not found[/yellow]")

    run_with_schedule(ctx, action)


@habit.command("list")
@day_options
@click.pass_context
def habit_list(ctx, day, offset):
    """List habits with their streaks."""
    target = resolve_day(day, offset)

    async def action(coordinator: SyncCoordinator):
        render_habits(coordinator, target)

    run_with_schedule(ctx, action)


@main.group()
def backlog():
    """Keep undated tasks."""


@backlog.command("add")
@click.argument("title")
@click.option("--description", "-D", help="Longer description")
@click.pass_context
def backlog_add(ctx, title, description):
    """Add a backlog item."""
    async def action(coordinator: SyncCoordinator):
        item = await coordinator.add_backlog_item(title, description)
        get_console().print(f"[green]✅ Added backlog item {item.id}: {item.title}[/green]")

    run_with_schedule(ctx, action)


@backlog.command("done")
@click.argument("item_id", type=int)
@click.pass_context
def backlog_done(ctx, item_id):
    """Toggle a backlog item."""
    async def action(coordinator: SyncCoordinator):
        if not await coordinator.toggle_backlog_completed(item_id):
            get_console().print(f"[yellow]Backlog item {item_id} not found[/yellow]")
            return
        render_backlog(coordinator)

    run_with_schedule(ctx, action)


@backlog.command("rm")
@click.argument("item_id", type=int)
@click.pass_context
def backlog_rm(ctx, item_id):
    """Delete a backlog item."""
    async def action(coordinator: SyncCoordinator):
        if await coordinator.delete_backlog_item(item_id):
            get_console().print(f"[green]✅ Deleted backlog item {item_id}[/green]")
        else:
            get_console().print(f"[yellow]Backlog item {item_id} not found[/yellow]")

    run_with_schedule(ctx, action)


@backlog.command("list")
@click.pass_context
def backlog_list(ctx):
    """List backlog items."""
    async def action(coordinator: SyncCoordinator):
        render_backlog(coordinator)

    run_with_schedule(ctx, action)


if __name__ == "__main__":
    main()
