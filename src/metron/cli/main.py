"""Main CLI application."""

import logging
import sys
from pathlib import Path
from typing import NoReturn, Optional

import click
from rich.console import Console

from metron import __version__
from metron.analysis.analyzer import AnalysisEngine
from metron.analysis.reports import ReportGenerator
from metron.cli.config_commands import config
from metron.core.categories import CategoryManager
from metron.core.config import ConfigManager
from metron.core.errors import MetronError
from metron.core.sessions import SessionManager
from metron.core.storage import StorageManager
from metron.core.tags import TagManager

console = Console()
error_console = Console(stderr=True)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str) -> None:
    """Attach a fresh stderr handler to the package logger."""
    package_logger = logging.getLogger("metron")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.addHandler(handler)
    package_logger.setLevel(getattr(logging, level.upper(), logging.WARNING))


def fail(error: Exception) -> NoReturn:
    """Report an error and exit with status 1."""
    error_console.print(f"[red]Error:[/red] {error}")
    sys.exit(1)


def confirm(message: str) -> bool:
    """Ask a yes/no question on the terminal, defaulting to no."""
    error_console.print(f"[yellow]Warning:[/yellow] {message}")
    return click.confirm("Continue?", default=False)


def get_storage(ctx: click.Context) -> StorageManager:
    """Load the data file for this invocation."""
    data_file: Optional[str] = ctx.obj.get("data_file")
    if data_file:
        path = Path(data_file).expanduser()
    else:
        path = ctx.obj["config"].get_data_file()

    try:
        return StorageManager(path)
    except MetronError as e:
        fail(e)


def get_reporter(ctx: click.Context) -> ReportGenerator:
    config_mgr: ConfigManager = ctx.obj["config"]
    return ReportGenerator(
        console,
        datetime_format=config_mgr.get("display.datetime_format", "%Y-%m-%d %H:%M"),
        short_id_length=config_mgr.get("display.short_id_length", 8),
    )


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--data-file",
    envvar="METRON_DATA_FILE",
    type=click.Path(dir_okay=False),
    help="Data file (overrides general.data_file)",
)
@click.option(
    "--config",
    "config_path",
    envvar="METRON_CONFIG",
    type=click.Path(dir_okay=False),
    help="Configuration file (default ~/.metron/config.yml)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level (overrides advanced.log_level)",
)
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.pass_context
def cli(
    ctx: click.Context,
    data_file: Optional[str],
    config_path: Optional[str],
    log_level: Optional[str],
    no_color: bool,
) -> None:
    """Metron - modular time tracking with weekly quotas.

    Manage categories, tags and work sessions, and analyze time worked
    against each category's weekly quota.
    """
    ctx.ensure_object(dict)
    ctx.obj["data_file"] = data_file

    path = Path(config_path).expanduser() if config_path else None
    try:
        config_mgr = ConfigManager(path)
    except ValueError as e:
        # The invalid file was backed up and replaced by the defaults.
        error_console.print(f"[yellow]Warning:[/yellow] {e}")
        config_mgr = ConfigManager(path)
    ctx.obj["config"] = config_mgr

    setup_logging(log_level or config_mgr.get("advanced.log_level", "WARNING"))

    if no_color:
        console.no_color = True
        error_console.no_color = True


# Categories


@cli.group()
def category() -> None:
    """Manage categories."""


@category.command("create")
@click.argument("name")
@click.option("-q", "--quota", required=True, type=click.IntRange(min=0), help="Weekly quota in hours")
@click.pass_context
def category_create(ctx: click.Context, name: str, quota: int) -> None:
    """Create a new category.

    Example:
        metron category create work --quota 20
    """
    manager = CategoryManager(get_storage(ctx))
    try:
        manager.create(name, quota)
    except MetronError as e:
        fail(e)
    console.print(f"[green]✓[/green] Created category '{name}' with {quota}h/week quota")


@category.command("list")
@click.pass_context
def category_list(ctx: click.Context) -> None:
    """List all categories with quota usage."""
    manager = CategoryManager(get_storage(ctx))
    get_reporter(ctx).categories(manager.list())


@category.command("update")
@click.argument("name")
@click.option("-q", "--quota", required=True, type=click.IntRange(min=0), help="Weekly quota in hours")
@click.pass_context
def category_update(ctx: click.Context, name: str, quota: int) -> None:
    """Update an existing category's quota."""
    manager = CategoryManager(get_storage(ctx))
    try:
        old_quota, _ = manager.update(name, quota)
    except MetronError as e:
        fail(e)
    console.print(f"[green]✓[/green] Updated category '{name}' quota: {old_quota}h → {quota}h")


@category.command("delete")
@click.argument("name")
@click.pass_context
def category_delete(ctx: click.Context, name: str) -> None:
    """Delete a category.

    Sessions keep referring to the deleted category.
    """
    manager = CategoryManager(get_storage(ctx), confirm=confirm)
    try:
        deleted = manager.delete(name)
    except MetronError as e:
        fail(e)

    if deleted:
        console.print(f"[green]✓[/green] Deleted category '{name}'")
    else:
        console.print("Deletion cancelled.")


# Tags


@cli.group()
def tag() -> None:
    """Manage tags (at most 7)."""


@tag.command("create")
@click.argument("name")
@click.pass_context
def tag_create(ctx: click.Context, name: str) -> None:
    """Create a new tag."""
    manager = TagManager(get_storage(ctx))
    try:
        manager.create(name)
    except MetronError as e:
        fail(e)
    console.print(f"[green]✓[/green] Created tag '{name}'")


@tag.command("list")
@click.pass_context
def tag_list(ctx: click.Context) -> None:
    """List all tags."""
    manager = TagManager(get_storage(ctx))
    get_reporter(ctx).tags(manager.list())


@tag.command("delete")
@click.argument("name")
@click.pass_context
def tag_delete(ctx: click.Context, name: str) -> None:
    """Delete a tag."""
    manager = TagManager(get_storage(ctx), confirm=confirm)
    try:
        deleted = manager.delete(name)
    except MetronError as e:
        fail(e)

    if deleted:
        console.print(f"[green]✓[/green] Deleted tag '{name}'")
    else:
        console.print("Deletion cancelled.")


# Sessions


@cli.group()
def session() -> None:
    """Manage work sessions."""


@session.command("start")
@click.argument("title")
@click.argument("category_name", metavar="CATEGORY")
@click.option("-t", "--tags", multiple=True, help="Tag name (repeatable)")
@click.option("-d", "--duration", required=True, type=int, help="Duration in minutes (multiple of 15)")
@click.pass_context
def session_start(
    ctx: click.Context,
    title: str,
    category_name: str,
    tags: tuple[str, ...],
    duration: int,
) -> None:
    """Start a new session.

    Example:
        metron session start "Write report" work -t writing -d 45
    """
    manager = SessionManager(get_storage(ctx))
    try:
        started = manager.start(title, category_name, list(tags), duration)
    except MetronError as e:
        fail(e)

    console.print(
        f"[green]✓[/green] Started session '{title}' in category '{category_name}' "
        f"for {duration} minutes"
    )
    if started.tags:
        console.print(f"  Tags: {', '.join(started.tags)}")
    if started.end:
        console.print(f"  Session will end at: {started.end.strftime('%H:%M:%S')}")
    console.print(f"  ID: {started.id}")


@session.command("end")
@click.argument("session_id", metavar="ID")
@click.pass_context
def session_end(ctx: click.Context, session_id: str) -> None:
    """End a session early (rounded down to the nearest 15 minutes)."""
    manager = SessionManager(get_storage(ctx))
    try:
        ended, elapsed = manager.end(session_id)
    except MetronError as e:
        fail(e)

    if ended.duration_minutes < elapsed:
        console.print(
            f"[green]✓[/green] Session ended early. Duration rounded down: "
            f"{elapsed}min → {ended.duration_minutes}min"
        )
    else:
        console.print(f"[green]✓[/green] Session completed: {ended.duration_minutes}min")


@session.command("list")
@click.pass_context
def session_list(ctx: click.Context) -> None:
    """List all sessions."""
    manager = SessionManager(get_storage(ctx))
    get_reporter(ctx).sessions(manager.list())


@session.command("delete")
@click.argument("session_id", metavar="ID")
@click.pass_context
def session_delete(ctx: click.Context, session_id: str) -> None:
    """Delete a session by full id or unique id prefix."""
    manager = SessionManager(get_storage(ctx), confirm=confirm)
    try:
        deleted = manager.delete(session_id)
    except MetronError as e:
        fail(e)

    if deleted:
        console.print(f"[green]✓[/green] Session '{deleted.title}' deleted")
    else:
        console.print("Deletion cancelled.")


# Analysis and quota


@cli.command()
@click.option("-p", "--period", default="week", show_default=True, help="day, week, month or year")
@click.option("-c", "--category", "category_name", help="Filter by category")
@click.pass_context
def analysis(ctx: click.Context, period: str, category_name: Optional[str]) -> None:
    """Show time worked versus quota for a period.

    Examples:
        metron analysis
        metron analysis --period month --category work
    """
    storage = get_storage(ctx)
    report = AnalysisEngine(storage.data).analyze(period, category_name)
    get_reporter(ctx).analysis(report)


@cli.command("set-quota")
@click.argument("hours", type=click.IntRange(min=0), required=False)
@click.option("--clear", is_flag=True, help="Remove the total weekly quota")
@click.pass_context
def set_quota(ctx: click.Context, hours: Optional[int], clear: bool) -> None:
    """Set the total weekly quota in hours.

    Example:
        metron set-quota 40
    """
    if hours is None and not clear:
        raise click.UsageError("Provide HOURS or --clear")

    manager = CategoryManager(get_storage(ctx))
    try:
        if clear:
            manager.clear_total_quota()
        else:
            manager.set_total_quota(hours)
    except MetronError as e:
        fail(e)

    if clear:
        console.print("[green]✓[/green] Cleared total weekly quota")
    else:
        console.print(f"[green]✓[/green] Set total weekly quota to {hours}h")


cli.add_command(config)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
