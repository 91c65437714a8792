"""Rendering of listings and analysis reports."""

from typing import Optional

from rich.console import Console  # type: ignore[import-not-found]
from rich.table import Table  # type: ignore[import-not-found]
from rich.text import Text  # type: ignore[import-not-found]

from metron.analysis.analyzer import STATUS_NO_SESSIONS, AnalysisReport
from metron.core.categories import CategoryListing
from metron.core.models import Session
from metron.core.tags import TagListing


def format_minutes(minutes: int) -> str:
    """Format minutes as hours with one decimal plus the raw minutes."""
    return f"{minutes / 60:.1f}h ({minutes} minutes)"


class ReportGenerator:
    """Render Metron data to a rich console."""

    def __init__(
        self,
        console: Optional[Console] = None,
        datetime_format: str = "%Y-%m-%d %H:%M",
        short_id_length: int = 8,
    ):
        """Initialize report generator.

        Args:
            console: Rich console for output. Creates default if None.
            datetime_format: strftime format for session start times
            short_id_length: Number of id characters shown in session lists
        """
        self.console = console or Console()
        self.datetime_format = datetime_format
        self.short_id_length = short_id_length

    def categories(self, listing: CategoryListing) -> None:
        if not listing.categories:
            self.console.print("[yellow]No categories found.[/yellow]")
            return

        table = Table(title="Categories")
        table.add_column("Name", style="cyan")
        table.add_column("Weekly Quota", style="magenta", justify="right")

        for category in listing.categories:
            table.add_row(category.name, f"{category.weekly_quota_hours}h")

        self.console.print(table)

        if listing.total_hours is not None:
            pct = (listing.used_hours / listing.total_hours) * 100 if listing.total_hours else 0
            usage = Text(f"Total used: {listing.used_hours}h / {listing.total_hours}h ")
            usage.append_text(self._create_bar(pct))
            self.console.print(usage)
        else:
            self.console.print(f"Total used: {listing.used_hours}h (no total quota set)")

    def tags(self, listing: TagListing) -> None:
        if not listing.tags:
            self.console.print("[yellow]No tags found.[/yellow]")
            return

        self.console.print(f"[bold]Tags ({listing.count}/{listing.limit}):[/bold]")
        for i, tag in enumerate(listing.tags, start=1):
            self.console.print(f"{i}. {tag.name}")

    def sessions(self, sessions: list[Session]) -> None:
        if not sessions:
            self.console.print("[yellow]No sessions found.[/yellow]")
            return

        table = Table(title="Sessions")
        table.add_column("ID", style="dim")
        table.add_column("Title", style="bold")
        table.add_column("Category", style="green")
        table.add_column("Duration", style="magenta", justify="right")
        table.add_column("Start", style="cyan")
        table.add_column("Tags", style="blue")

        for session in sessions:
            table.add_row(
                session.short_id(self.short_id_length),
                session.title,
                session.category,
                f"{session.duration_minutes}min",
                session.start.strftime(self.datetime_format),
                ", ".join(session.tags) if session.tags else "-",
            )

        self.console.print(table)
        self.console.print(f"Total sessions: {len(sessions)}")

    def analysis(self, report: AnalysisReport) -> None:
        """Display an analysis report.

        Args:
            report: Result of AnalysisEngine.analyze
        """
        if report.unknown_period:
            self.console.print(
                f"[yellow]Warning:[/yellow] Unknown period '{report.unknown_period}', using weekly"
            )

        if report.is_empty:
            if report.status == STATUS_NO_SESSIONS:
                self.console.print("[yellow]No sessions found for analysis.[/yellow]")
            else:
                self.console.print(
                    "[yellow]No sessions found for the specified period and filter.[/yellow]"
                )
            return

        self.console.print(f"\n[bold cyan]Analysis Report - {report.period.upper()}[/bold cyan]")
        if report.category_filter:
            self.console.print(f"   Category: {report.category_filter}")

        for group in report.categories:
            table = Table(title=f"Category: {group.category}", show_header=False, box=None, padding=(0, 2))
            table.add_column(style="dim")
            table.add_column(style="bold")

            table.add_row("Sessions:", str(group.session_count))
            table.add_row("Total Time:", format_minutes(group.total_minutes))
            if group.quota_hours > 0:
                table.add_row("Weekly Quota:", f"{group.quota_hours}h")
                table.add_row("Work Time:", format_minutes(group.work_minutes))
                if group.overtime_minutes > 0:
                    table.add_row("Overtime:", format_minutes(group.overtime_minutes))

            for tag, minutes in group.tag_minutes.items():
                table.add_row(f"  - {tag}:", f"{minutes / 60:.1f}h")

            self.console.print()
            self.console.print(table)

        summary = Table(title="Summary", show_header=False, box=None, padding=(0, 2))
        summary.add_column(style="dim")
        summary.add_column(style="bold")
        summary.add_row("Total Worktime:", format_minutes(report.total_work_minutes))
        if report.total_overtime_minutes > 0:
            summary.add_row("Total Overtime:", format_minutes(report.total_overtime_minutes))
        summary.add_row("Grand Total:", format_minutes(report.grand_total_minutes))
        summary.add_row("Sessions:", str(report.session_count))

        self.console.print()
        self.console.print(summary)

    def _create_bar(self, percentage: float, width: int = 20) -> Text:
        """Create a visual bar for percentage display.

        Args:
            percentage: Percentage value (0-100)
            width: Width of the bar in characters

        Returns:
            Rich Text object with colored bar
        """
        filled = min(width, int((percentage / 100) * width))
        empty = width - filled

        bar = Text()
        bar.append("█" * filled, style="blue")
        bar.append("░" * empty, style="dim")

        return bar
