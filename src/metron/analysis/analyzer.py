"""Period filtering and per-category aggregation of sessions."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from metron.core.models import MetronData, utc_now

logger = logging.getLogger(__name__)

PERIOD_ALIASES = {
    "day": "day",
    "daily": "day",
    "week": "week",
    "weekly": "week",
    "month": "month",
    "monthly": "month",
    "year": "year",
    "yearly": "year",
}

STATUS_OK = "ok"
STATUS_NO_SESSIONS = "no_sessions"
STATUS_NO_MATCHES = "no_matches"


@dataclass
class CategoryBreakdown:
    """Aggregated time for one category within the analyzed period.

    Attributes:
        category: Category name as referenced by the sessions
        session_count: Number of matched sessions
        total_minutes: Sum of recorded durations
        quota_hours: Weekly quota (0 when unset or the category was deleted)
        work_minutes: Time counted against the quota
        overtime_minutes: Time beyond the quota
        tag_minutes: Minutes per tag, in order of first appearance
    """

    category: str
    session_count: int = 0
    total_minutes: int = 0
    quota_hours: int = 0
    work_minutes: int = 0
    overtime_minutes: int = 0
    tag_minutes: dict[str, int] = field(default_factory=dict)


@dataclass
class AnalysisReport:
    """Structured result of an analysis run."""

    period: str
    category_filter: Optional[str] = None
    status: str = STATUS_OK
    unknown_period: Optional[str] = None
    window_start: Optional[datetime] = None
    window_end: Optional[datetime] = None
    categories: list[CategoryBreakdown] = field(default_factory=list)
    total_work_minutes: int = 0
    total_overtime_minutes: int = 0
    session_count: int = 0

    @property
    def is_empty(self) -> bool:
        return self.status != STATUS_OK

    @property
    def grand_total_minutes(self) -> int:
        return self.total_work_minutes + self.total_overtime_minutes


def normalize_period(period: str) -> tuple[str, bool]:
    """Map a period string onto day/week/month/year.

    Returns:
        Tuple of (canonical period, whether the input was recognized).
        Unrecognized input maps to 'week'.
    """
    canonical = PERIOD_ALIASES.get(period.strip().lower())
    if canonical is None:
        return "week", False
    return canonical, True


def period_window(period: str, now: datetime) -> tuple[datetime, datetime]:
    """Return the [start, end] window of a canonical period, in UTC.

    'week' runs from the most recent Monday 00:00 through now. The other
    periods cover their whole calendar unit.
    """
    now = now.astimezone(timezone.utc)
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)

    if period == "day":
        return midnight, midnight + timedelta(days=1) - timedelta(microseconds=1)
    if period == "week":
        return midnight - timedelta(days=now.weekday()), now
    if period == "month":
        start = midnight.replace(day=1)
        if start.month == 12:
            next_start = start.replace(year=start.year + 1, month=1)
        else:
            next_start = start.replace(month=start.month + 1)
        return start, next_start - timedelta(microseconds=1)
    if period == "year":
        start = midnight.replace(month=1, day=1)
        return start, start.replace(year=start.year + 1) - timedelta(microseconds=1)
    raise ValueError(f"Unknown period: {period}")


class AnalysisEngine:
    """Filters sessions by period and category and aggregates them."""

    def __init__(self, data: MetronData, clock: Optional[Callable[[], datetime]] = None):
        self.data = data
        self.clock = clock or utc_now

    def analyze(self, period: str = "week", category_filter: Optional[str] = None) -> AnalysisReport:
        """Build the analysis report for a period.

        Args:
            period: day, week, month or year (aliases accepted). Anything
                else falls back to week and is flagged on the report.
            category_filter: Only include sessions of this category

        Returns:
            AnalysisReport; its status tells apart an empty store from an
            empty selection.
        """
        canonical, recognized = normalize_period(period)
        now = self.clock()
        window_start, window_end = period_window(canonical, now)

        report = AnalysisReport(
            period=canonical,
            category_filter=category_filter,
            window_start=window_start,
            window_end=window_end,
        )
        if not recognized:
            logger.info(f"Unknown period '{period}', using weekly")
            report.unknown_period = period

        if not self.data.sessions:
            report.status = STATUS_NO_SESSIONS
            return report

        matched = [
            s
            for s in self.data.sessions
            if window_start <= s.start <= window_end
            and (category_filter is None or s.category == category_filter)
        ]
        if not matched:
            report.status = STATUS_NO_MATCHES
            return report

        groups: dict[str, CategoryBreakdown] = {}
        for session in matched:
            group = groups.get(session.category)
            if group is None:
                group = groups[session.category] = CategoryBreakdown(category=session.category)
            group.session_count += 1
            group.total_minutes += session.duration_minutes
            for tag in session.tags:
                group.tag_minutes[tag] = group.tag_minutes.get(tag, 0) + session.duration_minutes

        for group in groups.values():
            category = self.data.get_category(group.category)
            group.quota_hours = category.weekly_quota_hours if category else 0
            quota_minutes = group.quota_hours * 60
            if quota_minutes > 0:
                group.work_minutes = min(group.total_minutes, quota_minutes)
                group.overtime_minutes = max(0, group.total_minutes - quota_minutes)
            else:
                group.work_minutes = group.total_minutes
                group.overtime_minutes = 0

            report.total_work_minutes += group.work_minutes
            report.total_overtime_minutes += group.overtime_minutes

        report.categories = list(groups.values())
        report.session_count = len(matched)
        return report
