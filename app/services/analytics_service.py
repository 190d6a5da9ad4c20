"""
Analytics Service

Reporting queries over recorded page views for the moderation dashboard:
rolling totals per calendar period, most-viewed cases and memories, and
per-day view counts.

All timestamps are stored and compared as naive UTC; calendar periods and
days are UTC calendar periods and days.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import and_, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.config import settings
from app.exceptions import AnalyticsQueryError, InvalidDateRangeError, ValidationError
from app.models.case import Case
from app.models.page_view import PageView
from app.schemas.analytics import DailyCount, OverviewTotals, PopularEntry

logger = logging.getLogger(__name__)

PERIOD_PRESETS = {
    "7days": 7,
    "30days": 30,
    "90days": 90,
    "180days": 180,
    "365days": 365,
}
DEFAULT_PERIOD = "30days"
UNKNOWN_TITLE = "Unknown"


@dataclass(frozen=True)
class PeriodStarts:
    """Inclusive lower bounds of the named reporting periods."""

    today: datetime
    week: datetime
    month: datetime
    quarter: datetime
    half_year: datetime


def to_utc_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def period_starts(now: datetime) -> PeriodStarts:
    """
    Compute period boundaries for the overview.

    The week starts on Monday but is clamped to the first of the month, so
    every period contains the shorter ones (today <= week <= month <= ...).
    """
    now = to_utc_naive(now)
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    month = today.replace(day=1)
    week = max(today - timedelta(days=today.weekday()), month)
    quarter = month.replace(month=(now.month - 1) // 3 * 3 + 1)
    half_year = month.replace(month=1 if now.month <= 6 else 7)
    return PeriodStarts(today=today, week=week, month=month, quarter=quarter, half_year=half_year)


def parse_bound(value: str | date | datetime, end_of_day: bool = False) -> datetime:
    """
    Parse a date range bound.

    Date-only values mean the start of that day, or its last instant when
    `end_of_day` is set, so a `to` date includes the whole day.
    """
    if isinstance(value, datetime):
        return to_utc_naive(value)
    if isinstance(value, date):
        return datetime.combine(value, time.max if end_of_day else time.min)

    text = value.strip()
    try:
        if len(text) == 10:
            return datetime.combine(date.fromisoformat(text), time.max if end_of_day else time.min)
        return to_utc_naive(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        raise InvalidDateRangeError(f"Invalid date '{value}'", field="to" if end_of_day else "from")


def resolve_date_range(
    period: str | None = None,
    date_from: str | date | datetime | None = None,
    date_to: str | date | datetime | None = None,
    now: datetime | None = None,
) -> tuple[datetime, datetime]:
    """Turn explicit bounds or a named preset into an inclusive (start, end) pair."""
    end = parse_bound(date_to, end_of_day=True) if date_to else to_utc_naive(now or utcnow())

    if date_from:
        start = parse_bound(date_from)
    else:
        period = period or DEFAULT_PERIOD
        if period not in PERIOD_PRESETS:
            raise InvalidDateRangeError(
                f"Unknown period '{period}'",
                field="period",
                details={"allowed": list(PERIOD_PRESETS)},
            )
        start = end - timedelta(days=PERIOD_PRESETS[period])

    if start > end:
        raise InvalidDateRangeError("Start of the date range is after its end", field="from")

    return start, end


class AnalyticsService:
    """Service for page view reporting"""

    @staticmethod
    async def _count(db: AsyncSession, start: datetime | None = None, end: datetime | None = None) -> int:
        conditions = []
        if start is not None:
            conditions.append(PageView.occurred_at >= start)
        if end is not None:
            conditions.append(PageView.occurred_at <= end)

        stmt = select(func.count(PageView.id))
        if conditions:
            stmt = stmt.where(and_(*conditions))
        result = await db.execute(stmt)
        return result.scalar() or 0

    @staticmethod
    async def count_between(db: AsyncSession, start: datetime, end: datetime) -> int:
        """Count page views in an inclusive custom period."""
        try:
            return await AnalyticsService._count(db, to_utc_naive(start), to_utc_naive(end))
        except SQLAlchemyError as e:
            logger.error(f"Custom period count failed: {e}")
            raise AnalyticsQueryError("count") from e

    @staticmethod
    async def get_overview(db: AsyncSession, now: datetime | None = None) -> OverviewTotals:
        """
        Get view totals since the start of each named period.

        Args:
            db: Database session
            now: Reference instant (defaults to the current UTC time)

        Returns:
            OverviewTotals for today, week, month, quarter, half year and all time
        """
        starts = period_starts(now or utcnow())

        try:
            totals = {}
            for name, start in (
                ("today", starts.today),
                ("week", starts.week),
                ("month", starts.month),
                ("quarter", starts.quarter),
                ("half_year", starts.half_year),
            ):
                totals[name] = await AnalyticsService._count(db, start)
            totals["all_time"] = await AnalyticsService._count(db)
        except SQLAlchemyError as e:
            logger.error(f"Overview query failed: {e}")
            raise AnalyticsQueryError("overview") from e

        return OverviewTotals(**totals)

    @staticmethod
    async def get_popular(db: AsyncSession, limit: int | None = None) -> list[PopularEntry]:
        """
        Get the most viewed cases and memories.

        Ties on view count are ordered by ascending target id. Targets whose
        case has since been deleted stay in the ranking labelled 'Unknown'.
        """
        if limit is None:
            limit = settings.popular_limit
        if limit < 1:
            raise ValidationError("limit must be at least 1", field="limit")
        limit = min(limit, settings.popular_limit_max)

        view_count = func.count(PageView.id)
        try:
            ranking = await db.execute(
                select(PageView.target_id, view_count.label("views"), func.max(PageView.target_type))
                .where(PageView.target_id.is_not(None))
                .group_by(PageView.target_id)
                .order_by(view_count.desc(), PageView.target_id.asc())
                .limit(limit)
            )
            rows = ranking.all()

            cases: dict[int, Case] = {}
            if rows:
                case_result = await db.execute(select(Case).where(Case.id.in_([row[0] for row in rows])))
                cases = {case.id: case for case in case_result.scalars().all()}
        except SQLAlchemyError as e:
            logger.error(f"Popular query failed: {e}")
            raise AnalyticsQueryError("popular") from e

        return [
            AnalyticsService._popular_entry(target_id, views, target_type, cases.get(target_id))
            for target_id, views, target_type in rows
        ]

    @staticmethod
    def _popular_entry(target_id: int, views: int, target_type: str | None, case: Case | None) -> PopularEntry:
        if case is None:
            return PopularEntry(
                id=target_id,
                views=views,
                title=UNKNOWN_TITLE,
                type=target_type or "case",
                status="unknown",
            )

        creator = case.created_by
        return PopularEntry(
            id=target_id,
            views=views,
            title=case.display_title,
            type=case.type.value,
            status=case.status.value,
            year=case.year,
            created_by=(creator.full_name or creator.username) if creator else None,
        )

    @staticmethod
    async def get_views_by_date(
        db: AsyncSession,
        period: str | None = None,
        date_from: str | date | datetime | None = None,
        date_to: str | date | datetime | None = None,
        now: datetime | None = None,
    ) -> list[DailyCount]:
        """
        Get view counts per UTC day, ascending.

        Days without views are omitted; the dashboard fills gaps itself.
        """
        start, end = resolve_date_range(period, date_from, date_to, now)
        day = func.date(PageView.occurred_at)

        try:
            result = await db.execute(
                select(day.label("day"), func.count(PageView.id))
                .where(and_(PageView.occurred_at >= start, PageView.occurred_at <= end))
                .group_by(day)
                .order_by(day)
            )
            rows = result.all()
        except SQLAlchemyError as e:
            logger.error(f"Per-day query failed: {e}")
            raise AnalyticsQueryError("by-date") from e

        return [DailyCount(date=str(row[0]), count=row[1]) for row in rows]


# Singleton instance
analytics_service = AnalyticsService()
