"""
Analytics Routes

Read-only reporting endpoints for the moderation dashboard.
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import moderator_only
from app.config import settings
from app.database import get_db
from app.models.user import User
from app.schemas.analytics import DailyCount, OverviewTotals, PopularEntry
from app.services.analytics_service import DEFAULT_PERIOD, analytics_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Analytics"])


@router.get("/overview", response_model=OverviewTotals)
async def get_overview(
    current_user: User = Depends(moderator_only),
    db: AsyncSession = Depends(get_db),
):
    """
    Get visitor totals for several calendar periods.

    **Requires**: Moderator or Admin role

    **Returns**: views today, this week, this month, this quarter,
    this half-year and all time.
    """
    return await analytics_service.get_overview(db)


@router.get("/popular", response_model=list[PopularEntry])
async def get_popular(
    limit: int | None = Query(None, ge=1, description="Number of entries (default 10, max 50)"),
    current_user: User = Depends(moderator_only),
    db: AsyncSession = Depends(get_db),
):
    """
    Get the most viewed cases and memories.

    **Requires**: Moderator or Admin role
    """
    if limit is not None and limit > settings.popular_limit_max:
        limit = settings.popular_limit_max

    return await analytics_service.get_popular(db, limit=limit)


@router.get("/by-date", response_model=list[DailyCount])
async def get_views_by_date(
    period: str = Query(DEFAULT_PERIOD, description="7days, 30days, 90days, 180days or 365days"),
    date_from: str | None = Query(None, alias="from", description="Explicit start (ISO date or datetime)"),
    date_to: str | None = Query(None, alias="to", description="Explicit end (ISO date or datetime)"),
    current_user: User = Depends(moderator_only),
    db: AsyncSession = Depends(get_db),
):
    """
    Get visitor counts per day for charts.

    **Requires**: Moderator or Admin role

    **Parameters**:
    - period: preset window ending now (ignored when `from` is given)
    - from / to: explicit bounds; a date-only `to` includes that whole day

    Days without views are not included.
    """
    return await analytics_service.get_views_by_date(db, period=period, date_from=date_from, date_to=date_to)
