"""
Analytics Schemas

Pydantic models for the moderation dashboard's reporting endpoints.
Field aliases keep the camelCase keys the dashboard consumes.
"""

from pydantic import BaseModel, ConfigDict, Field


class OverviewTotals(BaseModel):
    """Counted page views since the start of each calendar period"""

    model_config = ConfigDict(populate_by_name=True)

    today: int = Field(..., ge=0, description="Views since UTC midnight")
    week: int = Field(..., ge=0, description="Views since Monday of the current week, or the first of the month if later")
    month: int = Field(..., ge=0, description="Views since the first of the month")
    quarter: int = Field(..., ge=0, description="Views since the start of the calendar quarter")
    half_year: int = Field(..., ge=0, alias="halfYear", description="Views since Jan 1 or Jul 1")
    all_time: int = Field(..., ge=0, alias="allTime", description="All recorded views")


class PopularEntry(BaseModel):
    """A most-viewed case or memory, enriched from the case store"""

    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(..., description="Target id the views were recorded against")
    views: int = Field(..., ge=1)
    title: str = Field(..., description="Display title, 'Unknown' when the case no longer exists")
    type: str = Field("case", description="case or memory")
    status: str = Field("unknown", description="Case status, 'unknown' when the case no longer exists")
    year: int | None = None
    created_by: str | None = Field(None, alias="createdBy")


class DailyCount(BaseModel):
    """Page views on one UTC calendar day"""

    date: str = Field(..., description="Day as YYYY-MM-DD")
    count: int = Field(..., ge=1)
