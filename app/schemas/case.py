from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models.case import CaseStatus, CaseType


class CaseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: int = Field(..., title="Case ID")
    title: str = Field(..., title="Case Title")
    person_name: str | None = Field(None, title="Person Name", description="Remembered person, for memories.")
    type: CaseType = Field(..., title="Case Type")
    description: str = Field(..., title="Description")
    year: int | None = Field(None, title="Year")
    status: CaseStatus = Field(..., title="Status")
    created_at: datetime
    updated_at: datetime
