"""
Case Routes

Public lookup of archived cases and memories. Every lookup is counted as a
page view for the moderation dashboard.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import classify_caller
from app.constants.roles import CallerClass
from app.database import get_db
from app.exceptions import CaseNotFoundError
from app.schemas.case import CaseResponse
from app.services.case_service import get_case
from app.tracking import track_page_view

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Cases"])


@router.get("/{case_id}", response_model=CaseResponse, dependencies=[Depends(track_page_view)])
async def get_single_case(
    case_id: str,
    caller: CallerClass = Depends(classify_caller),
    db: AsyncSession = Depends(get_db),
):
    """
    Get a single case or memory.

    Drafts are visible to moderators and admins only.
    """
    case = await get_case(db, case_id, include_drafts=caller is CallerClass.PRIVILEGED)
    if case is None:
        raise CaseNotFoundError(case_id)
    return case
