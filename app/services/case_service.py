from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from app.models.case import Case, CaseStatus
from app.services.view_recorder import parse_target_id
import logging

logger = logging.getLogger(__name__)


async def get_case(db: AsyncSession, raw_case_id: str, include_drafts: bool = False) -> Case | None:
    """
    Fetch a single case or memory by its route identifier.

    Args:
        db (AsyncSession): The database session.
        raw_case_id (str): Identifier as it appeared in the URL.
        include_drafts (bool): Whether unpublished cases may be returned.

    Returns:
        Case | None: The case, or None when the id is malformed, unknown,
        or names a draft the caller may not see.
    """
    case_id = parse_target_id(raw_case_id)
    if case_id is None:
        return None

    result = await db.execute(select(Case).where(Case.id == case_id))
    case = result.scalars().first()
    if case is None:
        return None

    if case.status != CaseStatus.PUBLISHED and not include_drafts:
        logger.debug(f"Draft case {case_id} hidden from public caller")
        return None

    return case
