"""
Data builders shared by the test modules.
"""

from datetime import datetime

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.case import Case, CaseStatus, CaseType
from app.models.page_view import PageView
from app.models.user import Role, User


async def create_role_set(db: AsyncSession) -> dict[str, Role]:
    roles = {
        "user": Role(name="user", permissions=[]),
        "moderator": Role(name="moderator", permissions=["view_analytics", "edit_cases"]),
        "admin": Role(name="admin", permissions=["*"]),
    }
    db.add_all(roles.values())
    await db.commit()
    return roles


async def create_test_user(
    db: AsyncSession,
    role: Role,
    email: str,
    full_name: str | None = None,
    blocked: bool = False,
) -> User:
    user = User(
        username=email.split("@")[0],
        email=email,
        full_name=full_name,
        hashed_password="not-a-real-hash",
        role_id=role.id,
        blocked=blocked,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def create_test_case(
    db: AsyncSession,
    title: str = "Case of the Kharkiv printers",
    case_type: CaseType = CaseType.CASE,
    status: CaseStatus = CaseStatus.PUBLISHED,
    person_name: str | None = None,
    year: int | None = 1937,
    created_by: User | None = None,
) -> Case:
    case = Case(
        title=title,
        person_name=person_name,
        type=case_type,
        description="Archival record.",
        year=year,
        status=status,
        created_by_id=created_by.id if created_by else None,
    )
    db.add(case)
    await db.commit()
    await db.refresh(case)
    return case


async def add_page_views(
    db: AsyncSession,
    occurred_at: list[datetime],
    target_id: int | None = None,
    target_type: str | None = None,
    path: str | None = None,
    visitor_signature: str = "198.51.100.1",
) -> None:
    if path is None:
        path = f"/api/cases/{target_id}" if target_id is not None else "/about"

    db.add_all(
        PageView(
            path=path,
            target_id=target_id,
            target_type=target_type,
            visitor_signature=visitor_signature,
            user_agent="pytest",
            occurred_at=moment,
        )
        for moment in occurred_at
    )
    await db.commit()


async def count_page_views(session_factory, **filters) -> int:
    async with session_factory() as session:
        stmt = select(func.count(PageView.id))
        for column, value in filters.items():
            stmt = stmt.where(getattr(PageView, column) == value if value is not None else getattr(PageView, column).is_(None))
        result = await session.execute(stmt)
        return result.scalar() or 0


async def list_page_views(session_factory) -> list[PageView]:
    async with session_factory() as session:
        result = await session.execute(select(PageView).order_by(PageView.id))
        return list(result.scalars().all())
