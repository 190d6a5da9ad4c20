"""
View Recorder

Counts visits to archive pages. Each content request is checked against the
dedup cache and, when it is a new visit from an unprivileged caller, a page
view row is written in the background. Tracking never blocks or fails the
content response.
"""

import asyncio
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.future import select
from starlette.requests import Request

from app.constants.roles import CallerClass
from app.models.case import Case
from app.models.page_view import PageView
from app.services.dedup_cache import DedupCache
from app.utils.client_ip import get_client_ip

logger = logging.getLogger(__name__)

MAX_SIGNATURE_LENGTH = 64
_TARGET_ID_RE = re.compile(r"^\d{1,10}$")
# cases.id and page_views.target_id are 32-bit integer columns
MAX_TARGET_ID = 2**31 - 1


def parse_target_id(raw: str | int | None) -> int | None:
    """Parse a route identifier into a case id, or None if it is not one."""
    if raw is None:
        return None
    if isinstance(raw, int):
        return raw if 0 < raw <= MAX_TARGET_ID else None

    value = str(raw).strip()
    if not _TARGET_ID_RE.match(value):
        return None
    target_id = int(value)
    return target_id if 0 < target_id <= MAX_TARGET_ID else None


@dataclass(frozen=True)
class VisitInfo:
    """What the recorder needs to know about one inbound content request."""

    path: str
    visitor_signature: str = ""
    user_agent: str = ""
    raw_target_id: str | None = None

    @classmethod
    def from_request(cls, request: Request, raw_target_id: str | None = None) -> "VisitInfo":
        path = request.url.path
        if request.url.query:
            path = f"{path}?{request.url.query}"

        return cls(
            path=path,
            visitor_signature=get_client_ip(request)[:MAX_SIGNATURE_LENGTH],
            user_agent=request.headers.get("user-agent", ""),
            raw_target_id=raw_target_id,
        )


class PageViewStore:
    """Appends page view rows using its own database sessions."""

    def __init__(self, session_factory: Callable):
        self._session_factory = session_factory

    async def add(
        self,
        path: str,
        target_id: int | None,
        visitor_signature: str,
        user_agent: str,
    ) -> PageView:
        async with self._session_factory() as db:
            target_type = None
            if target_id is not None:
                result = await db.execute(select(Case.type).where(Case.id == target_id))
                case_type = result.scalar_one_or_none()
                target_type = case_type.value if case_type is not None else None

            view = PageView(
                path=path,
                target_id=target_id,
                target_type=target_type,
                visitor_signature=visitor_signature,
                user_agent=user_agent,
                occurred_at=datetime.utcnow(),
            )
            db.add(view)
            await db.commit()
            return view


def log_persist_failure(exc: BaseException, visit: VisitInfo) -> None:
    logger.error(f"PageView tracking error for {visit.path}: {exc}")


class ViewRecorder:
    """
    Best-effort page view instrumentation.

    The dedup decision is taken synchronously; the write is submitted as an
    asyncio task that nobody awaits. Write failures go to `on_error` and are
    dropped.
    """

    def __init__(
        self,
        cache: DedupCache,
        store: PageViewStore,
        on_error: Callable[[BaseException, VisitInfo], None] = log_persist_failure,
    ):
        self.cache = cache
        self.store = store
        self._on_error = on_error
        self._pending: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def record_if_new(self, visit: VisitInfo, caller: CallerClass, now: float | None = None) -> bool:
        """
        Count a visit unless it is staff traffic or a recent repeat.

        Returns True when a write was submitted. Never raises.
        """
        try:
            return self._record(visit, caller, now)
        except Exception:
            logger.exception(f"Page view tracking skipped for {visit.path}")
            return False

    def _record(self, visit: VisitInfo, caller: CallerClass, now: float | None) -> bool:
        if caller is not CallerClass.VISITOR:
            logger.debug(f"Not counting {caller.value} caller on {visit.path}")
            return False

        target_id = parse_target_id(visit.raw_target_id)
        if visit.raw_target_id is not None and target_id is None:
            logger.debug(f"Malformed target id {visit.raw_target_id!r}, deduplicating on path")

        if not self.cache.should_record(visit.visitor_signature, target_id, visit.path, now=now):
            return False

        task = asyncio.get_running_loop().create_task(self._persist(visit, target_id))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return True

    async def _persist(self, visit: VisitInfo, target_id: int | None) -> None:
        try:
            await self.store.add(
                path=visit.path,
                target_id=target_id,
                visitor_signature=visit.visitor_signature,
                user_agent=visit.user_agent,
            )
        except Exception as exc:
            self._on_error(exc, visit)

    async def drain(self) -> None:
        """Wait for every submitted write to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
