"""
Page view tracking dependency.

Attach `Depends(track_page_view)` to a content route whose path carries a
`case_id`; the visit is counted before the handler runs and the handler's
response never depends on it.
"""

import logging

from fastapi import Depends, Request

from app.auth import classify_caller
from app.constants.roles import CallerClass
from app.services.view_recorder import ViewRecorder, VisitInfo

logger = logging.getLogger(__name__)

TARGET_PATH_PARAM = "case_id"


def get_view_recorder(request: Request) -> ViewRecorder | None:
    return getattr(request.app.state, "view_recorder", None)


async def track_page_view(
    request: Request,
    caller: CallerClass = Depends(classify_caller),
    recorder: ViewRecorder | None = Depends(get_view_recorder),
) -> None:
    if recorder is None:
        logger.debug("No view recorder configured, visit not tracked")
        return

    visit = VisitInfo.from_request(request, request.path_params.get(TARGET_PATH_PARAM))
    recorder.record_if_new(visit, caller)
