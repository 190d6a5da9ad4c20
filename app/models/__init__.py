from .user import Role, User
from .case import Case, CaseStatus, CaseType
from .page_view import PageView

__all__ = [
    "Role",
    "User",
    "Case",
    "CaseStatus",
    "CaseType",
    "PageView",
]
