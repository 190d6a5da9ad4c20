"""Constants package for the Repression Archive API."""

from .auth import ACCESS_TOKEN_EXPIRE_MINUTES, ALGORITHM, SECRET_KEY, SUBJECT_CLAIM, TOKEN_URL
from .roles import (
    CallerClass,
    PRIVILEGED_ROLES,
    RoleName,
    classify_role,
    is_privileged_role,
)

__all__ = [
    # Role constants
    "RoleName",
    "CallerClass",
    "classify_role",
    "PRIVILEGED_ROLES",
    "is_privileged_role",
    # Auth constants
    "SECRET_KEY",
    "ALGORITHM",
    "ACCESS_TOKEN_EXPIRE_MINUTES",
    "SUBJECT_CLAIM",
    "TOKEN_URL",
]
