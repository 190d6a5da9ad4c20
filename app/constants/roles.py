"""
Role Constants for the Repression Archive

This module defines constants for user roles to avoid hardcoded values
throughout the codebase.
"""

from enum import Enum


class RoleName(str, Enum):
    """Enumeration of role names in the system."""

    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"


# Staff roles: excluded from view counts and allowed on the reporting surface
PRIVILEGED_ROLES = frozenset({RoleName.MODERATOR.value, RoleName.ADMIN.value})


def is_privileged_role(role: str | None) -> bool:
    """Check whether a role name belongs to moderation staff."""
    return role in PRIVILEGED_ROLES


class CallerClass(str, Enum):
    """How the request classifier sees a caller, for view counting."""

    VISITOR = "visitor"  # anonymous, or authenticated with the user role
    PRIVILEGED = "privileged"  # moderator or admin
    UNKNOWN = "unknown"  # credentials presented but the role could not be resolved


def classify_role(role: str | None) -> CallerClass:
    """Map a resolved role name to a caller class."""
    if role is None:
        return CallerClass.UNKNOWN
    if is_privileged_role(role):
        return CallerClass.PRIVILEGED
    if role == RoleName.USER.value:
        return CallerClass.VISITOR
    return CallerClass.UNKNOWN
