"""Role based access control matrix.

Students may only vote. Admins additionally view and announce results and list
subjects. Anything else, including a missing or malformed role, is a guest with
no permissions.
"""
from __future__ import annotations

import enum
from collections.abc import Mapping
from typing import Any

GUEST_ROLE = "guest"


class Action(str, enum.Enum):
    CAST_VOTE = "cast-vote"
    VIEW_TALLY = "view-tally"
    ANNOUNCE_TALLY = "announce-tally"
    LIST_SUBJECTS = "list-subjects"


ACCESS_MATRIX: Mapping[str, frozenset[Action]] = {
    "student": frozenset({Action.CAST_VOTE}),
    "admin": frozenset(
        {Action.CAST_VOTE, Action.VIEW_TALLY, Action.ANNOUNCE_TALLY, Action.LIST_SUBJECTS}
    ),
    GUEST_ROLE: frozenset(),
}


def permissions_for(role: Any) -> frozenset[Action]:
    if not isinstance(role, str):
        return frozenset()
    return ACCESS_MATRIX.get(role, frozenset())


def is_allowed(role: Any, action: Any) -> bool:
    """Return whether ``role`` may perform ``action``; never raises."""
    try:
        resolved = Action(action)
    except (TypeError, ValueError):
        return False
    return resolved in permissions_for(role)


def role_from_claims(claims: Mapping[str, Any] | None) -> str:
    role = (claims or {}).get("role")
    if isinstance(role, str) and role in ACCESS_MATRIX:
        return role
    return GUEST_ROLE


__all__ = ["ACCESS_MATRIX", "Action", "GUEST_ROLE", "is_allowed", "permissions_for", "role_from_claims"]
