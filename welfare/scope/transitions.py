"""Application lifecycle transitions (flat table lookup)."""

from __future__ import annotations

from enum import StrEnum
from typing import Mapping


class ApplicationStatus(StrEnum):
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


_TRANSITIONS: Mapping[ApplicationStatus, frozenset[ApplicationStatus]] = {
    ApplicationStatus.PENDING: frozenset({ApplicationStatus.UNDER_REVIEW, ApplicationStatus.REJECTED}),
    ApplicationStatus.UNDER_REVIEW: frozenset({ApplicationStatus.APPROVED, ApplicationStatus.REJECTED}),
    ApplicationStatus.APPROVED: frozenset({ApplicationStatus.COMPLETED}),
    ApplicationStatus.REJECTED: frozenset(),
    ApplicationStatus.COMPLETED: frozenset(),
}

TERMINAL_STATUSES: frozenset[ApplicationStatus] = frozenset(s for s, nxt in _TRANSITIONS.items() if not nxt)


def _coerce(status: object) -> ApplicationStatus | None:
    if isinstance(status, ApplicationStatus):
        return status
    if not isinstance(status, str):
        return None
    try:
        return ApplicationStatus(status)
    except ValueError:
        return None


def allowed_transitions(current: object) -> frozenset[ApplicationStatus]:
    resolved = _coerce(current)
    if resolved is None:
        return frozenset()
    return _TRANSITIONS[resolved]


def is_valid_transition(current: object, next_status: object) -> bool:
    target = _coerce(next_status)
    if target is None:
        return False
    return target in allowed_transitions(current)


def is_terminal(status: object) -> bool:
    return _coerce(status) in TERMINAL_STATUSES
