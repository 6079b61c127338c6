from app.services.errors import InvalidTransitionError
from app.utils.constants import (
    APPROVED,
    ARCHIVED,
    DRAFT,
    GENERATED,
    NEEDS_IMPROVEMENT,
    PUBLISHED,
    REJECTED,
    REVIEW,
    STATES,
    TERMINAL_STATES,
)

ALLOWED_TRANSITIONS = {
    DRAFT: [GENERATED, REJECTED, ARCHIVED],
    GENERATED: [APPROVED, REVIEW, REJECTED, NEEDS_IMPROVEMENT, ARCHIVED],
    REVIEW: [APPROVED, REJECTED, NEEDS_IMPROVEMENT, ARCHIVED],
    NEEDS_IMPROVEMENT: [APPROVED, REVIEW, REJECTED, ARCHIVED],
    APPROVED: [PUBLISHED, REJECTED, ARCHIVED],
    PUBLISHED: [ARCHIVED],
    REJECTED: [],
    ARCHIVED: [],
}


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, [])


def ensure_transition(current: str, target: str) -> None:
    if current not in STATES:
        raise ValueError(f"Unknown state: {current}")
    if target not in STATES:
        raise ValueError(f"Unknown target state: {target}")

    if not can_transition(current, target):
        raise InvalidTransitionError(current, target)


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATES
