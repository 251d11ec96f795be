# Activity status rules.
# upcoming -> ongoing | completed | cancelled
# ongoing  -> completed | cancelled
# completed, cancelled: terminal

from datetime import datetime
from typing import Dict, FrozenSet, Optional

from activityhub.models.activity import ActivityStatus

_UPCOMING = ActivityStatus.UPCOMING.value
_ONGOING = ActivityStatus.ONGOING.value
_COMPLETED = ActivityStatus.COMPLETED.value
_CANCELLED = ActivityStatus.CANCELLED.value

ALLOWED_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    _UPCOMING: frozenset({_ONGOING, _COMPLETED, _CANCELLED}),
    _ONGOING: frozenset({_COMPLETED, _CANCELLED}),
    _COMPLETED: frozenset(),
    _CANCELLED: frozenset(),
}


def derive_status(start: datetime, end: datetime, now: datetime) -> str:
    """Status implied by the time window. Persisted status is not kept in sync automatically."""
    if now < start:
        return _UPCOMING
    if now > end:
        return _COMPLETED
    return _ONGOING


def check_status_transition(current: str, target: str) -> Optional[str]:
    """None when ``current -> target`` is allowed, else the message for a 409."""
    targets = ALLOWED_TRANSITIONS.get(current, frozenset())
    if target in targets:
        return None
    options = ", ".join(sorted(targets)) or "none"
    return f"Status change {current} -> {target} is not allowed (from {current}: {options})"
