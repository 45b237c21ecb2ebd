"""
Pickup status lifecycle: pending -> in-progress -> completed
"""

from typing import Dict, Optional, Union

from .exceptions import InvalidTransition
from .models import PickupStatus

# Each state has at most one successor; completed is terminal
NEXT_STATUS: Dict[PickupStatus, Optional[PickupStatus]] = {
    PickupStatus.PENDING: PickupStatus.IN_PROGRESS,
    PickupStatus.IN_PROGRESS: PickupStatus.COMPLETED,
    PickupStatus.COMPLETED: None,
}


def _coerce(status: Union[str, PickupStatus, None]) -> Optional[PickupStatus]:
    if status is None:
        return None
    try:
        return PickupStatus(status)
    except ValueError:
        return None


def next_status(current: Union[str, PickupStatus]) -> Optional[PickupStatus]:
    """Successor of the given status, or None if terminal/unknown"""
    status = _coerce(current)
    return NEXT_STATUS.get(status) if status else None


def is_terminal(status: Union[str, PickupStatus]) -> bool:
    return _coerce(status) == PickupStatus.COMPLETED


def can_transition(current: Union[str, PickupStatus], requested: Union[str, PickupStatus]) -> bool:
    target = _coerce(requested)
    return target is not None and next_status(current) == target


def validate_transition(current: Union[str, PickupStatus], requested: Union[str, PickupStatus]) -> PickupStatus:
    """Return the requested status, or raise InvalidTransition"""
    if not can_transition(current, requested):
        raise InvalidTransition(_label(current), _label(requested))
    return PickupStatus(requested)


def _label(status: Union[str, PickupStatus, None]) -> Optional[str]:
    if isinstance(status, PickupStatus):
        return status.value
    return status
