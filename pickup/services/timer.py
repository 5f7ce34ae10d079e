"""Pickup window arithmetic.

All functions are pure: the result depends only on the arguments, so they
are safe to call from the sweeper, the API and the message templates alike.
Window and threshold default to the module constants; callers pass the
configured values from settings.
"""

from datetime import datetime, timedelta

from pickup.utils.clock import ensure_aware

PICKUP_WINDOW = timedelta(hours=1)
EXPIRING_SOON_THRESHOLD = timedelta(minutes=15)


def pickup_deadline(ready_at: datetime, window: timedelta = PICKUP_WINDOW) -> datetime:
    """Moment the pickup window closes."""
    return ensure_aware(ready_at) + window


def remaining(
    ready_at: datetime,
    now: datetime,
    window: timedelta = PICKUP_WINDOW,
) -> timedelta | None:
    """Time left to collect the order, or None once the window has elapsed."""
    left = pickup_deadline(ready_at, window) - ensure_aware(now)
    if left <= timedelta(0):
        return None
    return left


def is_expired(
    ready_at: datetime,
    now: datetime,
    window: timedelta = PICKUP_WINDOW,
) -> bool:
    return remaining(ready_at, now, window) is None


def is_expiring_soon(
    ready_at: datetime,
    now: datetime,
    window: timedelta = PICKUP_WINDOW,
    threshold: timedelta = EXPIRING_SOON_THRESHOLD,
) -> bool:
    """True when 0 < remaining < threshold."""
    left = remaining(ready_at, now, window)
    return left is not None and left < threshold


def format_remaining(left: timedelta | None) -> str:
    """Render time left as whole minutes, e.g. ``"42 min"``."""
    if left is None or left <= timedelta(0):
        return "Expired"
    return f"{int(left.total_seconds() // 60)} min"


def minutes_remaining(left: timedelta | None) -> int:
    if left is None:
        return 0
    return max(0, int(left.total_seconds() // 60))
