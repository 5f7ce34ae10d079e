"""Tests for pickup window arithmetic."""

from datetime import datetime, timedelta, timezone

from pickup.services import timer

READY_AT = datetime(2025, 6, 2, 20, 0, tzinfo=timezone.utc)


def test_deadline_is_one_hour_after_ready() -> None:
    assert timer.pickup_deadline(READY_AT) == READY_AT + timedelta(hours=1)


def test_remaining_counts_down() -> None:
    assert timer.remaining(READY_AT, READY_AT) == timedelta(hours=1)
    assert timer.remaining(READY_AT, READY_AT + timedelta(minutes=42)) == timedelta(minutes=18)


def test_expired_at_exact_deadline() -> None:
    deadline = timer.pickup_deadline(READY_AT)

    assert not timer.is_expired(READY_AT, deadline - timedelta(seconds=1))
    assert timer.is_expired(READY_AT, deadline)
    assert timer.remaining(READY_AT, deadline) is None


def test_expiring_soon_boundaries() -> None:
    assert not timer.is_expiring_soon(READY_AT, READY_AT + timedelta(minutes=44))
    # Exactly 15 minutes left is not yet expiring soon
    assert not timer.is_expiring_soon(READY_AT, READY_AT + timedelta(minutes=45))
    assert timer.is_expiring_soon(READY_AT, READY_AT + timedelta(minutes=45, seconds=1))
    assert timer.is_expiring_soon(READY_AT, READY_AT + timedelta(minutes=59, seconds=59))
    # Expired orders are not "expiring soon"
    assert not timer.is_expiring_soon(READY_AT, READY_AT + timedelta(hours=1))
    assert not timer.is_expiring_soon(READY_AT, READY_AT + timedelta(hours=3))


def test_custom_window_and_threshold() -> None:
    window = timedelta(minutes=30)
    threshold = timedelta(minutes=5)

    assert timer.is_expired(READY_AT, READY_AT + timedelta(minutes=30), window)
    assert not timer.is_expiring_soon(READY_AT, READY_AT + timedelta(minutes=20), window, threshold)
    assert timer.is_expiring_soon(READY_AT, READY_AT + timedelta(minutes=26), window, threshold)


def test_naive_times_are_utc() -> None:
    naive = READY_AT.replace(tzinfo=None)

    assert timer.remaining(naive, READY_AT + timedelta(minutes=30)) == timedelta(minutes=30)


def test_format_remaining() -> None:
    assert timer.format_remaining(timedelta(minutes=42, seconds=30)) == "42 min"
    assert timer.format_remaining(timedelta(seconds=20)) == "0 min"
    assert timer.format_remaining(None) == "Expired"
    assert timer.format_remaining(timedelta(0)) == "Expired"


def test_minutes_remaining() -> None:
    assert timer.minutes_remaining(timedelta(minutes=14, seconds=59)) == 14
    assert timer.minutes_remaining(None) == 0
