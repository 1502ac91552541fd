"""
Test helpers - deterministic clock and session factories.

Usage:
    from tests.helpers import FakeClock, T0, make_session_state
"""

from datetime import datetime

from services.session_policy import day_stamp
from services.session_store_service import SessionState


# Mid-morning local time, far from any midnight so hour-scale offsets stay on one day
T0 = int(datetime(2026, 3, 10, 9, 0, 0).timestamp() * 1000)

IDLE_MS = 180000
SESSION_MAX_MS = 3600000
DAY_MS = 24 * 60 * 60 * 1000


class FakeClock:
    """Callable epoch-ms clock that only moves when told to."""

    def __init__(self, now: int = T0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now

    def set(self, now: int) -> int:
        self.now = now
        return self.now


def make_session_state(
    key="10.0.0.1",
    now=T0,
    daily_count=0,
    created_at=None,
    last_activity_at=None,
    last_auto_message_at=0,
    active=True,
):
    """Return a SessionState stamped for the day of `now`. Override any field via keyword."""
    return SessionState(
        key=key,
        day_stamp=day_stamp(now),
        created_at=now if created_at is None else created_at,
        last_activity_at=now if last_activity_at is None else last_activity_at,
        daily_count=daily_count,
        last_auto_message_at=last_auto_message_at,
        active=active,
    )
