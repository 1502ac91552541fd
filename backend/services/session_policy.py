"""
Session Policy - rollover, expiry, idle and quota decisions over SessionState.

Everything here is a pure check except apply_daily_rollover, which resets the
per-day fields in place. Callers hold the session lock.

Boundaries: the idle test is inclusive (>=), the expiry test and the
duplicate-window test are strict (>).
"""

from datetime import datetime


def day_stamp(now_ms: int) -> str:
    """Local calendar day for an epoch-ms timestamp."""
    return datetime.fromtimestamp(now_ms / 1000).strftime("%Y-%m-%d")


class SessionPolicy:
    """Threshold-driven decisions for one session at a given time."""

    def __init__(self, daily_limit: int = 20, idle_ms: int = 180000, session_max_ms: int = 3600000):
        self.daily_limit = daily_limit
        self.idle_ms = idle_ms
        self.session_max_ms = session_max_ms

    @classmethod
    def from_config(cls, config: dict) -> "SessionPolicy":
        return cls(
            daily_limit=config["daily_limit"],
            idle_ms=config["idle_ms"],
            session_max_ms=config["session_max_ms"],
        )

    def apply_daily_rollover(self, state, now: int) -> bool:
        """Start a new quota day and session epoch when the calendar day changed.

        Returns True when the state was reset.
        """
        today = day_stamp(now)
        if state.day_stamp == today:
            return False

        state.daily_count = 0
        state.day_stamp = today
        state.first_message = True
        state.created_at = now
        state.last_auto_message_at = 0
        state.active = True
        return True

    def is_expired(self, state, now: int) -> bool:
        return now - state.created_at > self.session_max_ms

    def should_queue_idle_message(self, state, now: int) -> bool:
        return (
            state.active
            and now - state.last_activity_at >= self.idle_ms
            and now - state.last_auto_message_at > self.idle_ms
        )

    def is_quota_exceeded(self, state) -> bool:
        return state.daily_count >= self.daily_limit

    def remaining(self, state) -> int:
        return max(0, self.daily_limit - state.daily_count)
