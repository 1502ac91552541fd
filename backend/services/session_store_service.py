"""
Session Store Service - in-memory table of per-client session state.

One SessionState per client key, created lazily on first contact and
normalised for day rollover on every lookup. Sessions live until the process
exits or the idle sweeper evicts them as stale.

Locking:
- a table lock guards membership (create / evict / key snapshot)
- each SessionState carries its own RLock guarding field mutation

Operations on different keys never wait on each other beyond the brief
table-lock critical section.
"""

import time
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, Iterator, List, Optional

from .session_policy import SessionPolicy, day_stamp

logger = logging.getLogger(__name__)

LOG_PREFIX = "[SESSION STORE]"


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class QueuedMessage:
    text: str
    queued_at: int
    kind: str = "auto"

    def to_dict(self) -> dict:
        """Wire form consumed by the polling client."""
        at = datetime.fromtimestamp(self.queued_at / 1000, tz=timezone.utc)
        return {
            "type": self.kind,
            "text": self.text,
            "at": at.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        }


@dataclass
class SessionState:
    key: str
    day_stamp: str
    created_at: int
    last_activity_at: int
    daily_count: int = 0
    first_message: bool = True
    last_auto_message_at: int = 0
    active: bool = True
    outbound_queue: List[QueuedMessage] = field(default_factory=list)
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)


class SessionStore:
    """Owns every SessionState; the only way handlers and the sweeper reach them."""

    def __init__(self, policy: SessionPolicy, clock: Callable[[], int] = now_ms, eviction_ms: Optional[int] = None):
        self.policy = policy
        self.clock = clock
        self.eviction_ms = eviction_ms
        self._sessions: Dict[str, SessionState] = {}
        self._table_lock = threading.Lock()

    def _create(self, key: str, now: int) -> SessionState:
        logger.debug(f"{LOG_PREFIX} New session for {key}")
        return SessionState(
            key=key,
            day_stamp=day_stamp(now),
            created_at=now,
            last_activity_at=now,
        )

    def _lookup_or_insert(self, key: str) -> SessionState:
        with self._table_lock:
            state = self._sessions.get(key)
            if state is None:
                state = self._create(key, self.clock())
                self._sessions[key] = state
            return state

    def get_or_create(self, key: str) -> SessionState:
        """Return the session for key, creating it or applying day rollover."""
        with self.session(key) as state:
            return state

    def get(self, key: str) -> Optional[SessionState]:
        with self._table_lock:
            return self._sessions.get(key)

    @contextmanager
    def session(self, key: str) -> Iterator[SessionState]:
        """Yield the (possibly new) session for key with its lock held.

        Rollover is applied before the caller sees the state. If the entry was
        evicted between lookup and locking, a fresh one is created instead.
        """
        while True:
            state = self._lookup_or_insert(key)
            with state.lock:
                if self.get(key) is not state:
                    continue
                if self.policy.apply_daily_rollover(state, self.clock()):
                    logger.info(f"{LOG_PREFIX} Daily rollover for {key}")
                yield state
                return

    @contextmanager
    def existing(self, key: str) -> Iterator[Optional[SessionState]]:
        """Yield the locked session for key, or None without creating one."""
        state = self.get(key)
        if state is None:
            yield None
            return
        with state.lock:
            yield state if self.get(key) is state else None

    def keys(self) -> List[str]:
        with self._table_lock:
            return list(self._sessions.keys())

    def evict_stale(self, now: Optional[int] = None) -> int:
        """Drop sessions whose client has been gone longer than eviction_ms.

        Undelivered auto messages go with them; nobody is left to poll for them.
        """
        if not self.eviction_ms:
            return 0
        now = self.clock() if now is None else now

        evicted = 0
        with self._table_lock:
            for key, state in list(self._sessions.items()):
                # Skip sessions a request or the sweeper is working on right now
                if not state.lock.acquire(blocking=False):
                    continue
                try:
                    if now - state.last_activity_at > self.eviction_ms:
                        if state.outbound_queue:
                            logger.debug(f"{LOG_PREFIX} Dropping {len(state.outbound_queue)} undelivered message(s) for {key}")
                        del self._sessions[key]
                        evicted += 1
                finally:
                    state.lock.release()

        if evicted:
            logger.info(f"{LOG_PREFIX} Evicted {evicted} stale session(s)")
        return evicted

    def __len__(self) -> int:
        with self._table_lock:
            return len(self._sessions)

    def __contains__(self, key: str) -> bool:
        with self._table_lock:
            return key in self._sessions
