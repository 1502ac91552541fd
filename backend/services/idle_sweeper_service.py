"""
Idle Sweeper Service - queues proactive follow-up messages for idle clients.

Runs every SWEEP_INTERVAL on a daemon thread, independent of request traffic.
For each session:
  - inactive sessions are skipped
  - sessions past SESSION_MAX_MS are deactivated (no more auto messages today)
  - idle sessions outside their last auto-message window get one queued prompt

The poll endpoint drains what is queued here. A pass never raises: one bad
session is logged and skipped, and the loop survives any error.
"""

import logging
import threading
from typing import Callable, Optional

from .prompt_bank_service import PromptBankService
from .session_policy import SessionPolicy
from .session_store_service import QueuedMessage, SessionStore, now_ms

logger = logging.getLogger(__name__)

LOG_PREFIX = "[IDLE SWEEPER]"

AUTO_MESSAGE_TEMPLATE = "Annyeong~ {prompt}"


class IdleSweeperService:
    """Background service that turns client idleness into queued prompts."""

    def __init__(
        self,
        store: SessionStore,
        policy: SessionPolicy,
        prompt_bank: PromptBankService,
        interval_ms: int = 30000,
        clock: Callable[[], int] = now_ms,
    ):
        """
        Initialize the idle sweeper.

        Args:
            store: Session table to scan
            policy: Expiry / idle decisions
            prompt_bank: Source of follow-up prompts
            interval_ms: Milliseconds between sweeps (default: 30000)
            clock: Epoch-ms clock, injectable for tests
        """
        self.store = store
        self.policy = policy
        self.prompt_bank = prompt_bank
        self.interval_ms = interval_ms
        self.clock = clock

        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

        logger.info(
            f"{LOG_PREFIX} Initialized "
            f"(interval={interval_ms}ms, idle={policy.idle_ms}ms, session_max={policy.session_max_ms}ms)"
        )

    def sweep(self, now: Optional[int] = None) -> int:
        """Run one pass over every session. Returns the number of messages queued."""
        now = self.clock() if now is None else now
        queued = 0

        for key in self.store.keys():
            try:
                with self.store.existing(key) as state:
                    if state is None or not state.active:
                        continue

                    if self.policy.is_expired(state, now):
                        state.active = False
                        logger.info(f"{LOG_PREFIX} Session for {key} reached max duration, auto messages stopped")
                        continue

                    if self.policy.should_queue_idle_message(state, now):
                        text = AUTO_MESSAGE_TEMPLATE.format(prompt=self.prompt_bank.random_prompt())
                        state.outbound_queue.append(QueuedMessage(text=text, queued_at=now))
                        state.last_auto_message_at = now
                        queued += 1
                        logger.debug(f"{LOG_PREFIX} Queued auto message for {key}")
            except Exception as e:
                logger.error(f"{LOG_PREFIX} Failed to sweep session {key}: {e}", exc_info=True)

        try:
            self.store.evict_stale(now)
        except Exception as e:
            logger.error(f"{LOG_PREFIX} Eviction failed: {e}", exc_info=True)

        if queued:
            logger.info(f"{LOG_PREFIX} Queued {queued} auto message(s)")
        return queued

    def run(self) -> None:
        """Main service loop - sweeps until stop() is called."""
        logger.info(f"{LOG_PREFIX} Service started")

        while not self._stop.wait(self.interval_ms / 1000):
            try:
                self.sweep()
            except Exception as e:
                logger.error(f"{LOG_PREFIX} Error: {e}", exc_info=True)

        logger.info(f"{LOG_PREFIX} Service stopped")

    def start(self) -> threading.Thread:
        """Start the sweep loop on a daemon thread (idempotent)."""
        if self._thread is not None and self._thread.is_alive():
            return self._thread

        self._stop.clear()
        self._thread = threading.Thread(target=self.run, name="idle-sweeper", daemon=True)
        self._thread.start()
        return self._thread

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
