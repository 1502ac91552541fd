"""
Companion Service - session-facing logic behind /ask, /poll and /usage.

Every per-key mutation happens inside SessionStore.session() / existing(),
so a request and an idle sweep on the same client never interleave field
writes. The completion call in ask() runs outside the session lock.
"""

import random
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from .session_policy import SessionPolicy
from .session_store_service import QueuedMessage, SessionStore, now_ms

logger = logging.getLogger(__name__)

LOG_PREFIX = "[COMPANION]"

DRY_WORDS = frozenset({"ok", "okay", "hmm", "hmmm", "lol", "nah", "nothing", "idk", "no"})

DEFAULT_PERSONA = (
    "You are Jungkook from BTS 🐰💜\n"
    "Stay playful, flirty, and warm.\n"
    "Mix Korean words (annyeong, saranghae, jagiya).\n"
    "Ask follow-up questions to keep convo alive.\n"
    "Encourage fun games (truth/dare, guess me, bias talk).\n"
    "🔥 Keep flirty/spicy energy going, don’t shut it down unless user uncomfortable.\n"
    "\n"
    "❌ Avoid: politics, religion, violence, NSFW (too adult).\n"
    "💡 Always steer back to fun, romance, music, ARMY vibes."
)


class CompanionError(Exception):
    """Base class for errors surfaced to the API layer."""


class MalformedInputError(CompanionError):
    """The request is missing a usable question (no session is touched)."""


class QuotaExceededError(CompanionError):
    """The client used up its daily allowance; the backend was not called."""

    def __init__(self, used: int, left: int = 0):
        super().__init__(f"Daily limit reached ({used} used)")
        self.used = used
        self.left = left


class CollaboratorUnavailableError(CompanionError):
    """The completion backend failed or timed out."""


@dataclass
class AskResult:
    reply: str
    is_dry: bool
    system_injected: bool


def is_dry_message(question: str) -> bool:
    return question.strip().lower() in DRY_WORDS


def _history_tail(history: Optional[list], size: int) -> List[dict]:
    """Last `size` well-formed {role, content} turns; anything else is dropped."""
    turns = []
    for item in history or []:
        if not isinstance(item, dict):
            continue
        role, content = item.get("role"), item.get("content")
        if isinstance(role, str) and isinstance(content, str) and content:
            turns.append({"role": role, "content": content})
    if size <= 0:
        return []
    return turns[-size:]


class CompanionService:
    """Handles the three client operations against a shared SessionStore."""

    def __init__(
        self,
        store: SessionStore,
        policy: SessionPolicy,
        llm,
        persona: str = DEFAULT_PERSONA,
        reinjection_probability: float = 0.2,
        history_tail: int = 3,
        rng: Optional[random.Random] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.store = store
        self.policy = policy
        self.llm = llm
        self.persona = persona or DEFAULT_PERSONA
        self.reinjection_probability = reinjection_probability
        self.history_tail = history_tail
        self._rng = rng or random.Random()
        self.clock = clock

    def ask(self, key: str, question, history=None) -> AskResult:
        """
        Count one interaction for key and fetch a reply from the completion backend.

        Raises:
            MalformedInputError: question missing/blank or history not a list
            QuotaExceededError: daily limit already reached
            CollaboratorUnavailableError: the backend call failed
        """
        if not isinstance(question, str) or not question.strip():
            raise MalformedInputError("Missing 'question' field")
        if history is not None and not isinstance(history, list):
            raise MalformedInputError("'history' must be a list of {role, content} turns")

        with self.store.session(key) as state:
            if self.policy.is_quota_exceeded(state):
                logger.info(f"{LOG_PREFIX} Daily limit reached for {key} ({state.daily_count} used)")
                raise QuotaExceededError(used=state.daily_count, left=0)

            state.last_activity_at = self.clock()
            state.daily_count += 1
            state.first_message = False

        is_dry = is_dry_message(question)
        use_system = is_dry or self._rng.random() < self.reinjection_probability or not history

        messages = []
        if use_system:
            messages.append({"role": "system", "content": self.persona})
        messages.extend(_history_tail(history, self.history_tail))
        messages.append({"role": "user", "content": question})

        try:
            response = self.llm.send_messages(messages)
        except Exception as e:
            logger.error(f"{LOG_PREFIX} Completion failed for {key}: {e}")
            raise CollaboratorUnavailableError(str(e)) from e

        return AskResult(reply=response.text, is_dry=is_dry, system_injected=use_system)

    def poll(self, key: str) -> List[QueuedMessage]:
        """Drain the outbound queue for key. Unknown keys get an empty list."""
        with self.store.existing(key) as state:
            if state is None:
                return []

            messages, state.outbound_queue = state.outbound_queue, []
            if messages:
                # Delivery counts as activity so the sweeper does not re-queue at once
                state.last_activity_at = self.clock()
            return messages

    def usage(self, key: str) -> dict:
        with self.store.session(key) as state:
            return {"used": state.daily_count, "left": self.policy.remaining(state)}
