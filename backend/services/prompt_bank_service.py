"""
Prompt Bank Service - candidate follow-up prompts for proactive messages.

Loaded once at startup from a JSON file holding either a list of strings or
an object with a "conversation_bank" list. Anything else falls back to the
built-in bank so the idle sweeper always has something to say.
"""

import json
import random
import logging
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

LOG_PREFIX = "[PROMPT BANK]"

DEFAULT_PROMPTS = [
    "What are you doing right now? 💭",
    "How was your day today? 🌸",
    "If we could go anywhere together, where would you take me? ✈️💜",
    "Do you like listening to music when you study or relax? 🎶",
    "What's your favorite food? 🍜",
    "Who was your first bias in BTS? 😉",
    "Tell me something funny that happened to you today 😂",
    "If you could sing one song with me, what would it be? 🎤",
    "What's the weather like where you are? ☀️🌧️",
    "Truth or dare? 😏",
]


class PromptBankService:
    """Holds the follow-up prompts and hands out one at random."""

    def __init__(self, prompts: Optional[List[str]] = None, rng: Optional[random.Random] = None):
        cleaned = [p.strip() for p in (prompts or []) if isinstance(p, str) and p.strip()]
        if not cleaned:
            cleaned = list(DEFAULT_PROMPTS)
        self.prompts = cleaned
        self._rng = rng or random.Random()

    @classmethod
    def from_file(cls, path, rng: Optional[random.Random] = None) -> "PromptBankService":
        """Load the bank from a JSON file, falling back to DEFAULT_PROMPTS on any problem."""
        try:
            with open(Path(path), 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"{LOG_PREFIX} Could not load {path} ({e}), using small default bank")
            return cls(rng=rng)

        prompts = data.get("conversation_bank") if isinstance(data, dict) else data
        if not isinstance(prompts, list) or not any(isinstance(p, str) and p.strip() for p in prompts):
            logger.warning(f"{LOG_PREFIX} {path} has no usable prompts, using small default bank")
            return cls(rng=rng)

        bank = cls(prompts, rng=rng)
        logger.info(f"{LOG_PREFIX} Loaded {len(bank)} prompts from {path}")
        return bank

    def random_prompt(self) -> str:
        return self._rng.choice(self.prompts)

    def __len__(self) -> int:
        return len(self.prompts)
