"""
LLM Service Factory - creates the completion client used by /ask.

Usage:
    from services.llm_service import create_llm_service
    llm = create_llm_service(ConfigService.completion())
    response = llm.send_messages([{"role": "user", "content": "hi"}])
    text = response.text
"""

import time
import logging
from dataclasses import dataclass
from typing import List, Optional

logger = logging.getLogger(__name__)


class CompletionError(Exception):
    """The completion backend returned nothing usable or could not be called."""


def _resolve_api_key(config: dict) -> str:
    """
    Resolve API key from completion config.

    Raises:
        CompletionError if api_key is not set
    """
    api_key = config.get('api_key')

    if not api_key:
        raise CompletionError(
            "API key not found in completion configuration. "
            "Set COMPLETION_API_KEY (or ZUKI_API_KEY) in the environment or .env"
        )

    return api_key


@dataclass
class LLMResponse:
    text: str
    model: str
    provider: Optional[str] = None
    tokens_input: Optional[int] = None
    tokens_output: Optional[int] = None
    latency_ms: Optional[int] = None


def _call_with_retry(fn, max_retries=2, backoff=1.0):
    """Retry fn() up to max_retries times with exponential backoff."""
    for attempt in range(max_retries + 1):
        try:
            return fn()
        except Exception as e:
            if attempt == max_retries:
                raise
            wait = backoff * (2 ** attempt)
            logger.warning(f"LLM call failed (attempt {attempt+1}): {e}. Retrying in {wait}s...")
            time.sleep(wait)


def create_llm_service(config: dict):
    """
    Create an LLM service based on the platform field in config.

    Args:
        config: Dict from ConfigService.completion(); 'platform' defaults to 'openai'.

    Returns:
        LLM service instance.
    """
    platform = config.get('platform') or 'openai'
    if not config.get('model'):
        raise ValueError("Completion config missing 'model'. Set COMPLETION_MODEL")

    if platform == 'openai':
        return OpenAIService(config)
    raise ValueError(f"Unknown platform: {platform}")


class OpenAIService:
    """OpenAI-compatible chat completions client (any base_url speaking the same API)."""

    def __init__(self, config: dict):
        self._config = config
        self.model = config.get('model', 'gpt-3.5-turbo')
        self.base_url = config.get('base_url')
        self.max_tokens = config.get('max_tokens', 150)
        self.temperature = config.get('temperature', 0.9)
        self.timeout = config.get('timeout', 30)
        self.max_retries = config.get('max_retries', 0)

    def send_messages(self, messages: List[dict]) -> LLMResponse:
        """Send a role-tagged message sequence and return the first choice."""
        from openai import OpenAI

        api_key = _resolve_api_key(self._config)
        client = OpenAI(api_key=api_key, base_url=self.base_url, timeout=self.timeout, max_retries=0)

        start_time = time.time()

        def _call():
            return client.chat.completions.create(
                model=self.model,
                messages=messages,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )

        response = _call_with_retry(_call, max_retries=self.max_retries)
        latency_ms = int((time.time() - start_time) * 1000)

        if not getattr(response, 'choices', None):
            raise CompletionError(f"Malformed completion response from {self.base_url}: no choices")

        text = response.choices[0].message.content or ""
        usage = getattr(response, 'usage', None)
        tokens_input = getattr(usage, 'prompt_tokens', None) if usage else None
        tokens_output = getattr(usage, 'completion_tokens', None) if usage else None

        if not text.strip():
            logger.warning(
                f"[OpenAIService] Empty response from model={response.model}, "
                f"finish_reason={response.choices[0].finish_reason}, latency={latency_ms}ms"
            )
            raise CompletionError("Empty completion response")

        logger.info(
            f"[OpenAIService] model={response.model}, "
            f"tokens={tokens_input}+{tokens_output}, "
            f"latency={latency_ms}ms"
        )

        return LLMResponse(
            text=text.strip(),
            model=response.model or self.model,
            provider='openai',
            tokens_input=tokens_input,
            tokens_output=tokens_output,
            latency_ms=latency_ms,
        )
