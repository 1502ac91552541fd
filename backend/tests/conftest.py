"""
Shared test fixtures - full sandbox isolation.

No real completion backend is contacted and time only moves via FakeClock.
"""

import random
from unittest.mock import MagicMock

import pytest

from services.companion_service import CompanionService
from services.idle_sweeper_service import IdleSweeperService
from services.llm_service import LLMResponse
from services.prompt_bank_service import PromptBankService
from services.session_policy import SessionPolicy
from services.session_store_service import SessionStore
from tests.helpers import FakeClock, IDLE_MS, SESSION_MAX_MS, DAY_MS, T0


@pytest.fixture
def clock():
    """Deterministic epoch-ms clock anchored at T0."""
    return FakeClock(T0)


@pytest.fixture
def policy():
    return SessionPolicy(daily_limit=20, idle_ms=IDLE_MS, session_max_ms=SESSION_MAX_MS)


@pytest.fixture
def store(policy, clock):
    return SessionStore(policy, clock=clock, eviction_ms=2 * DAY_MS)


@pytest.fixture
def prompt_bank():
    return PromptBankService(["What are you doing right now? 💭"], rng=random.Random(7))


@pytest.fixture
def sweeper(store, policy, prompt_bank, clock):
    return IdleSweeperService(store, policy, prompt_bank, interval_ms=30000, clock=clock)


@pytest.fixture
def mock_llm():
    """Completion client mock - set mock_llm.send_messages.side_effect to simulate failures."""
    mock = MagicMock()
    mock.send_messages.return_value = LLMResponse(
        text='Annyeong! 💜 What are you up to?',
        model='test-model',
        provider='mock',
    )
    return mock


@pytest.fixture
def rng():
    """Random source whose draws never trigger persona reinjection unless overridden."""
    mock = MagicMock()
    mock.random.return_value = 0.99
    return mock


@pytest.fixture
def companion(store, policy, mock_llm, rng, clock):
    return CompanionService(
        store=store,
        policy=policy,
        llm=mock_llm,
        persona="Test persona",
        reinjection_probability=0.2,
        history_tail=3,
        rng=rng,
        clock=clock,
    )


@pytest.fixture
def client(companion):
    """Flask test client with real blueprints and the shared companion service."""
    from api import create_app

    app = create_app(companion)
    app.config['TESTING'] = True
    with app.test_client() as test_client:
        yield test_client
