"""Tests for workers/rest_api_worker.py - runtime wiring shared by the API and sweeper."""

import importlib

import pytest
from unittest.mock import MagicMock, patch

from services.llm_service import LLMResponse


pytestmark = pytest.mark.unit


class TestBuildRuntime:

    def test_app_and_sweeper_share_the_store(self):
        from workers.rest_api_worker import build_runtime

        llm = MagicMock()
        llm.send_messages.return_value = LLMResponse(text="hey", model="test-model")

        app, sweeper = build_runtime(llm=llm)
        app.config['TESTING'] = True

        with app.test_client() as client:
            assert client.post('/ask', json={"question": "hi"}).status_code == 200

        companion = app.extensions['companion']
        assert companion.store is sweeper.store
        assert companion.store.get("127.0.0.1").daily_count == 1
        assert len(sweeper.prompt_bank) > 0

    def test_uses_configured_completion_client(self):
        from workers.rest_api_worker import build_runtime

        with patch('services.llm_service.create_llm_service') as mock_factory:
            app, _ = build_runtime()

        mock_factory.assert_called_once()
        assert app.extensions['companion'].llm is mock_factory.return_value


class TestWorkerEntry:

    def test_starts_sweeper_and_server_then_stops(self):
        worker_module = importlib.import_module("workers.rest_api_worker")

        app = MagicMock()
        sweeper = MagicMock()
        with patch.object(worker_module, 'build_runtime', return_value=(app, sweeper)):
            worker_module.rest_api_worker()

        sweeper.start.assert_called_once()
        app.run.assert_called_once()
        assert app.run.call_args.kwargs['threaded'] is True
        sweeper.stop.assert_called_once()
