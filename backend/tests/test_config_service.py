"""Tests for ConfigService - env overrides over bundled JSON defaults."""

import pytest
from unittest.mock import patch

from services.companion_service import DEFAULT_PERSONA
from services.config_service import ConfigService, _resolve_data_root


pytestmark = pytest.mark.unit

_ENV_KEYS = [
    "DAILY_LIMIT", "IDLE_MS", "SESSION_MAX_MS", "SWEEP_INTERVAL", "SESSION_EVICTION_MS",
    "REINJECTION_PROBABILITY", "HISTORY_TAIL", "PROMPT_BANK_PATH",
    "COMPLETION_BASE_URL", "COMPLETION_MODEL", "COMPLETION_API_KEY", "ZUKI_API_KEY",
    "COMPLETION_MAX_TOKENS", "COMPLETION_TEMPERATURE", "COMPLETION_TIMEOUT", "COMPLETION_MAX_RETRIES",
    "REST_API_HOST", "REST_API_PORT", "PORT", "TRUST_PROXY",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


class TestDefaults:

    def test_session_defaults(self):
        assert ConfigService.session() == {
            "daily_limit": 20,
            "idle_ms": 180000,
            "session_max_ms": 3600000,
            "sweep_interval_ms": 30000,
            "eviction_ms": 172800000,
        }

    def test_conversation_defaults(self):
        config = ConfigService.conversation()
        assert config["reinjection_probability"] == 0.2
        assert config["history_tail"] == 3
        assert config["prompt_bank_path"] == ConfigService.PROMPT_BANK_FILE

    def test_completion_defaults(self):
        config = ConfigService.completion()
        assert config["model"] == "gpt-3.5-turbo"
        assert config["max_tokens"] == 150
        assert config["temperature"] == 0.9
        assert config["base_url"] == "https://api.zukijourney.com/v1"
        assert config["api_key"] == ""

    def test_built_in_defaults_without_json(self):
        with patch.object(ConfigService, 'load_json', side_effect=FileNotFoundError):
            assert ConfigService.session()["daily_limit"] == 20
            assert ConfigService.rest_api()["port"] == 3000

    def test_persona_prompt_is_bundled(self):
        assert "Jungkook" in ConfigService.get_prompt("persona")

    def test_built_in_persona_matches_bundled_file(self):
        assert ConfigService.get_prompt("persona") == DEFAULT_PERSONA


class TestEnvironmentOverrides:

    def test_env_wins_over_json(self, monkeypatch):
        monkeypatch.setenv("DAILY_LIMIT", "5")
        monkeypatch.setenv("IDLE_MS", "1000")
        monkeypatch.setenv("REINJECTION_PROBABILITY", "0.5")

        assert ConfigService.session()["daily_limit"] == 5
        assert ConfigService.session()["idle_ms"] == 1000
        assert ConfigService.conversation()["reinjection_probability"] == 0.5

    def test_bad_env_value_falls_back_to_json(self, monkeypatch):
        monkeypatch.setenv("DAILY_LIMIT", "lots")
        assert ConfigService.session()["daily_limit"] == 20

    def test_api_key_sources(self, monkeypatch):
        monkeypatch.setenv("ZUKI_API_KEY", "zuki-key")
        assert ConfigService.completion()["api_key"] == "zuki-key"

        monkeypatch.setenv("COMPLETION_API_KEY", "primary-key")
        assert ConfigService.completion()["api_key"] == "primary-key"

    def test_port_env(self, monkeypatch):
        monkeypatch.setenv("PORT", "8123")
        assert ConfigService.rest_api()["port"] == 8123

        monkeypatch.setenv("REST_API_PORT", "9000")
        assert ConfigService.rest_api()["port"] == 9000

    @pytest.mark.parametrize("raw,expected", [("true", True), ("1", True), ("no", False), ("", False)])
    def test_trust_proxy_parsing(self, monkeypatch, raw, expected):
        monkeypatch.setenv("TRUST_PROXY", raw)
        assert ConfigService.rest_api()["trust_proxy"] is expected


class TestDataRoot:

    def test_checkout_layout_is_used_when_present(self, tmp_path):
        (tmp_path / "configs").mkdir()
        assert _resolve_data_root(tmp_path, "/usr/local") == tmp_path

    def test_installed_layout_falls_back_to_prefix_share(self, tmp_path):
        prefix = tmp_path / "venv"
        assert _resolve_data_root(tmp_path / "site-packages", str(prefix)) == (
            prefix / "share" / "companion-session-service"
        )

    def test_checkout_resolves_to_bundled_files(self):
        assert (ConfigService.CONFIGS_DIR / "companion.json").is_file()
        assert (ConfigService.PROMPTS_DIR / "persona.md").is_file()
