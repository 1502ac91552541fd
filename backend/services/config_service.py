import json
import os
import sys
import logging
from pathlib import Path
from typing import Dict, Any
from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}


def _as_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUTHY


INSTALLED_DATA_DIR = Path("share") / "companion-session-service"


def _resolve_data_root(checkout_root: Path, prefix: str) -> Path:
    """
    Directory holding configs/ and prompts/.

    A source checkout keeps them beside the packages; a wheel install puts them
    under <prefix>/share/companion-session-service.
    """
    if (checkout_root / "configs").is_dir():
        return checkout_root
    return Path(prefix) / INSTALLED_DATA_DIR


class ConfigService:
    DATA_ROOT           = _resolve_data_root(Path(__file__).resolve().parent.parent, sys.prefix)
    CONFIGS_DIR         = DATA_ROOT / "configs"
    PROMPTS_DIR         = DATA_ROOT / "prompts"
    COMPANION_CONFIG    = str(CONFIGS_DIR / "companion.json")
    PROMPT_BANK_FILE    = str(PROMPTS_DIR / "conversation_bank.json")

    @staticmethod
    def load_json(file_path: str) -> Dict[str, Any]:
        """Load JSON configuration file."""
        with open(file_path, 'r') as f:
            return json.load(f)

    @staticmethod
    def load_text(file_path: str) -> str:
        """Load text file content."""
        path = Path(file_path)
        if not path.exists():
            return ""
        return path.read_text(encoding="utf-8").strip()

    @staticmethod
    def _base_config() -> Dict[str, Any]:
        """Load the bundled JSON defaults, or an empty dict when the file is missing."""
        try:
            return ConfigService.load_json(ConfigService.COMPANION_CONFIG)
        except FileNotFoundError:
            logger.warning(f"[ConfigService] {ConfigService.COMPANION_CONFIG} not found, using built-in defaults")
            return {}

    @staticmethod
    def _get_env_or_json(env_key: str, json_value, default=None, value_type=str):
        """
        Get configuration value from environment variable with fallback to JSON.

        Args:
            env_key: Environment variable name
            json_value: Value from JSON config
            default: Default value if neither env nor JSON provide a value
            value_type: Type to convert the value to (str, int, etc.)

        Returns:
            Configuration value from env (priority 1), JSON (priority 2), or default (priority 3)
        """
        env_value = os.getenv(env_key)

        if env_value is not None:
            logger.debug(f"Loading {env_key} from environment: {env_value}")
            try:
                return value_type(env_value)
            except (ValueError, TypeError):
                logger.warning(f"Failed to convert {env_key}={env_value} to {value_type.__name__}, using JSON value")
                return json_value if json_value is not None else default

        if json_value is not None:
            logger.debug(f"Loading {env_key} from JSON: {json_value}")
            return json_value

        logger.debug(f"Loading {env_key} from default: {default}")
        return default

    @staticmethod
    def session() -> Dict[str, Any]:
        """Session bookkeeping thresholds (all durations in milliseconds).

        Supported variables: DAILY_LIMIT, IDLE_MS, SESSION_MAX_MS,
        SWEEP_INTERVAL, SESSION_EVICTION_MS
        """
        base = ConfigService._base_config().get("session", {})
        get = ConfigService._get_env_or_json
        return {
            "daily_limit": get("DAILY_LIMIT", base.get("daily_limit"), 20, value_type=int),
            "idle_ms": get("IDLE_MS", base.get("idle_ms"), 3 * 60 * 1000, value_type=int),
            "session_max_ms": get("SESSION_MAX_MS", base.get("session_max_ms"), 60 * 60 * 1000, value_type=int),
            "sweep_interval_ms": get("SWEEP_INTERVAL", base.get("sweep_interval_ms"), 30 * 1000, value_type=int),
            "eviction_ms": get("SESSION_EVICTION_MS", base.get("eviction_ms"), 2 * 24 * 60 * 60 * 1000, value_type=int),
        }

    @staticmethod
    def conversation() -> Dict[str, Any]:
        """Prompt construction settings for /ask.

        Supported variables: REINJECTION_PROBABILITY, HISTORY_TAIL, PROMPT_BANK_PATH
        """
        base = ConfigService._base_config().get("conversation", {})
        get = ConfigService._get_env_or_json
        return {
            "reinjection_probability": get(
                "REINJECTION_PROBABILITY", base.get("reinjection_probability"), 0.2, value_type=float
            ),
            "history_tail": get("HISTORY_TAIL", base.get("history_tail"), 3, value_type=int),
            "prompt_bank_path": get(
                "PROMPT_BANK_PATH", base.get("prompt_bank_path"), ConfigService.PROMPT_BANK_FILE
            ),
        }

    @staticmethod
    def completion() -> Dict[str, Any]:
        """OpenAI-compatible completion backend settings.

        The credential is read from COMPLETION_API_KEY, falling back to
        ZUKI_API_KEY. It is never stored in the JSON file.
        """
        base = ConfigService._base_config().get("completion", {})
        get = ConfigService._get_env_or_json
        return {
            "platform": base.get("platform", "openai"),
            "base_url": get("COMPLETION_BASE_URL", base.get("base_url"), "https://api.zukijourney.com/v1"),
            "model": get("COMPLETION_MODEL", base.get("model"), "gpt-3.5-turbo"),
            "api_key": os.getenv("COMPLETION_API_KEY") or os.getenv("ZUKI_API_KEY") or "",
            "max_tokens": get("COMPLETION_MAX_TOKENS", base.get("max_tokens"), 150, value_type=int),
            "temperature": get("COMPLETION_TEMPERATURE", base.get("temperature"), 0.9, value_type=float),
            "timeout": get("COMPLETION_TIMEOUT", base.get("timeout"), 30, value_type=float),
            "max_retries": get("COMPLETION_MAX_RETRIES", base.get("max_retries"), 0, value_type=int),
        }

    @staticmethod
    def rest_api() -> Dict[str, Any]:
        """HTTP bind settings. PORT is honoured for platform deployments."""
        base = ConfigService._base_config().get("rest_api", {})
        get = ConfigService._get_env_or_json
        port_default = base.get("port")
        return {
            "host": get("REST_API_HOST", base.get("host"), "0.0.0.0"),
            "port": get("REST_API_PORT", get("PORT", port_default, 3000, value_type=int), 3000, value_type=int),
            "trust_proxy": _as_bool(get("TRUST_PROXY", base.get("trust_proxy"), False)),
        }

    @staticmethod
    def get_prompt(name: str) -> str:
        return ConfigService.load_text(str(ConfigService.PROMPTS_DIR / (name + ".md")))
