"""
REST API Worker - Flask server entry point.

Builds the shared session store, starts the idle sweeper thread and runs the
Flask app on the configured host/port. Sessions are in-memory, so the server
and the sweeper must live in the same process.
"""

import sys
import logging
from services.config_service import ConfigService


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def build_runtime(llm=None):
    """
    Wire config, store, policy, prompt bank, companion service and sweeper.

    Args:
        llm: Optional completion client (defaults to create_llm_service(config))

    Returns:
        (app, sweeper) - the sweeper is not started yet
    """
    from api import create_app
    from services.companion_service import CompanionService, DEFAULT_PERSONA
    from services.idle_sweeper_service import IdleSweeperService
    from services.llm_service import create_llm_service
    from services.prompt_bank_service import PromptBankService
    from services.session_policy import SessionPolicy
    from services.session_store_service import SessionStore

    session_config = ConfigService.session()
    conversation_config = ConfigService.conversation()
    completion_config = ConfigService.completion()
    api_config = ConfigService.rest_api()

    if not completion_config.get("api_key"):
        logger.warning("[REST API] No completion API key set; /ask will answer with the apology reply")

    policy = SessionPolicy.from_config(session_config)
    store = SessionStore(policy, eviction_ms=session_config["eviction_ms"])
    prompt_bank = PromptBankService.from_file(conversation_config["prompt_bank_path"])

    persona = ConfigService.get_prompt("persona")
    if not persona:
        logger.warning("[REST API] prompts/persona.md missing, using built-in persona")

    companion = CompanionService(
        store=store,
        policy=policy,
        llm=llm or create_llm_service(completion_config),
        persona=persona or DEFAULT_PERSONA,
        reinjection_probability=conversation_config["reinjection_probability"],
        history_tail=conversation_config["history_tail"],
    )
    sweeper = IdleSweeperService(
        store=store,
        policy=policy,
        prompt_bank=prompt_bank,
        interval_ms=session_config["sweep_interval_ms"],
    )

    app = create_app(companion, trust_proxy=api_config["trust_proxy"])
    return app, sweeper


def rest_api_worker():
    """
    Main entry point for REST API worker.

    Can be run standalone: python -m workers.rest_api_worker
    Or via consumer.py.
    """
    sweeper = None
    try:
        logger.info("[REST API] Starting REST API worker...")

        api_config = ConfigService.rest_api()
        host = api_config['host']
        port = api_config['port']

        app, sweeper = build_runtime()
        sweeper.start()

        logger.info(f"[REST API] Starting Flask server on {host}:{port}")
        logger.info("[REST API] Endpoints: POST /ask  GET /poll  GET /usage  GET /health")

        app.run(host=host, port=port, debug=False, threaded=True)

    except KeyboardInterrupt:
        logger.info("[REST API] Shutting down...")
    except Exception as e:
        logger.error(f"[REST API] Fatal error: {e}", exc_info=True)
        sys.exit(1)
    finally:
        if sweeper is not None:
            sweeper.stop(timeout=5)


if __name__ == "__main__":
    rest_api_worker()
