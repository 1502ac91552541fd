"""
Conversation blueprint - /ask, /usage.
"""

import logging
from flask import Blueprint, request, jsonify

from .auth import client_key, get_companion

logger = logging.getLogger(__name__)

conversation_bp = Blueprint('conversation', __name__)

APOLOGY_REPLY = "Oops 😅 I couldn’t reply right now."
QUOTA_REPLY = "We've talked so much today 💜 Let's continue tomorrow, okay?"


@conversation_bp.route('/ask', methods=['POST'])
def ask():
    """
    Send a message and get a reply from the completion backend.

    Request JSON: {"question": "...", "history": [{"role": "...", "content": "..."}]}
    Response JSON: {"reply": "...", "isDry": bool, "systemInjected": bool}
    """
    from services.companion_service import (
        CollaboratorUnavailableError,
        MalformedInputError,
        QuotaExceededError,
    )

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Request body must be a JSON object"}), 400

    key = client_key()
    try:
        result = get_companion().ask(key, data.get("question"), data.get("history"))
    except MalformedInputError as e:
        return jsonify({"error": str(e)}), 400
    except QuotaExceededError as e:
        return jsonify({
            "reply": QUOTA_REPLY,
            "error": "quota_exceeded",
            "used": e.used,
            "left": e.left,
        }), 429
    except CollaboratorUnavailableError:
        return jsonify({"reply": APOLOGY_REPLY}), 500
    except Exception as e:
        logger.error(f"[REST API] /ask failed for {key}: {e}", exc_info=True)
        return jsonify({"reply": APOLOGY_REPLY}), 500

    return jsonify({
        "reply": result.reply,
        "isDry": result.is_dry,
        "systemInjected": result.system_injected,
    }), 200


@conversation_bp.route('/usage', methods=['GET'])
def usage():
    """Today's interaction count and remaining allowance for the caller."""
    return jsonify(get_companion().usage(client_key())), 200
