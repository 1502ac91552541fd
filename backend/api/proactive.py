"""
Proactive blueprint - /poll endpoint for queued auto messages.
"""

import logging
from flask import Blueprint, jsonify

from .auth import client_key, get_companion

logger = logging.getLogger(__name__)

proactive_bp = Blueprint('proactive', __name__)


@proactive_bp.route('/poll', methods=['GET'])
def poll():
    """Return and clear the caller's queued proactive messages.

    Response JSON: {"messages": [{"type": "auto", "text": "...", "at": "<ISO-8601>"}]}
    """
    key = client_key()
    messages = get_companion().poll(key)
    if messages:
        logger.debug(f"[REST API] Delivered {len(messages)} queued message(s) to {key}")
    return jsonify({"messages": [m.to_dict() for m in messages]}), 200
