"""
System blueprint - /health endpoint.
"""

import logging

from flask import Blueprint, jsonify

from .auth import get_companion

logger = logging.getLogger(__name__)

system_bp = Blueprint('system', __name__)


@system_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint with the number of tracked sessions."""
    from consumer import APP_VERSION
    return jsonify({
        "status": "ok",
        "version": APP_VERSION,
        "sessions": len(get_companion().store),
    }), 200
