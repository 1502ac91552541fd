"""
REST API package - Flask app factory with Blueprint registration.
"""

import logging
from flask import Flask
from flask_cors import CORS


logger = logging.getLogger(__name__)


def create_app(companion, trust_proxy: bool = False):
    """Create and configure Flask application with all blueprints.

    Args:
        companion: CompanionService shared with the idle sweeper
        trust_proxy: Key clients by the first X-Forwarded-For hop
    """
    app = Flask(__name__)
    app.extensions['companion'] = companion
    app.config['TRUST_PROXY'] = trust_proxy

    # CORS - allow all origins (browser widget served from anywhere)
    CORS(app)

    # Register blueprints
    from .system import system_bp
    from .conversation import conversation_bp
    from .proactive import proactive_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(conversation_bp)
    app.register_blueprint(proactive_bp)

    logger.info("[REST API] All blueprints registered")
    return app
