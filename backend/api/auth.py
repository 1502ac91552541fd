"""
Client identity - sessions are keyed by the caller's network address.

Shared or rotating addresses collide; there is no stronger identity here.
"""

from flask import current_app, request


def client_key() -> str:
    """Session key for the current request."""
    if current_app.config.get('TRUST_PROXY'):
        forwarded = request.headers.get('X-Forwarded-For', '')
        first_hop = forwarded.split(',')[0].strip()
        if first_hop:
            return first_hop
    return request.remote_addr or 'unknown'


def get_companion():
    """The CompanionService registered by create_app()."""
    return current_app.extensions['companion']
