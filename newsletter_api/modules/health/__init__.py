"""
Health Module
=============

Public liveness endpoint for uptime monitors (no auth, never touches the store).

Usage:
    from newsletter_api.modules.health import health_bp
    app.register_blueprint(health_bp)  # Registers at /api/health
"""

from flask import Blueprint

health_bp = Blueprint(
    'health',
    __name__,
    url_prefix='/api/health'
)

from . import routes  # noqa: E402,F401

__all__ = ['health_bp']
