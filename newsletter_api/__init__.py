"""
Newsletter API
==============

A small Flask service for newsletter sign-ups:
- Public subscription endpoint with per-client rate limiting
- Health check for uptime monitors
- Admin listing of active subscribers (API key protected)

Usage:
    from newsletter_api import create_app

    app = create_app()
    app.run(port=app.config['PORT'])
"""

import atexit
import logging
import os

from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from .core.config import Config
from .core.database import SubscriberStore
from .core.logging_service import LoggingService
from .core.rate_limit import SlidingWindowLimiter
from .modules.admin import admin_bp
from .modules.health import health_bp
from .modules.newsletter import SubscriptionService, newsletter_bp

__version__ = '0.1.0'

logger = logging.getLogger(__name__)

# Same defaults helmet applies to an Express app
SECURITY_HEADERS = {
    'Content-Security-Policy': "default-src 'self'",
    'Cross-Origin-Resource-Policy': 'same-origin',
    'Referrer-Policy': 'no-referrer',
    'X-Content-Type-Options': 'nosniff',
    'X-Frame-Options': 'SAMEORIGIN',
    'X-XSS-Protection': '0',
}


def _setup_database_dirs(app):
    for key in ('NEWSLETTER_DB', 'LOG_DB'):
        db_dir = os.path.dirname(app.config[key])
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)


def _register_handlers(app):
    @app.after_request
    def set_security_headers(response):
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response

    @app.errorhandler(HTTPException)
    def http_error(error):
        return jsonify({'success': False, 'message': error.description or error.name}), error.code

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'success': False, 'message': 'Not found'}), 404


def create_app(config_overrides=None, store=None):
    """
    Build the Flask app.

    Args:
        config_overrides (dict): values applied on top of Config
        store (SubscriberStore): an already constructed store to use instead of
            opening NEWSLETTER_DB. The caller keeps ownership of an injected store.
    """
    app = Flask(__name__)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    _setup_database_dirs(app)

    if store is None:
        store = SubscriberStore(app.config['NEWSLETTER_DB'], table=app.config['SUBSCRIBERS'])
        atexit.register(store.close)
    store.open()

    limiter = SlidingWindowLimiter(
        max_requests=app.config['RATE_LIMIT_MAX'],
        window=app.config['RATE_LIMIT_WINDOW_SECONDS'],
    )

    app.extensions['newsletter_api'] = {
        'store': store,
        'service': SubscriptionService(store),
        'limiter': limiter,
    }

    origins = app.config['CORS_ORIGINS']
    if isinstance(origins, str) and origins != '*':
        origins = [o.strip() for o in origins.split(',') if o.strip()]
    CORS(app, resources={r'/api/*': {'origins': origins}})

    app.register_blueprint(newsletter_bp)
    app.register_blueprint(health_bp)
    app.register_blueprint(admin_bp)
    _register_handlers(app)

    with app.app_context():
        LoggingService.cleanup_old_logs(app.config['LOG_RETENTION_DAYS'])

    if not app.config.get('ADMIN_API_KEY'):
        logger.warning("ADMIN_API_KEY is not set; /api/admin/subscribers is disabled")

    return app


__all__ = ['create_app', 'Config', 'SubscriberStore', 'SubscriptionService', '__version__']
