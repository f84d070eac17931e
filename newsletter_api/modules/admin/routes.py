import hmac
import logging
from functools import wraps

from flask import current_app, jsonify, request

from newsletter_api.core.errors import StorageError
from newsletter_api.core.logging_service import LoggingService
from . import admin_bp

logger = logging.getLogger(__name__)


def require_admin_key(f):
    """Decorator to require the configured admin API key"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        expected = current_app.config.get('ADMIN_API_KEY')
        if not expected:
            return jsonify({'error': 'Admin access is not configured'}), 403

        api_key = request.headers.get('X-API-Key')
        if not api_key:
            return jsonify({
                'error': 'API key required',
                'message': 'Include X-API-Key header with your request'
            }), 401

        if not hmac.compare_digest(api_key.encode(), expected.encode()):
            LoggingService.warning('admin', 'Rejected admin request with invalid API key')
            return jsonify({
                'error': 'Invalid API key',
                'message': 'The provided API key is invalid'
            }), 401

        return f(*args, **kwargs)

    return decorated_function


@admin_bp.route('/subscribers', methods=['GET'])
@require_admin_key
def list_subscribers():
    """Active subscribers as [{email, subscription_date}], newest first"""
    service = current_app.extensions['newsletter_api']['service']
    try:
        subscribers = service.list_active_subscribers()
    except StorageError as e:
        LoggingService.log_error_with_traceback('admin', e)
        return jsonify({'error': 'Database error'}), 500

    logger.info(f"Listed {len(subscribers)} active subscribers")
    return jsonify(subscribers), 200
