"""
Newsletter Routes
=================

Every request under /api/newsletter passes admission control first;
over-quota requests are answered with 429 and never reach the store.
"""

import logging

from flask import current_app, jsonify, request

from newsletter_api.core.errors import RateLimitExceeded, StorageError, ValidationError
from newsletter_api.core.logging_service import LoggingService
from newsletter_api.core.rate_limit import get_client_ip
from . import newsletter_bp
from .service import Outcome

logger = logging.getLogger(__name__)

MESSAGES = {
    Outcome.CREATED: 'Thank you for subscribing to our newsletter!',
    Outcome.ALREADY_EXISTS: 'You are already subscribed to our newsletter!',
    ValidationError.MISSING_EMAIL: 'Email address is required.',
    ValidationError.INVALID_FORMAT: 'Please provide a valid email address.',
}
STORAGE_FAILURE_MESSAGE = 'Subscription failed. Please try again.'
RATE_LIMIT_MESSAGE = 'Too many subscription attempts, please try again later.'


def _extension(name):
    return current_app.extensions['newsletter_api'][name]


@newsletter_bp.before_request
def enforce_rate_limit():
    """Admission control for the whole blueprint"""
    ip_address = get_client_ip(current_app.config.get('TRUST_PROXY_HEADERS', False))
    _extension('limiter').hit(ip_address)


@newsletter_bp.errorhandler(RateLimitExceeded)
def rate_limited(error):
    LoggingService.warning('newsletter', 'Subscription attempt rate limited',
                           {'client': error.identity, 'retry_after': error.retry_after})
    response = jsonify({'success': False, 'message': RATE_LIMIT_MESSAGE})
    response.status_code = 429
    response.headers['Retry-After'] = str(error.retry_after)
    return response


@newsletter_bp.route('/subscribe', methods=['POST'])
def subscribe():
    """Handle new subscription requests"""
    data = request.get_json(silent=True)
    email = data.get('email') if isinstance(data, dict) else None

    logger.info(f"Subscription attempt: {email}")

    try:
        outcome = _extension('service').subscribe(email)
    except ValidationError as e:
        return jsonify({'success': False, 'message': MESSAGES[e.reason]}), 400
    except StorageError as e:
        LoggingService.log_error_with_traceback('newsletter', e, {'email': email})
        return jsonify({'success': False, 'message': STORAGE_FAILURE_MESSAGE}), 500

    if outcome is Outcome.CREATED:
        LoggingService.info('newsletter', f'New subscriber: {email}')
    else:
        LoggingService.info('newsletter', f'Already subscribed: {email}')

    return jsonify({'success': True, 'message': MESSAGES[outcome]}), 200
