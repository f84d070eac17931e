from datetime import datetime, timezone

from flask import current_app, jsonify

from . import health_bp


def build_health_payload():
    """Fixed status payload plus the current UTC time"""
    return {
        'status': 'OK',
        'message': current_app.config.get('SERVICE_BANNER', 'Newsletter API is running'),
        'timestamp': datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z'),
    }


@health_bp.route('')
@health_bp.route('/')
def health_check():
    """Public health endpoint for uptime monitors."""
    return jsonify(build_health_payload()), 200
