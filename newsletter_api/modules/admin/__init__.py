"""
Admin Module
============

Read-only subscriber listing for administrators.

API Endpoints (require X-API-Key header matching ADMIN_API_KEY):
- GET /api/admin/subscribers - active subscribers, most recent first
"""

from flask import Blueprint

admin_bp = Blueprint(
    'admin',
    __name__,
    url_prefix='/api/admin'
)

from . import routes  # noqa: E402,F401

__all__ = ['admin_bp']
