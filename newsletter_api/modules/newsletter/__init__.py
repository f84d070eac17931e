"""
Newsletter Module
=================

Provides:
- POST /api/newsletter/subscribe -- subscribe an email (rate limited per client)

The SubscriptionService is exported for use outside of HTTP handlers.
"""

from flask import Blueprint

newsletter_bp = Blueprint(
    'newsletter',
    __name__,
    url_prefix='/api/newsletter'
)

from .service import Outcome, SubscriptionService, validate_email  # noqa: E402
from . import routes  # noqa: E402,F401

__all__ = ['newsletter_bp', 'Outcome', 'SubscriptionService', 'validate_email']
