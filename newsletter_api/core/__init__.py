"""
Newsletter API Core
===================

Configuration, storage, admission control and logging shared by the modules.
"""

from .config import Config
from .database import SubscriberStore
from .errors import NewsletterError, RateLimitExceeded, StorageError, ValidationError
from .logging_service import LoggingService
from .rate_limit import SlidingWindowLimiter

__all__ = [
    'Config', 'SubscriberStore', 'SlidingWindowLimiter', 'LoggingService',
    'NewsletterError', 'ValidationError', 'StorageError', 'RateLimitExceeded',
]
