"""
Error taxonomy for the subscription service.

Duplicate subscriptions are not errors; see ``Outcome.ALREADY_EXISTS``.
"""


class NewsletterError(Exception):
    """Base class for errors handled at the request boundary"""


class ValidationError(NewsletterError):
    """Client-supplied email is missing or malformed"""

    MISSING_EMAIL = 'missing email'
    INVALID_FORMAT = 'invalid format'

    def __init__(self, reason):
        super().__init__(reason)
        self.reason = reason


class StorageError(NewsletterError):
    """Backing store unavailable or a store operation failed"""


class RateLimitExceeded(NewsletterError):
    """Admission control rejected the request before it reached the service"""

    def __init__(self, identity, retry_after):
        super().__init__(f"rate limit exceeded for {identity}")
        self.identity = identity
        self.retry_after = retry_after
