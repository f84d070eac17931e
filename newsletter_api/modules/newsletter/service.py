"""
Subscription intake and listing, independent of HTTP.
"""

import enum
import re

from newsletter_api.core.errors import ValidationError

# Local part uses the RFC 5322 atext set; rejects consecutive dots,
# leading/trailing dots and bare hosts
EMAIL_ATEXT = r"[a-zA-Z0-9!#$%&'*+/=?^_`{|}~-]"
EMAIL_REGEX = re.compile(
    rf'^{EMAIL_ATEXT}+(\.{EMAIL_ATEXT}+)*@[a-zA-Z0-9-]+(\.[a-zA-Z0-9-]+)*\.[a-zA-Z]{{2,}}$'
)
MAX_EMAIL_LENGTH = 255


class Outcome(enum.Enum):
    CREATED = 'created'
    ALREADY_EXISTS = 'already_exists'


def validate_email(email):
    """Raise ValidationError unless email is present and well formed"""
    # null, false, 0 and "" all count as no email given
    if email is None or email is False or email == '' or (type(email) in (int, float) and email == 0):
        raise ValidationError(ValidationError.MISSING_EMAIL)
    if not isinstance(email, str) or len(email) > MAX_EMAIL_LENGTH:
        raise ValidationError(ValidationError.INVALID_FORMAT)
    if EMAIL_REGEX.match(email) is None:
        raise ValidationError(ValidationError.INVALID_FORMAT)
    return email


class SubscriptionService:
    """Newsletter subscriptions backed by an injected SubscriberStore"""

    def __init__(self, store):
        self.store = store

    def subscribe(self, email):
        """
        Subscribe an email exactly as provided.

        Returns Outcome.CREATED for a new subscriber and Outcome.ALREADY_EXISTS
        when the email was already stored. Raises ValidationError for missing
        or malformed input and StorageError when the store fails.
        """
        validate_email(email)

        if self.store.insert_if_absent(email):
            return Outcome.CREATED
        return Outcome.ALREADY_EXISTS

    def list_active_subscribers(self):
        return self.store.list_active()
