"""
Error types raised by the calendar core and the service layer.

Views translate these into HTTP responses; nothing here knows about HTTP.
"""


class InvalidRangeError(ValueError):
    """Raised when a booking interval would not span at least one day."""

    def __init__(self, start, end):
        self.start = start
        self.end = end
        super().__init__(
            f'Invalid date range: end ({end}) must be after start ({start}).'
        )


class CalendarServiceError(Exception):
    """Base class for service-layer failures surfaced to the user."""

    default_message = 'Something went wrong. Please try again.'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class PermissionDeniedError(CalendarServiceError):
    default_message = 'You do not have permission to perform this action.'


class RecordNotFoundError(CalendarServiceError):
    default_message = 'Not found.'


class InvalidOperationError(CalendarServiceError):
    default_message = 'This change is not allowed.'


class AccessRequestStateError(InvalidOperationError):
    default_message = 'This access request can no longer be changed.'


class BookingDraftError(InvalidOperationError):
    default_message = 'Enter a name or choose who is staying.'


class DuplicateAccessRequestError(CalendarServiceError):
    default_message = (
        'An access request already exists for this email. '
        'An admin will review it soon.'
    )


class SignInUnavailableError(CalendarServiceError):
    default_message = 'Sign-in is not available for this email. Request access first.'


class AccessInactiveError(SignInUnavailableError):
    default_message = (
        'Access is not active yet. An admin needs to approve this account '
        'before the calendar is available.'
    )


class LoginCodeError(CalendarServiceError):
    """
    A one-time code could not be redeemed.

    ``reason`` is one of ``invalid``, ``expired`` or ``too_many_attempts``.
    """

    MESSAGES = {
        'invalid': 'That code did not work. Try again or request a new code.',
        'expired': 'That code has expired. Request a new code and try again.',
        'too_many_attempts': 'Too many attempts. Request a new code and try again.',
    }

    def __init__(self, reason):
        self.reason = reason
        super().__init__(self.MESSAGES.get(reason))


class LoginCodeDeliveryError(CalendarServiceError):
    default_message = 'We could not send the sign-in email. Please try again in a few minutes.'
