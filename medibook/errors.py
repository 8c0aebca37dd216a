"""
Error kinds raised by the booking services.

Routes never build error responses for these themselves: the handler
registered in ``create_app`` renders any ``BookingError`` as the usual
``{'success': False, 'error': ...}`` envelope with ``status_code``.
"""


class BookingError(Exception):
    status_code = 400

    def __init__(self, message, status_code=None, payload=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.payload = payload or {}

    def to_dict(self):
        body = {'success': False, 'error': self.message}
        body.update(self.payload)
        return body


class ValidationError(BookingError):
    """Missing or invalid required field."""
    status_code = 400


class NotFoundError(BookingError):
    """Referenced entity is absent (or not owned by the caller)."""
    status_code = 404


class UnauthorizedError(BookingError):
    """Caller's role does not match the acting party."""
    status_code = 403


class TransientStoreError(BookingError):
    """Persistence failure; safe to retry."""
    status_code = 503


class SlotUnavailableError(ValidationError):
    status_code = 409

    def __init__(self, message='This time slot is no longer available. Please choose another time.'):
        super().__init__(message)


class InvalidTransitionError(ValidationError):
    status_code = 409


class DraftMissingError(NotFoundError):
    def __init__(self, message='Booking data not found. Please start over.'):
        super().__init__(message, payload={'next': 'search'})
