# appointly/core/exceptions.py
"""Booking error taxonomy shared by services and the HTTP layer"""


class BookingError(Exception):
    """Base class for every failure the booking engine reports to callers"""

    error_code = "booking_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InputValidationError(BookingError, ValueError):
    """Malformed date, time, duration or booking payload"""

    error_code = "invalid_input"


class InvalidDurationError(InputValidationError):
    """Slot step or service duration is zero or negative"""


class BusinessNotConfiguredError(BookingError):
    error_code = "not_configured"

    def __init__(self, business_id):
        super().__init__(f"Business {business_id} has no booking settings")
        self.business_id = business_id


class NotFoundError(BookingError):
    error_code = "not_found"


class ConflictError(BookingError):
    """The requested slot is no longer free; the client should re-fetch availability"""

    error_code = "conflict"


class ConfirmationExpiredError(BookingError):
    error_code = "confirmation_expired"


class InvalidStatusTransitionError(BookingError):
    error_code = "invalid_status_transition"

    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot move appointment from '{current}' to '{requested}'")
        self.current = current
        self.requested = requested


class PersistenceError(BookingError):
    """Store-level failure; the caller may try again later"""

    error_code = "persistence_error"
