"""
   业务层异常：携带 HTTP 状态码，由 main.py 的 exception handler 统一转成 {"error": message}
"""


class BookingServiceError(Exception):
    """Base for all booking-domain errors."""
    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationFailed(BookingServiceError):
    """Missing / malformed input."""
    status_code = 400


class NotFound(BookingServiceError):
    """Booking, assignment or token lookup found nothing."""
    status_code = 404


class AlreadyProcessed(BookingServiceError):
    """Cancellation request already handled or booking already cancelled."""
    status_code = 400


class VehicleTypeNotFound(BookingServiceError):
    status_code = 400


class PricingRuleNotFound(BookingServiceError):
    status_code = 404


class DispatchUnavailable(BookingServiceError):
    """Auto-dispatch could not place the booking (already assigned / no vehicle / no driver)."""
    status_code = 409
