"""
Custom application exceptions
"""

from typing import Optional, Dict, Any


class CinemaSeatsException(Exception):
    """Base exception for the cinema seats application"""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details
            }
        }


class NotFoundError(CinemaSeatsException):
    """Resource not found errors"""

    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} {identifier} not found"
        super().__init__(
            message=message,
            code="NOT_FOUND",
            status_code=404,
            details={"resource": resource, "identifier": identifier} if identifier else {}
        )


class ValidationError(CinemaSeatsException):
    """Validation errors"""

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict] = None):
        details = dict(details or {})
        if field:
            details["field"] = field
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=400,
            details=details
        )


class BookingError(CinemaSeatsException):
    """Seat store failure while applying a booking"""

    def __init__(self, message: str, code: str = "BOOKING_FAILED", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code=code,
            status_code=500,
            details=details
        )


class ExternalServiceError(CinemaSeatsException):
    """External service error"""

    def __init__(self, service: str, message: str = None):
        super().__init__(
            message=message or f"External service {service} is unavailable",
            code="EXTERNAL_SERVICE_ERROR",
            status_code=503,
            details={"service": service}
        )
