"""
Error taxonomy for the finance tracker.

Every error carries the HTTP status it maps to and a user-facing message.
The server turns these into ``{"error": message, "code": ClassName}`` bodies;
the client maps ``code`` back to the same classes.
"""

from typing import Dict, Optional, Type


class FinanceTrackerError(Exception):
    """Base class for all finance tracker errors"""
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class AuthenticationError(FinanceTrackerError):
    """
    Raised when a project name / password pair does not match.

    The message is identical for unknown projects and wrong passwords.
    """
    status_code = 401
    default_message = "Invalid project name or password"


class AccessDeniedError(FinanceTrackerError):
    """Raised by the session guard when a client-held token does not admit access"""
    status_code = 403
    default_message = "Access denied"


class InvalidAmountError(FinanceTrackerError):
    status_code = 400
    default_message = "Invalid amount"


class OrderCreationError(FinanceTrackerError):
    status_code = 500
    default_message = "Failed to create order"


class SignatureVerificationError(FinanceTrackerError):
    status_code = 400
    default_message = "Payment verification failed"


class ProjectNotFoundError(FinanceTrackerError):
    status_code = 404
    default_message = "Project not found"


class RecordNotFoundError(FinanceTrackerError):
    status_code = 404
    default_message = "Record not found"


class InvalidRecordError(FinanceTrackerError):
    status_code = 400
    default_message = "Invalid record"


class FinancialPrecisionError(InvalidRecordError):
    """Raised when a value cannot be interpreted as money"""
    default_message = "Invalid amount"


class NegativeValueError(InvalidRecordError):
    """Raised when a negative financial value is detected"""
    default_message = "Amount cannot be negative"


class PersistenceError(FinanceTrackerError):
    """
    Raised when a database operation fails.

    After a verified payment this leaves a paid-but-unrecorded contribution;
    nothing reconciles it automatically.
    """
    status_code = 500
    default_message = "Failed to store record"


class NetworkError(FinanceTrackerError):
    """Transport failure between the client and the server"""
    status_code = 503
    default_message = "Network error. Please try again."


ERRORS_BY_CODE: Dict[str, Type[FinanceTrackerError]] = {
    cls.__name__: cls
    for cls in (
        AuthenticationError,
        AccessDeniedError,
        InvalidAmountError,
        OrderCreationError,
        SignatureVerificationError,
        ProjectNotFoundError,
        RecordNotFoundError,
        InvalidRecordError,
        FinancialPrecisionError,
        NegativeValueError,
        PersistenceError,
        NetworkError,
    )
}


def error_from_response(status_code: int, body: Optional[dict]) -> FinanceTrackerError:
    """Rebuild the server-side error from an ``{error, code}`` response body"""
    body = body or {}
    message = body.get("error")
    if not message and isinstance(body.get("detail"), str):
        message = body["detail"]

    error_cls = ERRORS_BY_CODE.get(body.get("code") or "")
    if error_cls is None:
        error = FinanceTrackerError(message or f"Request failed with status {status_code}")
        error.status_code = status_code
        return error
    return error_cls(message)
