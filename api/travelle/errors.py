"""
Custom exceptions and error handling for Travelle.

Every application error carries an ErrorCode. The API layer maps codes to
HTTP statuses and answers with the user-facing message, never the internal one.

Usage:
    from travelle.errors import InvalidCredentials

    raise InvalidCredentials("No user for email")
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for client-facing error messages."""

    # Authentication errors
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"

    # Registration errors
    DUPLICATE_EMAIL = "DUPLICATE_EMAIL"
    DUPLICATE_USERNAME = "DUPLICATE_USERNAME"

    # Storage errors
    DATA_ACCESS_FAILURE = "DATA_ACCESS_FAILURE"
    STORAGE_CORRUPTION = "STORAGE_CORRUPTION"
    VERSION_CONFLICT = "VERSION_CONFLICT"

    # Email errors
    EMAIL_DISPATCH_FAILURE = "EMAIL_DISPATCH_FAILURE"

    # System errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


USER_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INVALID_CREDENTIALS: "Incorrect email or password.",
    ErrorCode.NOT_AUTHENTICATED: "You need to sign in to continue.",
    ErrorCode.DUPLICATE_EMAIL: "This email address is already registered.",
    ErrorCode.DUPLICATE_USERNAME: "This username is already taken.",
    ErrorCode.DATA_ACCESS_FAILURE: "We could not reach our data right now. Please try again.",
    ErrorCode.STORAGE_CORRUPTION: "Your saved data could not be read and has been reset.",
    ErrorCode.VERSION_CONFLICT: "Your trip lists were changed elsewhere. Reload them and try again.",
    ErrorCode.EMAIL_DISPATCH_FAILURE: "The email could not be sent. Please try again later.",
    ErrorCode.INTERNAL_ERROR: "An unexpected error occurred. Please try again.",
}

HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.INVALID_CREDENTIALS: 401,
    ErrorCode.NOT_AUTHENTICATED: 401,
    ErrorCode.DUPLICATE_EMAIL: 409,
    ErrorCode.DUPLICATE_USERNAME: 409,
    ErrorCode.DATA_ACCESS_FAILURE: 503,
    ErrorCode.STORAGE_CORRUPTION: 500,
    ErrorCode.VERSION_CONFLICT: 409,
    ErrorCode.EMAIL_DISPATCH_FAILURE: 502,
    ErrorCode.INTERNAL_ERROR: 500,
}


class TravelleError(Exception):
    """Base exception for all Travelle errors."""

    default_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str = "", code: ErrorCode | None = None):
        self.code = code or self.default_code
        self.message = message or self.code.value
        super().__init__(self.message)

    @property
    def user_message(self) -> str:
        return USER_MESSAGES.get(self.code, USER_MESSAGES[ErrorCode.INTERNAL_ERROR])

    @property
    def status_code(self) -> int:
        return HTTP_STATUS.get(self.code, 500)


class InvalidCredentials(TravelleError):
    """Unknown email or wrong password."""

    default_code = ErrorCode.INVALID_CREDENTIALS


class DuplicateEmail(TravelleError):
    default_code = ErrorCode.DUPLICATE_EMAIL


class DuplicateUsername(TravelleError):
    default_code = ErrorCode.DUPLICATE_USERNAME


class NotAuthenticated(TravelleError):
    """No valid session for an operation that requires one."""

    default_code = ErrorCode.NOT_AUTHENTICATED


class DataAccessFailure(TravelleError):
    """Any SQL or key-value storage error."""

    default_code = ErrorCode.DATA_ACCESS_FAILURE


class StorageCorruption(TravelleError):
    """Stored document could not be parsed; callers reset to an empty state."""

    default_code = ErrorCode.STORAGE_CORRUPTION


class VersionConflict(TravelleError):
    """Stored document changed since it was loaded."""

    default_code = ErrorCode.VERSION_CONFLICT


class EmailDispatchFailure(TravelleError):
    default_code = ErrorCode.EMAIL_DISPATCH_FAILURE
