"""
Error Handling Module

Token, storage, mail and configuration failures as domain exceptions, and
the category table that turns them into uniform JSON error bodies.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(Enum):
    """Categories that select the user-facing error body."""

    INVALID_RESOURCE = "invalid_resource"
    TOKEN_REJECTED = "token_rejected"
    FORBIDDEN_ORIGIN = "forbidden_origin"
    ASSET_ABSENT = "asset_absent"
    CONFIGURATION_ERROR = "configuration_error"
    UPSTREAM_TRANSIENT = "upstream_transient"
    INVALID_REQUEST = "invalid_request"
    SYSTEM_ERROR = "system_error"


# User-facing messages. Token rejections share one message so the client
# cannot tell which check failed.
ERROR_MESSAGES: Dict[ErrorCategory, Dict[str, str]] = {
    ErrorCategory.INVALID_RESOURCE: {
        "title": "Unknown Sample",
        "message": "The requested preview sample does not exist.",
        "action": "Pick one of the samples listed on the sounds page.",
    },
    ErrorCategory.TOKEN_REJECTED: {
        "title": "Link Expired or Invalid",
        "message": "This link has expired or is not valid.",
        "action": "Request a new link and try again.",
    },
    ErrorCategory.FORBIDDEN_ORIGIN: {
        "title": "Forbidden",
        "message": "This resource can only be played from the official site.",
        "action": "Open the sounds page on the official site.",
    },
    ErrorCategory.ASSET_ABSENT: {
        "title": "File Not Found",
        "message": "The requested file is not available right now.",
        "action": "Please try again later or contact support.",
    },
    ErrorCategory.CONFIGURATION_ERROR: {
        "title": "Service Misconfigured",
        "message": "The service is not configured to issue this link.",
        "action": "Please contact support.",
    },
    ErrorCategory.UPSTREAM_TRANSIENT: {
        "title": "Storage Unavailable",
        "message": "A storage backend could not be reached.",
        "action": "Please try again later.",
    },
    ErrorCategory.INVALID_REQUEST: {
        "title": "Invalid Request",
        "message": "The request is missing required information or contains invalid data.",
        "action": "Please check your input and try again.",
    },
    ErrorCategory.SYSTEM_ERROR: {
        "title": "System Error",
        "message": "An unexpected error occurred while processing your request.",
        "action": "Please try again later. If the problem persists, contact support.",
    },
}


# ============================================================================
# Domain Exceptions
# ============================================================================

class DomainError(Exception):
    """
    Root of the token, storage and mail exceptions.

    original_error keeps the client library exception, if any.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.original_error = original_error


class InvalidResourceError(DomainError):
    """Raised when a preview is requested for a name outside the allow-list."""
    pass


class ConfigurationError(DomainError):
    """
    Raised when a required secret or setting is missing.

    Token services raise this instead of ever producing an unsigned token.
    """
    pass


class RejectionReason(Enum):
    """Internal reason a capability token was rejected. Logged, never returned."""

    MALFORMED = "malformed"
    BAD_SIGNATURE = "bad_signature"
    EXPIRED = "expired"
    RESOURCE_MISMATCH = "resource_mismatch"


class TokenRejectedError(DomainError):
    """
    Raised when a capability token fails verification.

    The reason is kept for logging; HTTP responses never expose it.
    """

    def __init__(self, reason: RejectionReason, message: Optional[str] = None):
        super().__init__(message or f"Token rejected: {reason.value}")
        self.reason = reason


class StorageTierError(DomainError):
    """
    Raised by a storage tier for any failure other than "key not found".

    Covers network errors, timeouts, bad credentials and malformed responses.
    The resolver treats it as a signal to try the next tier.
    """

    def __init__(self, tier_name: str, message: str, original_error: Optional[Exception] = None):
        super().__init__(f"[{tier_name}] {message}", original_error)
        self.tier_name = tier_name


class MailDeliveryError(DomainError):
    """Raised by a mail transport when a message could not be delivered."""
    pass


# ============================================================================
# Application Layer Exceptions
# ============================================================================

class ApplicationError(Exception):
    """Error carrying a category, its user-facing text and optional context."""

    def __init__(
        self,
        category: ErrorCategory,
        technical_message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.category = category
        self.technical_message = technical_message or ""
        self.context = context or {}

        error_info = ERROR_MESSAGES.get(
            category, ERROR_MESSAGES[ErrorCategory.SYSTEM_ERROR]
        )
        self.title = error_info["title"]
        self.message = error_info["message"]
        self.action = error_info["action"]

        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """JSON body for the category; technical details are not included."""
        return {
            "error": self.category.value,
            "title": self.title,
            "message": self.message,
            "action": self.action,
        }


def create_error_response(
    category: ErrorCategory,
    technical_message: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
    status_code: int = 400,
) -> tuple[Dict[str, Any], int]:
    """
    Create a structured error response for API endpoints.

    The technical message is accepted for symmetry with logging call sites
    but is never included in the response body.

    Args:
        category: Error category
        technical_message: Technical error details for logging
        context: Additional context information
        status_code: HTTP status code

    Returns:
        Tuple of (error_dict, status_code)
    """
    error = ApplicationError(category, technical_message, context)
    return error.to_dict(), status_code
