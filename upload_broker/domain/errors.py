"""
Broker Errors

Domain exceptions raised by decoding, configuration, routing, the access
policy and the URL signer, and the error categories that map them onto
protocol error conditions and HTTP ingress responses.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(Enum):
    """Error category enumeration for structured error handling."""

    BAD_REQUEST = "bad_request"
    NOT_ACCEPTABLE = "not_acceptable"
    FORBIDDEN = "forbidden"
    SERVICE_UNAVAILABLE = "service_unavailable"
    INTERNAL_SERVER_ERROR = "internal_server_error"
    INVALID_CONFIGURATION = "invalid_configuration"
    HOST_NOT_FOUND = "host_not_found"
    EXCHANGE_TIMEOUT = "exchange_timeout"
    SYSTEM_ERROR = "system_error"


# Protocol condition and error type for each category that ends up on the wire
PROTOCOL_CONDITIONS: Dict[ErrorCategory, Dict[str, str]] = {
    ErrorCategory.BAD_REQUEST: {"condition": "bad-request", "type": "modify"},
    ErrorCategory.NOT_ACCEPTABLE: {"condition": "not-acceptable", "type": "modify"},
    ErrorCategory.FORBIDDEN: {"condition": "forbidden", "type": "auth"},
    ErrorCategory.SERVICE_UNAVAILABLE: {
        "condition": "service-unavailable",
        "type": "cancel",
    },
    ErrorCategory.INTERNAL_SERVER_ERROR: {
        "condition": "internal-server-error",
        "type": "cancel",
    },
}


# User-friendly error messages for the HTTP ingress
ERROR_MESSAGES: Dict[ErrorCategory, Dict[str, str]] = {
    ErrorCategory.BAD_REQUEST: {
        "title": "Bad Request",
        "message": "The exchange could not be decoded.",
        "action": "Check the envelope fields (id, type, from, to) and try again.",
    },
    ErrorCategory.NOT_ACCEPTABLE: {
        "title": "File Too Large",
        "message": "The declared file size exceeds the service limit.",
        "action": "Upload a smaller file.",
    },
    ErrorCategory.FORBIDDEN: {
        "title": "Access Denied",
        "message": "You are not allowed to request upload slots.",
        "action": "Contact the service administrator.",
    },
    ErrorCategory.SERVICE_UNAVAILABLE: {
        "title": "Service Unavailable",
        "message": "No upload service answers on the requested address.",
        "action": "Check the service address using discovery.",
    },
    ErrorCategory.INTERNAL_SERVER_ERROR: {
        "title": "Internal Server Error",
        "message": "The upload service failed to process the exchange.",
        "action": "Please try again later.",
    },
    ErrorCategory.INVALID_CONFIGURATION: {
        "title": "Invalid Configuration",
        "message": "The supplied module options are invalid.",
        "action": "Fix the reported option and submit the reload again.",
    },
    ErrorCategory.HOST_NOT_FOUND: {
        "title": "Host Not Found",
        "message": "No upload broker is running for this host.",
        "action": "Start the broker for the host before reloading it.",
    },
    ErrorCategory.EXCHANGE_TIMEOUT: {
        "title": "Exchange Timeout",
        "message": "The upload service did not reply in time.",
        "action": "Please try again.",
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
    Base exception for all domain errors.

    Carries the lower-level exception it was raised from, if any.
    """

    def __init__(self, message: str, original_error: Exception = None):
        """
        Initialize domain error.

        Args:
            message: Error message
            original_error: Optional original exception that caused this error
        """
        super().__init__(message)
        self.original_error = original_error


class StanzaDecodeError(DomainError):
    """
    Raised when an inbound exchange or one of its payload elements
    cannot be decoded.
    """
    pass


class InvalidJidError(StanzaDecodeError):
    """Raised when an address is not a well-formed JID."""
    pass


class ConfigurationError(DomainError):
    """
    Raised when module options fail validation.

    Attributes:
        option: Name of the offending option, if known
    """

    def __init__(self, message: str, option: Optional[str] = None,
                 original_error: Exception = None):
        super().__init__(message, original_error)
        self.option = option


class RouteRegistrationError(DomainError):
    """Raised when the router fails to (un)register an endpoint address."""
    pass


class PolicyUnavailableError(DomainError):
    """Raised when the access policy oracle fails or does not answer in time."""
    pass


class SigningError(DomainError):
    """Raised when a presigned URL cannot be produced."""
    pass


# ============================================================================
# Application Layer Exceptions
# ============================================================================

class ApplicationError(Exception):
    """
    Error carrying a category and the user-facing text for it.

    Raised by the supervisor and turned into HTTP ingress responses;
    it never reaches the protocol side.
    """

    def __init__(
        self,
        category: ErrorCategory,
        technical_message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize application error.

        Args:
            category: Error category
            technical_message: Technical error details for logging
            context: Additional context information
        """
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
        """
        Convert error to dictionary for API response.

        Returns:
            Dictionary with error information
        """
        result = {
            "error": self.category.value,
            "title": self.title,
            "message": self.message,
            "action": self.action,
        }
        if self.technical_message:
            result["details"] = self.technical_message
        if self.context:
            result["context"] = self.context
        return result


class HostNotFoundError(ApplicationError):
    """Raised when an operation targets a logical host with no running broker."""

    def __init__(self, host: str):
        super().__init__(
            ErrorCategory.HOST_NOT_FOUND,
            f"No broker running for host {host}",
            {"host": host},
        )
        self.host = host


class HostAlreadyStartedError(ApplicationError):
    """Raised when a broker is started twice for the same logical host."""

    def __init__(self, host: str):
        super().__init__(
            ErrorCategory.SYSTEM_ERROR,
            f"Broker already running for host {host}",
            {"host": host},
        )
        self.host = host


def create_error_response(
    category: ErrorCategory,
    technical_message: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
    status_code: int = 400,
) -> tuple[Dict[str, Any], int]:
    """
    Create a structured error response for API endpoints.

    Args:
        category: Error category
        technical_message: Technical error details
        context: Additional context information
        status_code: HTTP status code

    Returns:
        Tuple of (error_dict, status_code)
    """
    error = ApplicationError(category, technical_message, context)
    return error.to_dict(), status_code
