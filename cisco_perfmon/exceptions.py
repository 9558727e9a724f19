"""
Custom exceptions for the Cisco Perfmon Client.

This module defines all custom exceptions used throughout the cisco-perfmon
library. All exceptions inherit from PerfmonError for easy catching of
library-specific errors.

Example usage:
    try:
        result = client.collect_counter_data("cucm-pub", "Cisco CallManager")
    except PerfmonRateLimitError as e:
        print(f"Slow down: {e.fault_string}")
    except PerfmonError as e:
        print(f"Perfmon error: {e}")

Author: Charles Marshall
License: MIT
"""

from typing import Any, Optional


class PerfmonError(Exception):
    """
    Base exception for all Cisco Perfmon Client errors.

    Every failed operation surfaces as a subclass of this exception, never as
    a success value. The attributes mirror what a caller needs to report the
    failure without digging into the response.

    Attributes:
        message: Human-readable error message
        status_code: HTTP status code of the failed response, if any
        status_text: Short classification of the failure (fault code, reason)
        context: Request context such as 'host', 'object' and 'session_id'
        details: Optional dictionary with additional error context

    Examples:
        >>> try:
        ...     client.close_session(handle)
        ... except PerfmonFaultError as e:
        ...     print(e.fault_code, e.fault_string)
        ... except PerfmonError as e:
        ...     print(f"Perfmon error: {e}")
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        status_text: str = "",
        context: Optional[dict[str, Any]] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Initialize PerfmonError.

        Args:
            message: Human-readable error message
            status_code: HTTP status code if available
            status_text: Short failure classification
            context: Request context (host, object, session_id)
            details: Optional dictionary with additional error context
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.status_text = status_text
        self.context = context or {}
        self.details = details or {}
        if status_code is not None:
            self.details["status_code"] = status_code

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message


class PerfmonConnectionError(PerfmonError):
    """
    Raised when the server cannot be reached after all retry attempts.

    This exception is raised when:
    - Network connection cannot be established
    - The connection drops mid-request
    - SSL/TLS handshake fails

    Attributes:
        details: May include 'host', 'port', 'error_type', 'original_error'
    """


class PerfmonTimeoutError(PerfmonConnectionError):
    """
    Raised when a caller-configured request timeout is exceeded on every attempt.

    Attributes:
        details: May include 'timeout', 'operation', 'attempts'
    """


class PerfmonHTTPError(PerfmonError):
    """
    Raised for a non-2xx response that carries no parseable SOAP fault.

    Only the HTTP status is known in this case; the body did not contain
    either the expected response element or a Fault structure.
    """


class PerfmonFaultError(PerfmonError):
    """
    Raised when the server answers with a structured SOAP fault.

    Attributes:
        fault_code: The fault code, verbatim unless it was classified
        fault_string: The server's fault message, verbatim
    """

    def __init__(
        self,
        message: str,
        fault_code: str = "",
        fault_string: str = "",
        status_code: Optional[int] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message,
            status_code=status_code,
            status_text=fault_code,
            context=context,
            details={"faultcode": fault_code, "faultstring": fault_string},
        )
        self.fault_code = fault_code
        self.fault_string = fault_string


class PerfmonRateLimitError(PerfmonFaultError):
    """Raised when the server rejects a request through its RateControl policy."""


class PerfmonGeneralExceptionError(PerfmonFaultError):
    """Raised when the server reports a generalException fault."""


class PerfmonParsingError(PerfmonError):
    """
    Raised when a response cannot be turned into a result.

    This exception is raised when:
    - The body is not well-formed XML
    - The SOAP envelope has no Body element
    - A counter entry is missing fields it must carry
    """


class MalformedPathError(PerfmonParsingError):
    """
    Raised when a counter path does not decode into host, object and counter.

    A path needs at least three non-empty backslash-separated segments. A
    shorter one means the server and client disagree on the format, so the
    sample is rejected instead of being partially filled.
    """

    def __init__(self, path: str, context: Optional[dict[str, Any]] = None) -> None:
        super().__init__(
            f"Malformed counter path: {path!r}",
            status_text="MalformedPath",
            context=context,
            details={"path": path},
        )
        self.path = path


class PerfmonConfigurationError(PerfmonError):
    """
    Raised when configuration validation fails.

    This exception is raised when:
    - Required parameters are missing
    - Parameter values are out of valid range
    - An operation is called with arguments it cannot send

    Attributes:
        details: May include 'parameter', 'value'
    """


# Convenience function for wrapping standard exceptions
def wrap_connection_error(original_error: Exception, host: str, port: int) -> PerfmonConnectionError:
    """
    Wrap a standard connection exception in PerfmonConnectionError.

    Args:
        original_error: The original exception
        host: Host that failed to connect
        port: Port that failed to connect

    Returns:
        PerfmonConnectionError (or PerfmonTimeoutError) with context
    """
    import socket

    import requests

    message = f"Failed to connect to {host}:{port}"

    if isinstance(original_error, (socket.timeout, requests.exceptions.Timeout)):
        return PerfmonTimeoutError(
            f"Connection to {host}:{port} timed out",
            status_text="Timeout",
            context={"host": host},
            details={
                "host": host,
                "port": port,
                "timeout_type": type(original_error).__name__,
                "original_error": str(original_error),
            },
        )

    if isinstance(original_error, ConnectionRefusedError):
        message = f"Connection refused by {host}:{port} - perfmon service may be down"

    return PerfmonConnectionError(
        message,
        status_text="ConnectionError",
        context={"host": host},
        details={
            "host": host,
            "port": port,
            "error_type": type(original_error).__name__,
            "original_error": str(original_error),
        },
    )


# Export all exceptions
__all__ = [
    "MalformedPathError",
    "PerfmonConfigurationError",
    "PerfmonConnectionError",
    "PerfmonError",
    "PerfmonFaultError",
    "PerfmonGeneralExceptionError",
    "PerfmonHTTPError",
    "PerfmonParsingError",
    "PerfmonRateLimitError",
    "PerfmonTimeoutError",
    "wrap_connection_error",
]
