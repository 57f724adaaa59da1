"""
Common exception classes for gemini-bridge.

Every failure inside the adapter is surfaced as one of these types so callers
can tell "fix your credentials" apart from "the provider rejected the request"
and "not supported yet".
"""

from __future__ import annotations


class GeminiBridgeError(Exception):
    """Base exception class for all gemini-bridge errors."""

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        *,
        status_code: int | None = None,
        **kwargs,
    ):
        """Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error details
            status_code: Optional HTTP status code hint for callers
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.status_code = status_code or 500
        for key, value in (kwargs or {}).items():
            setattr(self, key, value)

    def to_dict(self) -> dict:
        error_dict = {
            "message": self.message,
            "type": self.__class__.__name__,
            "details": self.details,
        }

        # Include any additional attributes that were set via kwargs
        for attr_name in dir(self):
            if (
                not attr_name.startswith("_")
                and attr_name not in ["message", "details", "status_code", "args"]
                and not callable(getattr(self, attr_name))
            ):
                error_dict[attr_name] = getattr(self, attr_name)

        return {"error": error_dict}


class AuthenticationError(GeminiBridgeError):
    """Raised when no usable credential can be produced for a request."""

    def __init__(
        self,
        message: str = "Authentication failed",
        details: dict | None = None,
        **kwargs,
    ):
        super().__init__(message, details, status_code=401, **kwargs)


class OAuthRefreshError(GeminiBridgeError):
    """Raised by the OAuth client when a refresh grant cannot be completed."""

    def __init__(
        self,
        message: str = "OAuth token refresh failed",
        provider_id: str | None = None,
        details: dict | None = None,
        **kwargs,
    ):
        super().__init__(message, details, status_code=401, **kwargs)
        self.provider_id = provider_id


class TransformError(GeminiBridgeError):
    """Raised when a request or response cannot be mapped between schemas."""

    def __init__(
        self,
        message: str = "Transformation failed",
        details: dict | None = None,
        **kwargs,
    ):
        status_code = kwargs.pop("status_code", 422)
        super().__init__(message, details, status_code=status_code, **kwargs)


class UpstreamResponseError(TransformError):
    """Raised when the provider response has an unusable shape."""

    def __init__(
        self,
        message: str = "Unexpected upstream response shape",
        details: dict | None = None,
        **kwargs,
    ):
        super().__init__(message, details, status_code=502, **kwargs)


class ParsingError(GeminiBridgeError):
    """Raised when parsing fails."""

    def __init__(
        self, message: str = "Parsing failed", details: dict | None = None, **kwargs
    ):
        super().__init__(message, details, status_code=422, **kwargs)


class DeserializationError(ParsingError):
    """Raised when a provider body is not a valid generateContent response."""

    def __init__(
        self,
        message: str = "Failed to deserialize provider response",
        details: dict | None = None,
        **kwargs,
    ):
        super().__init__(message, details, **kwargs)


class BackendError(GeminiBridgeError):
    """Raised when a backend operation fails."""

    def __init__(
        self,
        message: str = "Backend operation failed",
        backend_name: str | None = None,
        details: dict | None = None,
        **kwargs,
    ):
        status_code = kwargs.pop("status_code", 502)
        super().__init__(message, details, status_code=status_code, **kwargs)
        self.backend_name = backend_name


class ApiError(BackendError):
    """Raised when the provider answers with a non-success HTTP status."""

    def __init__(
        self,
        status_code: int,
        body: str,
        backend_name: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(
            f"Gemini API error ({status_code}): {body}",
            backend_name=backend_name,
            details=details,
            status_code=status_code,
        )
        self.body = body


class APIConnectionError(BackendError):
    def __init__(
        self,
        message: str = "API connection error",
        details: dict | None = None,
        **kwargs,
    ):
        super().__init__(message, backend_name=None, details=details, **kwargs)


class ConfigurationError(GeminiBridgeError):
    """Raised when there's a configuration issue or an unsupported operation."""

    def __init__(
        self,
        message: str = "Configuration error",
        details: dict | None = None,
        **kwargs,
    ):
        super().__init__(message, details, status_code=400, **kwargs)
