"""
Custom exceptions for the CLOB auth client.

Provides typed exceptions so callers can tell local validation problems,
signing failures and server-side authentication rejections apart.
"""

from typing import Optional, Any


class ClobError(Exception):
    """Base exception for all CLOB client errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(ClobError):
    """Network configuration is missing or unknown."""
    pass


class ValidationError(ClobError):
    """Input validation failed. Raised locally, before any signing."""
    pass


class TickSizeError(ValidationError):
    """Order price violates the market tick size."""

    def __init__(self, message: str, price: Optional[str] = None,
                 tick_size: Optional[str] = None):
        super().__init__(message, {"price": price, "tick_size": tick_size})
        self.price = price
        self.tick_size = tick_size


class SigningError(ClobError):
    """No signer attached, or the cryptographic operation failed."""
    pass


class AuthError(ClobError):
    """Authentication failed or was rejected by the server."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 response: Optional[Any] = None):
        super().__init__(message, {"status_code": status_code, "response": response})
        self.status_code = status_code
        self.response = response


class AuthRequiredError(AuthError):
    """Operation needs a higher auth tier (L1 signer or L2 credentials)."""

    def __init__(self, message: str, required_level: Optional[int] = None):
        super().__init__(message)
        self.required_level = required_level
        self.details["required_level"] = required_level


class StaleAuthError(AuthError):
    """Request timestamp is outside the server's tolerance window."""

    def __init__(self, message: str, timestamp: Optional[int] = None,
                 skew: Optional[int] = None, status_code: Optional[int] = None):
        super().__init__(message, status_code=status_code)
        self.timestamp = timestamp
        self.skew = skew
        self.details.update({"timestamp": timestamp, "skew": skew})


# Transport exceptions
class APIError(ClobError):
    """API request failed."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 response: Optional[Any] = None):
        super().__init__(message, {"status_code": status_code, "response": response})
        self.status_code = status_code
        self.response = response


class RateLimitError(APIError):
    """Rate limit exceeded."""

    def __init__(self, message: str, endpoint: str, retry_after: Optional[float] = None):
        super().__init__(message, status_code=429)
        self.endpoint = endpoint
        self.retry_after = retry_after
        self.details.update({"endpoint": endpoint, "retry_after": retry_after})


class TimeoutError(APIError):
    """Request timed out."""
    pass
