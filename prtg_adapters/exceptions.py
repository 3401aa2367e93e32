"""
PRTG Adapter Exceptions - Custom exception hierarchy.

Every failure is surfaced to the immediate caller; nothing here retries.
"""

from datetime import datetime
from typing import Any, Optional


class PRTGAdapterError(Exception):
    """Base exception for all PRTG adapter errors."""

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.method = method
        self.original_error = original_error
        self.context = context or {}
        self.timestamp = datetime.utcnow()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "method": self.method,
            "original_error": str(self.original_error) if self.original_error else None,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        parts = [f"{self.__class__.__name__}: {self.message}"]
        if self.method:
            parts.append(f"[method={self.method}]")
        if self.original_error:
            parts.append(f"(caused by: {self.original_error})")
        return " ".join(parts)


class TransportError(PRTGAdapterError):
    """Non-2xx response or network failure from the transport."""

    def __init__(
        self,
        status_code: Optional[int] = None,
        status_text: str = "",
        method: Optional[str] = None,
        request_url: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(f"{status_code}: {status_text}", method, original_error, context)
        self.status_code = status_code
        self.status_text = status_text
        self.request_url = request_url

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "status_code": self.status_code,
            "status_text": self.status_text,
            "request_url": self.request_url,
        })
        return data

    def is_server_error(self) -> bool:
        """Check if error is server-side."""
        return self.status_code is not None and 500 <= self.status_code < 600

    def is_client_error(self) -> bool:
        """Check if error is client-side."""
        return self.status_code is not None and 400 <= self.status_code < 500


class NoDataError(PRTGAdapterError):
    """Response contained no body at all."""

    def __init__(
        self,
        message: str = "Response contained no data",
        method: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, method, context=context)


class DataInsufficientError(PRTGAdapterError):
    """PRTG reported "Not enough monitoring data" for the request."""

    def __init__(
        self,
        params: str,
        method: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            f"Not enough monitoring data.\n\nRequest:\n{params}\n",
            method,
            context=context,
        )
        self.params = params

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["params"] = self.params
        return data


class NormalizationError(PRTGAdapterError):
    """Response payload could not be turned into structured data."""

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        raw_data: Optional[Any] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, method, original_error, context)
        self.raw_data = raw_data

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["raw_data"] = str(self.raw_data)[:500] if self.raw_data else None  # Truncate
        return data


class ConfigurationError(PRTGAdapterError):
    """Invalid or missing client configuration."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, None, original_error, context)
        self.config_key = config_key

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["config_key"] = self.config_key
        return data
