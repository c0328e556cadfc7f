"""Exception taxonomy for the query admission and execution pipeline."""

from __future__ import annotations

from typing import Optional, Sequence


class GatewayError(Exception):
    """Base class for errors raised by the gateway."""


class ConfigurationError(GatewayError):
    """A required setting is missing or malformed. Fatal at startup."""


class QueryDenied(GatewayError):
    """The admission policy refused to run a query."""

    def __init__(
        self,
        reason: str,
        reason_code: str,
        warnings: Optional[Sequence[str]] = None,
    ) -> None:
        """Record the denial reason and any compatibility warnings."""
        self.reason = reason
        self.reason_code = reason_code
        self.warnings = list(warnings or [])
        super().__init__(reason)


class ExecutionFailed(GatewayError):
    """The database rejected or failed on a permitted query."""

    def __init__(self, message: str, category: str = "unknown", retryable: bool = False) -> None:
        """Record the driver message and its provider-agnostic category."""
        self.message = message
        self.category = category
        self.retryable = retryable
        super().__init__(message)


class AcquireTimeoutError(TimeoutError):
    """No pooled session became available within the acquisition timeout."""

    def __init__(self, timeout_seconds: float) -> None:
        """Initialize with the timeout that elapsed."""
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Timed out after {timeout_seconds:g}s waiting for a database connection."
        )
