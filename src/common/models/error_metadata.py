"""Structured error metadata models."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorCategory(str, Enum):
    """Canonical error categories."""

    # Caller / policy categories
    INVALID_REQUEST = "invalid_request"
    QUERY_DENIED = "query_denied"
    CONFIGURATION = "configuration"

    # Execution categories (derived from driver errors)
    EXECUTION_FAILED = "execution_failed"
    TIMEOUT = "timeout"
    CONNECTIVITY = "connectivity"
    AUTH = "auth"
    SYNTAX = "syntax"
    NOT_FOUND = "not_found"
    CONSTRAINT = "constraint"
    UNSUPPORTED = "unsupported"
    DEADLOCK = "deadlock"

    INTERNAL = "internal"
    UNKNOWN = "unknown"


class ToolError(BaseModel):
    """Canonical tool error contract."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    category: ErrorCategory = Field(..., description="Provider-agnostic error category")
    code: Optional[str] = Field(None, description="Stable machine-readable error code")
    error_code: Optional[str] = Field(None, description="Canonical error code group")
    message: str = Field(
        ..., max_length=2048, description="Safe user-facing error message (redacted/bounded)"
    )
    retryable: bool = Field(False, description="Whether the error is retryable")
    reason_code: Optional[str] = Field(None, description="Stable policy decision reason code")
    details_safe: Optional[dict[str, Any]] = Field(
        None, description="Safe details that can be surfaced to users/agent"
    )
    provider: Optional[str] = Field("unknown", description="Originating provider/system")

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses/telemetry."""
        return self.model_dump(mode="json", exclude_none=True)
