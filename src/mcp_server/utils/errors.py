"""Shared error construction helpers for MCP tool handlers.

Provides a consistent error envelope so callers never have to special-case
error parsing across different tools.
"""

import logging
from typing import Any, Optional

from common.errors.error_codes import ErrorCode, canonical_error_code_for_category
from common.errors.exceptions import ConfigurationError, ExecutionFailed, QueryDenied
from common.models.error_metadata import ErrorCategory, ToolError
from common.models.tool_envelopes import GenericToolMetadata, ToolResponseEnvelope
from common.sanitization.text import bound_public_message
from dal.error_classification import RECOVERY_HINTS

logger = logging.getLogger(__name__)

PROVIDER = "mariadb"


def build_error_metadata(
    *,
    message: str,
    category: ErrorCategory,
    code: Optional[str] = None,
    error_code: Optional[str] = None,
    retryable: bool = False,
    reason_code: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
) -> ToolError:
    """Build bounded, redacted ToolError."""
    canonical_error_code = error_code or canonical_error_code_for_category(category).value
    return ToolError(
        category=category,
        code=code or "TOOL_ERROR",
        error_code=canonical_error_code or ErrorCode.INTERNAL_ERROR.value,
        message=bound_public_message(message),
        retryable=retryable,
        reason_code=reason_code,
        details_safe=details or None,
        provider=PROVIDER,
    )


def error_from_exception(exc: BaseException, tool_name: str) -> ToolError:
    """Map a pipeline exception onto the canonical error contract.

    Unexpected exceptions are logged with their traceback and reported as
    ``internal`` without leaking their text.
    """
    if isinstance(exc, QueryDenied):
        details = {"warnings": exc.warnings} if exc.warnings else None
        return build_error_metadata(
            message=exc.reason,
            category=ErrorCategory.QUERY_DENIED,
            code="QUERY_DENIED",
            reason_code=exc.reason_code,
            details=details,
        )
    if isinstance(exc, ExecutionFailed):
        return build_error_metadata(
            message=exc.message,
            category=ErrorCategory.EXECUTION_FAILED,
            code="EXECUTION_FAILED",
            error_code=canonical_error_code_for_category(exc.category).value,
            retryable=exc.retryable,
            details={
                "driver_category": exc.category,
                "hint": RECOVERY_HINTS.get(exc.category, RECOVERY_HINTS["unknown"]),
            },
        )
    if isinstance(exc, ValueError):
        return build_error_metadata(
            message=str(exc),
            category=ErrorCategory.INVALID_REQUEST,
            code="INVALID_ARGUMENT",
        )
    if isinstance(exc, ConfigurationError):
        return build_error_metadata(
            message=str(exc),
            category=ErrorCategory.CONFIGURATION,
            code="CONFIGURATION_ERROR",
        )

    logger.exception("Unexpected error in tool %s", tool_name)
    return build_error_metadata(
        message=f"Internal error while running {tool_name}.",
        category=ErrorCategory.INTERNAL,
        code="INTERNAL_ERROR",
    )


def tool_error_response(
    *,
    message: str,
    code: str,
    category: ErrorCategory = ErrorCategory.INVALID_REQUEST,
    retryable: bool = False,
) -> str:
    """Construct a structured JSON error response for an MCP tool.

    Returns a ToolResponseEnvelope JSON string with a populated ``error``
    field.

    Args:
        message: Human-readable error description (max 2048 chars).
        code: Machine-readable error code (e.g. "EMPTY_PARAMETER").
        category: Provider-agnostic error category.
        retryable: Whether the caller should retry.
    """
    envelope = ToolResponseEnvelope(
        result=None,
        metadata=GenericToolMetadata(provider=PROVIDER),
        error=build_error_metadata(
            message=message, category=category, code=code, retryable=retryable
        ),
    )
    return envelope.model_dump_json(exclude_none=True)


def exception_response(exc: BaseException, tool_name: str) -> str:
    """Render a pipeline exception as an enumeration-tool error envelope."""
    envelope = ToolResponseEnvelope(
        result=None,
        metadata=GenericToolMetadata(provider=PROVIDER),
        error=error_from_exception(exc, tool_name),
    )
    return envelope.model_dump_json(exclude_none=True)
