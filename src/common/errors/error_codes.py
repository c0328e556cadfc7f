"""Canonical error-code taxonomy for DAL/MCP flows."""

from __future__ import annotations

from enum import Enum

from common.models.error_metadata import ErrorCategory


class ErrorCode(str, Enum):
    """Bounded canonical error codes for external contracts and observability."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    SQL_POLICY_VIOLATION = "SQL_POLICY_VIOLATION"
    DB_CONNECTION_ERROR = "DB_CONNECTION_ERROR"
    DB_TIMEOUT = "DB_TIMEOUT"
    DB_SYNTAX_ERROR = "DB_SYNTAX_ERROR"
    DB_EXECUTION_ERROR = "DB_EXECUTION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


_CATEGORY_TO_CODE: dict[str, ErrorCode] = {
    ErrorCategory.INVALID_REQUEST.value: ErrorCode.VALIDATION_ERROR,
    ErrorCategory.CONFIGURATION.value: ErrorCode.CONFIGURATION_ERROR,
    ErrorCategory.QUERY_DENIED.value: ErrorCode.SQL_POLICY_VIOLATION,
    ErrorCategory.EXECUTION_FAILED.value: ErrorCode.DB_EXECUTION_ERROR,
    ErrorCategory.AUTH.value: ErrorCode.DB_EXECUTION_ERROR,
    ErrorCategory.NOT_FOUND.value: ErrorCode.DB_EXECUTION_ERROR,
    ErrorCategory.CONSTRAINT.value: ErrorCode.DB_EXECUTION_ERROR,
    ErrorCategory.UNSUPPORTED.value: ErrorCode.DB_EXECUTION_ERROR,
    ErrorCategory.SYNTAX.value: ErrorCode.DB_SYNTAX_ERROR,
    ErrorCategory.TIMEOUT.value: ErrorCode.DB_TIMEOUT,
    ErrorCategory.DEADLOCK.value: ErrorCode.DB_TIMEOUT,
    ErrorCategory.CONNECTIVITY.value: ErrorCode.DB_CONNECTION_ERROR,
    ErrorCategory.UNKNOWN.value: ErrorCode.INTERNAL_ERROR,
    ErrorCategory.INTERNAL.value: ErrorCode.INTERNAL_ERROR,
}


def _normalize_category(category: str | ErrorCategory | None) -> str:
    if isinstance(category, ErrorCategory):
        return category.value
    if category is None:
        return ""
    return str(category).strip().lower()


def canonical_error_code_for_category(
    category: str | ErrorCategory | None,
    *,
    fallback: ErrorCode = ErrorCode.INTERNAL_ERROR,
) -> ErrorCode:
    """Resolve canonical error code from category-like values."""
    normalized = _normalize_category(category)
    if not normalized:
        return fallback
    return _CATEGORY_TO_CODE.get(normalized, fallback)

