"""Common error taxonomy helpers."""

from common.errors.error_codes import ErrorCode, canonical_error_code_for_category
from common.errors.exceptions import (
    AcquireTimeoutError,
    ConfigurationError,
    ExecutionFailed,
    GatewayError,
    QueryDenied,
)

__all__ = [
    "AcquireTimeoutError",
    "ConfigurationError",
    "ErrorCode",
    "ExecutionFailed",
    "GatewayError",
    "QueryDenied",
    "canonical_error_code_for_category",
]
