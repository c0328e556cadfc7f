"""Shared input validation guards for MCP tool handlers.

Each guard returns an error response string if invalid, or None if valid.
"""

from typing import Any, Optional

from dal.mariadb.quoting import is_valid_identifier
from mcp_server.utils.errors import tool_error_response

DEFAULT_MAX_QUERY_BYTES = 1024 * 1024


def require_non_empty(value: Optional[str], param_name: str, tool_name: str) -> Optional[str]:
    """Validate that a string parameter is non-empty."""
    if not isinstance(value, str) or not value.strip():
        return tool_error_response(
            message=f"Parameter '{param_name}' must be non-empty for {tool_name}.",
            code="EMPTY_PARAMETER",
        )
    return None


def validate_identifier_param(
    value: Optional[str], param_name: str, tool_name: str, *, required: bool = False
) -> Optional[str]:
    """Validate a database or table name against the plain identifier rule."""
    if value is None and not required:
        return None
    if not is_valid_identifier(value):
        return tool_error_response(
            message=(
                f"Parameter '{param_name}' for {tool_name} must be 1-64 letters, "
                "digits, '_' or '$'."
            ),
            code="INVALID_IDENTIFIER",
        )
    return None


def validate_string_length(
    value: str,
    *,
    max_bytes: int = DEFAULT_MAX_QUERY_BYTES,
    param_name: str = "value",
    tool_name: str = "tool",
) -> Optional[str]:
    """Validate byte-length of a string parameter."""
    if not isinstance(value, str):
        return tool_error_response(
            message=f"Parameter '{param_name}' must be a string for {tool_name}.",
            code="INVALID_PARAMETER_TYPE",
        )

    size = len(value.encode("utf-8"))
    if size > max_bytes:
        return tool_error_response(
            message=(
                f"Parameter '{param_name}' exceeds maximum size of "
                f"{max_bytes} bytes for {tool_name}."
            ),
            code="INPUT_TOO_LARGE",
        )
    return None


def validate_params_list(params: Any, tool_name: str) -> Optional[str]:
    """Validate that query parameters, when given, are a JSON array."""
    if params is None or isinstance(params, (list, tuple)):
        return None
    return tool_error_response(
        message=f"Parameter 'params' must be a list of positional values for {tool_name}.",
        code="INVALID_PARAMETER_TYPE",
    )
