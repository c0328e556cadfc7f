"""Tracing wrapper for MCP tools."""

import functools
import json
import logging
import time
from typing import Any, Awaitable, Callable, ParamSpec, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")


def _extract_envelope_error_category(response: Any) -> str | None:
    """Extract envelope-level error category from response payload, if present."""
    payload: dict[str, Any] | None = None

    if isinstance(response, dict):
        payload = response
    elif isinstance(response, str):
        try:
            parsed = json.loads(response)
        except json.JSONDecodeError:
            return None
        if isinstance(parsed, dict):
            payload = parsed

    if not isinstance(payload, dict):
        return None

    error_payload = payload.get("error")
    if error_payload is None:
        return None
    if isinstance(error_payload, dict):
        category = error_payload.get("category")
        return str(category) if category is not None else "unknown"
    return "unknown"


def _extract_truncation_signal(response: Any) -> bool:
    if not isinstance(response, str):
        return False
    try:
        payload = json.loads(response)
    except json.JSONDecodeError:
        return False
    metadata = payload.get("metadata") if isinstance(payload, dict) else None
    return bool(isinstance(metadata, dict) and metadata.get("is_truncated"))


def trace_tool(tool_name: str) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Add OpenTelemetry tracing to an MCP tool handler.

    Args:
        tool_name: The name of the tool (e.g. "execute_query").
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            tracer = trace.get_tracer("mcp.server")

            with tracer.start_as_current_span(
                f"mcp.tool.{tool_name}", kind=trace.SpanKind.SERVER
            ) as span:
                span.set_attribute("mcp.tool.name", tool_name)
                database = kwargs.get("database")
                if database:
                    span.set_attribute("db.name", str(database))

                call_started_at = time.monotonic()
                try:
                    response = await func(*args, **kwargs)
                except Exception as e:
                    duration_ms = max(0.0, (time.monotonic() - call_started_at) * 1000.0)
                    span.set_attribute("mcp.tool.duration_ms", duration_ms)
                    span.record_exception(e)
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    err_cls = getattr(e, "category", "unknown")
                    span.set_attribute("mcp.tool.error.category", str(err_cls))
                    logger.error("Tool %s raised after %.1fms", tool_name, duration_ms)
                    raise

                duration_ms = max(0.0, (time.monotonic() - call_started_at) * 1000.0)
                span.set_attribute("mcp.tool.duration_ms", duration_ms)
                span.set_attribute(
                    "mcp.tool.response.size_bytes", len(str(response).encode("utf-8"))
                )
                span.set_attribute(
                    "mcp.tool.response.truncated", _extract_truncation_signal(response)
                )

                error_category = _extract_envelope_error_category(response)
                if error_category is not None:
                    span.set_status(Status(StatusCode.ERROR))
                    span.set_attribute("mcp.tool.error.category", error_category)
                    logger.info(
                        "Tool %s returned error category=%s (%.1fms)",
                        tool_name,
                        error_category,
                        duration_ms,
                    )
                else:
                    span.set_status(Status(StatusCode.OK))
                    logger.info("Tool %s completed in %.1fms", tool_name, duration_ms)
                return response

        return wrapper

    return decorator
