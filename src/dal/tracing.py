import hashlib
from typing import Awaitable, Optional

from opentelemetry import trace

PROVIDER = "mariadb"


def _hash_sql(sql: str) -> str:
    return hashlib.sha256(sql.encode("utf-8")).hexdigest()


def _leading_keyword(sql: str) -> str:
    parts = sql.split(None, 1)
    return parts[0].upper() if parts else ""


async def trace_query_operation(
    name: str,
    sql: Optional[str],
    operation: Awaitable,
    enabled: bool,
    database: Optional[str] = None,
):
    """Trace a DAL query operation with OTEL when SQL tracing is enabled.

    Spans carry a SHA-256 of the statement, never its text.
    """
    if not enabled:
        return await operation

    tracer = trace.get_tracer("dal")
    with tracer.start_as_current_span(name, kind=trace.SpanKind.CLIENT) as span:
        span.set_attribute("db.system", PROVIDER)
        if database:
            span.set_attribute("db.name", database)
        if sql:
            span.set_attribute("db.statement_hash", _hash_sql(sql))
            span.set_attribute("db.operation", _leading_keyword(sql))
        try:
            result = await operation
        except Exception as exc:
            span.set_attribute("db.status", "error")
            span.set_attribute("db.error_type", exc.__class__.__name__)
            raise
        span.set_attribute("db.status", "ok")
        if hasattr(result, "rows"):
            span.set_attribute("db.rows_fetched", len(result.rows))
        return result
