"""MCP tool: execute_query - Execute an admitted SQL statement."""

from typing import Any, List, Optional

from opentelemetry import trace

from common.models.tool_envelopes import ExecuteQueryMetadata, ExecuteQueryResponseEnvelope
from mcp_server.services.query_executor import QueryExecutor
from mcp_server.utils.errors import error_from_exception

TOOL_NAME = "execute_query"
TOOL_DESCRIPTION = (
    "Execute a single SQL statement. SELECT, SHOW, DESCRIBE and EXPLAIN are always "
    "permitted; INSERT, UPDATE and DELETE only when enabled by configuration. "
    "Use %s placeholders with 'params' for values."
)


def _error_envelope(executor: QueryExecutor, exc: BaseException) -> str:
    envelope = ExecuteQueryResponseEnvelope(
        rows=[],
        metadata=ExecuteQueryMetadata(rows_returned=0, row_limit=executor.settings.row_limit),
        error=error_from_exception(exc, TOOL_NAME),
    )
    return envelope.model_dump_json(exclude_none=True)


async def handler(
    executor: QueryExecutor,
    query: str,
    database: Optional[str] = None,
    params: Optional[List[Any]] = None,
) -> str:
    """Execute a SQL statement through the admission pipeline.

    Authorization:
        Read commands always run. Write commands require the matching
        ``MARIADB_ALLOW_*`` flag. Administrative commands are always denied.

    Failure Modes:
        - Invalid Request: empty query, bad database name or non-list params.
        - Query Denied: the statement failed admission (see ``reason_code``).
        - Execution Failed: the server rejected the statement.

    Args:
        executor: Query pipeline bound to the server's connection pool.
        query: One SQL statement.
        database: Optional database to switch to first.
        params: Optional positional values for ``%s`` placeholders.

    Returns:
        JSON envelope with ``rows``, ``columns`` and ``metadata``.
    """
    from mcp_server.utils.validation import (
        require_non_empty,
        validate_identifier_param,
        validate_params_list,
        validate_string_length,
    )

    if err := require_non_empty(query, "query", TOOL_NAME):
        return err
    if err := validate_string_length(query, param_name="query", tool_name=TOOL_NAME):
        return err
    if err := validate_identifier_param(database, "database", TOOL_NAME):
        return err
    if err := validate_params_list(params, TOOL_NAME):
        return err

    span = trace.get_current_span()
    try:
        result = await executor.run(query, params, database=database)
    except Exception as exc:
        return _error_envelope(executor, exc)

    if span and span.is_recording():
        span.set_attribute("db.result.rows_returned", result.rows_returned)
        span.set_attribute("db.result.is_truncated", result.is_truncated)
        span.set_attribute("db.result.warning_count", len(result.warnings))

    envelope = ExecuteQueryResponseEnvelope(
        rows=result.rows,
        columns=result.columns,
        metadata=ExecuteQueryMetadata(
            rows_returned=result.rows_returned,
            is_truncated=result.is_truncated,
            row_limit=executor.settings.row_limit,
            total_rows=result.total_rows,
            affected_rows=result.affected_rows,
            last_insert_id=result.last_insert_id,
            warnings=result.warnings,
            execution_time_ms=result.execution_time_ms,
        ),
    )
    return envelope.model_dump_json(exclude_none=True)
