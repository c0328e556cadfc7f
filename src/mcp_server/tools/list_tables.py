"""MCP tool: list_tables - List tables in a database."""

import time
from typing import Optional

from common.models.tool_envelopes import GenericToolMetadata, ToolResponseEnvelope
from dal.mariadb.schema_introspector import MariadbSchemaIntrospector
from mcp_server.services.query_executor import QueryExecutor
from mcp_server.utils.errors import exception_response

TOOL_NAME = "list_tables"
TOOL_DESCRIPTION = "List tables in the given database, or in the configured default database."


async def handler(executor: QueryExecutor, database: Optional[str] = None) -> str:
    """List tables in a database.

    Data Access:
        Runs ``SHOW TABLES`` through the query pipeline, after switching to
        ``database`` when one is given.

    Failure Modes:
        - Invalid Request: ``database`` is not a plain identifier.
        - Execution Failed: the database does not exist or is not accessible.

    Args:
        executor: Query pipeline bound to the server's connection pool.
        database: Optional database name; defaults to ``MARIADB_DATABASE``.

    Returns:
        JSON envelope whose ``result`` is an array of table names in server order.
    """
    from mcp_server.utils.validation import validate_identifier_param

    start_time = time.monotonic()

    if err := validate_identifier_param(database, "database", TOOL_NAME):
        return err

    try:
        tables = await MariadbSchemaIntrospector(executor).list_tables(database)
    except Exception as exc:
        return exception_response(exc, TOOL_NAME)

    envelope = ToolResponseEnvelope(
        result=tables.items,
        metadata=GenericToolMetadata(
            execution_time_ms=(time.monotonic() - start_time) * 1000,
            items_returned=len(tables.items),
            is_truncated=tables.is_truncated,
            row_limit=executor.settings.row_limit,
            database=database or executor.settings.database,
        ),
    )
    return envelope.model_dump_json(exclude_none=True)
