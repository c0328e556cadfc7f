"""MCP tool: list_databases - List databases visible to the configured account."""

import time

from common.models.tool_envelopes import GenericToolMetadata, ToolResponseEnvelope
from dal.mariadb.schema_introspector import MariadbSchemaIntrospector
from mcp_server.services.query_executor import QueryExecutor
from mcp_server.utils.errors import exception_response

TOOL_NAME = "list_databases"
TOOL_DESCRIPTION = "List the databases visible to the configured MariaDB account."


async def handler(executor: QueryExecutor) -> str:
    """List databases on the server.

    Data Access:
        Runs ``SHOW DATABASES`` through the query pipeline.

    Returns:
        JSON envelope whose ``result`` is an array of database names.
    """
    start_time = time.monotonic()

    try:
        databases = await MariadbSchemaIntrospector(executor).list_databases()
    except Exception as exc:
        return exception_response(exc, TOOL_NAME)

    envelope = ToolResponseEnvelope(
        result=databases.items,
        metadata=GenericToolMetadata(
            execution_time_ms=(time.monotonic() - start_time) * 1000,
            items_returned=len(databases.items),
            is_truncated=databases.is_truncated,
            row_limit=executor.settings.row_limit,
        ),
    )
    return envelope.model_dump_json(exclude_none=True)
