"""MCP tool: describe_table - Describe the columns of a table."""

import time
from typing import Optional

from common.models.tool_envelopes import GenericToolMetadata, ToolResponseEnvelope
from dal.mariadb.schema_introspector import MariadbSchemaIntrospector
from mcp_server.services.query_executor import QueryExecutor
from mcp_server.utils.errors import exception_response
from mcp_server.utils.validation import validate_identifier_param

TOOL_NAME = "describe_table"
TOOL_DESCRIPTION = (
    "Describe a table's columns: name, type, nullability, key role, default and extra."
)


async def handler(executor: QueryExecutor, table: str, database: Optional[str] = None) -> str:
    """Describe the columns of a table.

    ``table`` is validated as a plain identifier and backtick-quoted; it is
    never interpolated into SQL unchecked.

    Returns:
        JSON envelope whose ``result`` is an array of
        ``{name, type, nullable, key, default, extra}`` objects.
    """
    start_time = time.monotonic()

    if err := validate_identifier_param(table, "table", TOOL_NAME, required=True):
        return err
    if err := validate_identifier_param(database, "database", TOOL_NAME):
        return err

    try:
        columns = await MariadbSchemaIntrospector(executor).describe_table(table, database)
    except Exception as exc:
        return exception_response(exc, TOOL_NAME)

    envelope = ToolResponseEnvelope(
        result=[column.to_dict() for column in columns.items],
        metadata=GenericToolMetadata(
            execution_time_ms=(time.monotonic() - start_time) * 1000,
            items_returned=len(columns.items),
            is_truncated=columns.is_truncated,
            row_limit=executor.settings.row_limit,
            database=database or executor.settings.database,
        ),
    )
    return envelope.model_dump_json(exclude_none=True)
