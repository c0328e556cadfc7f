"""Central registry for MCP tools.

This module provides a single point of registration for all MCP tools.
Handlers receive the query executor explicitly; the registry binds it into
closures whose signatures define each tool's public input schema.
"""

import logging
from typing import TYPE_CHECKING, Any, List, Optional, Set

if TYPE_CHECKING:
    from fastmcp import FastMCP

    from mcp_server.services.query_executor import QueryExecutor

logger = logging.getLogger(__name__)

# Canonical tool names (without _tool suffix)
CANONICAL_TOOLS: Set[str] = {
    "list_databases",
    "list_tables",
    "describe_table",
    "execute_query",
}


def get_all_tool_names() -> List[str]:
    """Return list of all canonical tool names."""
    return sorted(CANONICAL_TOOLS)


def validate_tool_names() -> bool:
    """Validate that no canonical tool names end with '_tool'.

    Returns:
        True if all names are valid, raises ValueError otherwise.
    """
    invalid = [name for name in CANONICAL_TOOLS if name.endswith("_tool")]
    if invalid:
        raise ValueError(f"Tool names must not end with '_tool': {invalid}")
    return True


def register_all(mcp: "FastMCP", executor: "QueryExecutor") -> None:
    """Register all tools with the MCP server.

    Args:
        mcp: FastMCP server instance
        executor: Query pipeline shared by every tool
    """
    validate_tool_names()

    from mcp_server.tools import describe_table as describe_table_tool
    from mcp_server.tools import execute_query as execute_query_tool
    from mcp_server.tools import list_databases as list_databases_tool
    from mcp_server.tools import list_tables as list_tables_tool
    from mcp_server.utils.tracing import trace_tool

    def register(name, description, func):
        mcp.tool(name=name, description=description)(trace_tool(name)(func))

    async def list_databases() -> str:
        return await list_databases_tool.handler(executor)

    async def list_tables(database: Optional[str] = None) -> str:
        return await list_tables_tool.handler(executor, database=database)

    async def describe_table(table: str, database: Optional[str] = None) -> str:
        return await describe_table_tool.handler(executor, table, database=database)

    async def execute_query(
        query: str,
        database: Optional[str] = None,
        params: Optional[List[Any]] = None,
    ) -> str:
        return await execute_query_tool.handler(
            executor, query, database=database, params=params
        )

    register(list_databases_tool.TOOL_NAME, list_databases_tool.TOOL_DESCRIPTION, list_databases)
    register(list_tables_tool.TOOL_NAME, list_tables_tool.TOOL_DESCRIPTION, list_tables)
    register(describe_table_tool.TOOL_NAME, describe_table_tool.TOOL_DESCRIPTION, describe_table)
    register(execute_query_tool.TOOL_NAME, execute_query_tool.TOOL_DESCRIPTION, execute_query)

    logger.info(f"Registered {len(CANONICAL_TOOLS)} tools with MCP server")
