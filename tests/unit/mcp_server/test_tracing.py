import json

import pytest

from mcp_server.utils.tracing import trace_tool


@pytest.mark.asyncio
async def test_trace_tool_passes_response_through():
    @trace_tool("list_tables")
    async def handler(database=None):
        return json.dumps({"result": [database]})

    assert json.loads(await handler(database="shop")) == {"result": ["shop"]}
    assert handler.__name__ == "handler"


@pytest.mark.asyncio
async def test_trace_tool_logs_error_envelopes(caplog):
    @trace_tool("execute_query")
    async def handler():
        return json.dumps({"error": {"category": "query_denied"}})

    with caplog.at_level("INFO", logger="mcp_server.utils.tracing"):
        await handler()

    assert "category=query_denied" in caplog.text


@pytest.mark.asyncio
async def test_trace_tool_reraises():
    @trace_tool("execute_query")
    async def handler():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        await handler()
