import hashlib
from types import SimpleNamespace

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from dal import tracing


@pytest.fixture
def exporter(monkeypatch):
    """Route DAL spans to an in-memory exporter."""
    memory = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(memory))
    monkeypatch.setattr(tracing.trace, "get_tracer", provider.get_tracer)
    return memory


async def _result():
    return SimpleNamespace(rows=[{"id": 1}, {"id": 2}])


@pytest.mark.asyncio
async def test_disabled_tracing_emits_nothing(exporter):
    result = await tracing.trace_query_operation(
        "dal.query.execute", "SELECT 1", _result(), enabled=False
    )

    assert len(result.rows) == 2
    assert exporter.get_finished_spans() == ()


@pytest.mark.asyncio
async def test_span_carries_statement_hash_not_text(exporter):
    sql = "select * from users where email = %s"

    await tracing.trace_query_operation(
        "dal.query.execute", sql, _result(), enabled=True, database="shop"
    )

    (span,) = exporter.get_finished_spans()
    assert span.name == "dal.query.execute"
    assert span.attributes["db.statement_hash"] == hashlib.sha256(sql.encode()).hexdigest()
    assert span.attributes["db.operation"] == "SELECT"
    assert span.attributes["db.name"] == "shop"
    assert span.attributes["db.rows_fetched"] == 2
    assert sql not in str(dict(span.attributes))


@pytest.mark.asyncio
async def test_span_marks_errors(exporter):
    async def failing():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await tracing.trace_query_operation("dal.query.execute", "SELECT 1", failing(), True)

    (span,) = exporter.get_finished_spans()
    assert span.attributes["db.status"] == "error"
    assert span.attributes["db.error_type"] == "RuntimeError"
