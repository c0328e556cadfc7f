import pymysql
import pytest

from common.errors.exceptions import AcquireTimeoutError, ExecutionFailed, QueryDenied
from dal.mariadb.connection_manager import RawResult
from mcp_server.services.query_executor import QueryExecutor
from tests._support.fake_gateway import FakeManager, make_settings


@pytest.mark.asyncio
async def test_select_is_executed_and_normalized(executor, fake_manager):
    result = await executor.run("SELECT id, price FROM items WHERE id = %s", [1])

    assert result.rows == [{"id": "9223372036854775808", "price": "9.99"}]
    assert [column["name"] for column in result.columns] == ["id", "price"]
    assert result.columns[0]["db_type"] == "BIGINT"
    assert result.rows_returned == 1
    assert result.total_rows == 1
    assert result.is_truncated is False
    assert result.affected_rows is None
    assert fake_manager.calls == [("SELECT id, price FROM items WHERE id = %s", [1], None)]


@pytest.mark.asyncio
async def test_rows_capped_at_row_limit():
    rows = [{"id": i} for i in range(5000)]
    manager = FakeManager(
        make_settings(row_limit=1000),
        results={"SELECT": RawResult(rows=rows, description=(("id", 3),), rowcount=5000)},
    )

    result = await QueryExecutor(manager).run("SELECT id FROM big")

    assert result.rows_returned == 1000
    assert len(result.rows) == 1000
    assert result.is_truncated is True
    assert result.total_rows == 5000


@pytest.mark.asyncio
@pytest.mark.parametrize("sql", ["", "   ", None, "-- comment only"])
async def test_empty_query_denied(executor, fake_manager, sql):
    with pytest.raises(QueryDenied) as excinfo:
        await executor.run(sql)

    assert excinfo.value.reason_code == "EMPTY_QUERY"
    assert fake_manager.calls == []


@pytest.mark.asyncio
async def test_policy_denial_never_reaches_connection(executor, fake_manager):
    with pytest.raises(QueryDenied) as excinfo:
        await executor.run("SELECT 1; DROP TABLE t")

    assert excinfo.value.reason_code == "DISALLOWED_KEYWORD"
    assert fake_manager.calls == []


@pytest.mark.asyncio
async def test_write_denied_unless_enabled(fake_manager):
    with pytest.raises(QueryDenied) as excinfo:
        await QueryExecutor(fake_manager).run("INSERT INTO t VALUES (1)")
    assert excinfo.value.reason_code == "COMMAND_NOT_PERMITTED"

    fake_manager.settings = make_settings(allow_insert=True)
    result = await QueryExecutor(fake_manager).run("INSERT INTO t (a) VALUES (%s)", ("x",))

    assert result.affected_rows == 1
    assert result.last_insert_id == 17
    assert result.rows == []
    assert result.rows_returned == 0


@pytest.mark.asyncio
async def test_non_list_params_denied(executor, fake_manager):
    with pytest.raises(QueryDenied) as excinfo:
        await executor.run("SELECT %s", {"a": 1})

    assert excinfo.value.reason_code == "INVALID_PARAMS"
    assert fake_manager.calls == []


@pytest.mark.asyncio
async def test_invalid_database_denied(executor, fake_manager):
    with pytest.raises(QueryDenied) as excinfo:
        await executor.run("SELECT 1", database="shop`; DROP")

    assert excinfo.value.reason_code == "INVALID_DATABASE"
    assert fake_manager.calls == []


@pytest.mark.asyncio
async def test_database_override_is_forwarded(executor, fake_manager):
    await executor.run("SELECT 1", database="analytics")
    assert fake_manager.calls[0][2] == "analytics"


@pytest.mark.asyncio
async def test_compatibility_warnings_ride_along(executor):
    result = await executor.run("SELECT ROW_NUMBER() OVER (ORDER BY id) AS n FROM t")

    assert result.warnings
    assert any("window functions" in warning for warning in result.warnings)


@pytest.mark.asyncio
async def test_compatibility_deny_policy(fake_manager):
    fake_manager.settings = make_settings(compat_warning_policy="deny")

    with pytest.raises(QueryDenied) as excinfo:
        await QueryExecutor(fake_manager).run("SELECT JSON_EXTRACT(doc, '$.a') FROM t")

    assert excinfo.value.reason_code == "COMPATIBILITY_DENIED"
    assert excinfo.value.warnings
    assert fake_manager.calls == []


@pytest.mark.asyncio
async def test_driver_error_becomes_execution_failed():
    error = pymysql.err.ProgrammingError(1146, "Table 'shop.missing' doesn't exist")
    manager = FakeManager(make_settings(), error=error)

    with pytest.raises(ExecutionFailed) as excinfo:
        await QueryExecutor(manager).run("SELECT * FROM missing")

    assert excinfo.value.category == "not_found"
    assert excinfo.value.retryable is False
    assert "(1146)" in excinfo.value.message
    assert "shop.missing" in excinfo.value.message
    assert excinfo.value.__cause__ is error


@pytest.mark.asyncio
async def test_driver_error_message_is_redacted():
    error = pymysql.err.OperationalError(1045, "Access denied for user 'app'@'10.0.0.4'")
    manager = FakeManager(make_settings(), error=error)

    with pytest.raises(ExecutionFailed) as excinfo:
        await QueryExecutor(manager).run("SELECT 1")

    assert excinfo.value.category == "auth"
    assert "10.0.0.4" not in excinfo.value.message


@pytest.mark.asyncio
async def test_acquire_timeout_is_retryable_failure():
    manager = FakeManager(make_settings(), error=AcquireTimeoutError(10.0))

    with pytest.raises(ExecutionFailed) as excinfo:
        await QueryExecutor(manager).run("SELECT 1")

    assert excinfo.value.category == "timeout"
    assert excinfo.value.retryable is True
