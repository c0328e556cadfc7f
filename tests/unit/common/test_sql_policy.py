import itertools

import pytest

from common.config.gateway_settings import GatewaySettings
from common.policy.sql_classifier import classify
from common.policy.sql_policy import (
    REASON_COMMAND_NOT_PERMITTED,
    REASON_COMPATIBILITY_DENIED,
    REASON_DISALLOWED_KEYWORD,
    REASON_EMPTY_QUERY,
    REASON_MULTIPLE_STATEMENTS,
    decide,
    permitted_commands,
)

ALL_FLAG_COMBINATIONS = [
    dict(zip(("allow_insert", "allow_update", "allow_delete"), flags))
    for flags in itertools.product([False, True], repeat=3)
]


def _settings(**overrides) -> GatewaySettings:
    return GatewaySettings(host="localhost", user="app", password="pw", **overrides)


def _decide(sql: str, **overrides):
    return decide(classify(sql), _settings(**overrides))


@pytest.mark.parametrize("flags", ALL_FLAG_COMBINATIONS)
@pytest.mark.parametrize(
    "sql",
    ["SELECT * FROM t", "SHOW TABLES", "DESCRIBE t", "DESC t", "EXPLAIN SELECT 1", "SELECT 1;"],
)
def test_read_commands_allowed_regardless_of_write_flags(sql, flags):
    decision = _decide(sql, **flags)
    assert decision.allowed is True
    assert decision.reason is None


@pytest.mark.parametrize(
    "sql, flag",
    [
        ("INSERT INTO t VALUES (1)", "allow_insert"),
        ("UPDATE t SET a = 1", "allow_update"),
        ("DELETE FROM t WHERE id = 1", "allow_delete"),
    ],
)
def test_write_allowed_iff_flag_enabled(sql, flag):
    denied = _decide(sql)
    assert denied.allowed is False
    assert denied.reason_code == REASON_COMMAND_NOT_PERMITTED

    assert _decide(sql, **{flag: True}).allowed is True


def test_other_write_flags_do_not_admit_insert():
    decision = _decide("INSERT INTO t VALUES (1)", allow_update=True, allow_delete=True)
    assert decision.allowed is False
    assert "MARIADB_ALLOW_INSERT" in decision.reason


@pytest.mark.parametrize("flags", ALL_FLAG_COMBINATIONS)
@pytest.mark.parametrize(
    "sql",
    [
        "SELECT 1; DROP TABLE t",
        "DROP TABLE t",
        "SELECT * FROM t WHERE name = 'x' OR 1=1 /*! DROP */",
        "DELETE FROM t WHERE id IN (SELECT id FROM u) DROP",
    ],
)
def test_drop_always_denied(sql, flags):
    decision = _decide(sql, **flags)
    assert decision.allowed is False
    assert decision.reason_code == REASON_DISALLOWED_KEYWORD
    assert "DROP" in decision.reason


def test_multiple_statements_denied():
    decision = _decide("SELECT 1; SELECT 2")
    assert decision.allowed is False
    assert decision.reason_code == REASON_MULTIPLE_STATEMENTS


def test_trailing_separator_is_single_statement():
    assert _decide("SELECT 1;").allowed is True


def test_empty_query_denied():
    decision = decide(classify("   "), _settings())
    assert decision.allowed is False
    assert decision.reason_code == REASON_EMPTY_QUERY


def test_unknown_command_lists_permitted_commands():
    decision = _decide("SET @a = 1", allow_insert=True)
    assert decision.allowed is False
    assert decision.reason_code == REASON_COMMAND_NOT_PERMITTED
    assert "SELECT" in decision.reason
    assert "INSERT" in decision.reason
    assert "DELETE" not in decision.reason


def test_denial_order_disallowed_before_multiple():
    decision = _decide("SELECT 1; TRUNCATE t")
    assert decision.reason_code == REASON_DISALLOWED_KEYWORD


def test_denial_order_multiple_before_command():
    decision = _decide("INSERT INTO t VALUES (1); INSERT INTO t VALUES (2)")
    assert decision.reason_code == REASON_MULTIPLE_STATEMENTS


def test_window_function_allowed_with_warning():
    decision = _decide("SELECT ROW_NUMBER() OVER (ORDER BY id) FROM t")
    assert decision.allowed is True
    assert decision.warnings
    assert any("window functions" in warning for warning in decision.warnings)


def test_compatibility_deny_policy():
    decision = _decide(
        "SELECT ROW_NUMBER() OVER (ORDER BY id) FROM t", compat_warning_policy="deny"
    )
    assert decision.allowed is False
    assert decision.reason_code == REASON_COMPATIBILITY_DENIED
    assert decision.warnings


def test_compatibility_deny_policy_ignores_clean_queries():
    assert _decide("SELECT id FROM t", compat_warning_policy="deny").allowed is True


def test_permitted_commands_follow_flags():
    assert permitted_commands(_settings()) == ["DESC", "DESCRIBE", "EXPLAIN", "SELECT", "SHOW"]
    assert permitted_commands(_settings(allow_delete=True))[-1] == "DELETE"
