import pytest

from common.policy.sql_classifier import (
    FEATURE_FULLTEXT,
    FEATURE_JSON,
    FEATURE_WINDOW,
    CommandKind,
    classify,
    has_multiple_statements,
    normalize_sql,
)


class TestLeadingCommand:
    """Leading command detection."""

    @pytest.mark.parametrize(
        "sql, token",
        [
            ("SELECT * FROM users", "SELECT"),
            ("  select id from t", "SELECT"),
            ("SHOW TABLES", "SHOW"),
            ("DESCRIBE users", "DESCRIBE"),
            ("desc users", "DESC"),
            ("EXPLAIN SELECT 1", "EXPLAIN"),
            ("SELECT(1)", "SELECT"),
            ("/* lead */ SELECT 1", "SELECT"),
        ],
    )
    def test_read_commands(self, sql, token):
        verdict = classify(sql)
        assert verdict.command == CommandKind.READ
        assert verdict.leading_token == token

    @pytest.mark.parametrize(
        "sql", ["INSERT INTO t VALUES (1)", "update t set a = 1", "DELETE FROM t"]
    )
    def test_write_commands(self, sql):
        assert classify(sql).command == CommandKind.WRITE

    @pytest.mark.parametrize("sql", ["SET @a = 1", "USE other", "HANDLER t OPEN", "(SELECT 1)"])
    def test_other_commands(self, sql):
        assert classify(sql).command == CommandKind.OTHER

    @pytest.mark.parametrize("sql", ["", "   ", "-- only a comment", "/* */", ";", None, 42])
    def test_empty_input(self, sql):
        assert classify(sql).command == CommandKind.EMPTY


class TestMultipleStatements:
    """Statement separator handling."""

    def test_single_trailing_separator_is_allowed(self):
        assert classify("SELECT 1;").has_multiple_statements is False
        assert classify("SELECT 1 ;  ").has_multiple_statements is False

    def test_two_statements(self):
        assert classify("SELECT 1; SELECT 2").has_multiple_statements is True

    def test_double_trailing_separator(self):
        assert classify("SELECT 1;;").has_multiple_statements is True

    def test_separator_inside_literal_still_counts(self):
        # Lexical classification does not track string literals.
        assert has_multiple_statements(normalize_sql("SELECT 'a;b'")) is True

    def test_separator_in_comment_is_ignored(self):
        assert classify("SELECT 1 -- ; SELECT 2").has_multiple_statements is False


class TestDisallowedKeywords:
    """Content-based scan for administrative commands."""

    def test_drop_after_select(self):
        verdict = classify("SELECT 1; DROP TABLE t")
        assert verdict.command == CommandKind.READ
        assert verdict.disallowed_keywords == ("DROP",)

    def test_keywords_in_detection_order_without_duplicates(self):
        verdict = classify("CREATE TABLE a (x int); DROP TABLE b; DROP TABLE c")
        assert verdict.disallowed_keywords == ("CREATE", "DROP")

    def test_standalone_words_only(self):
        verdict = classify("SELECT dropped, created_at, start_date, `$drop` FROM t")
        assert verdict.disallowed_keywords == ()

    def test_hidden_in_executable_comment(self):
        assert classify("SELECT 1 /*! DROP TABLE t */").has_disallowed_keyword

    def test_ignored_in_plain_comment(self):
        assert not classify("SELECT 1 /* DROP TABLE t */").has_disallowed_keyword

    def test_case_insensitive(self):
        verdict = classify("select * from t where x = 1 lock in share mode")
        assert verdict.disallowed_keywords == ("LOCK",)

    @pytest.mark.parametrize("name", ["start", "lock", "call", "begin", "commit", "we``drop"])
    def test_backtick_quoted_identifier_is_not_a_command(self, name):
        verdict = classify(f"DESCRIBE `{name}`")
        assert verdict.command == CommandKind.READ
        assert verdict.disallowed_keywords == ()

    def test_keyword_after_quoted_identifier_still_found(self):
        verdict = classify("SELECT `start` FROM t LOCK IN SHARE MODE")
        assert verdict.disallowed_keywords == ("LOCK",)

    def test_backtick_inside_string_literal_does_not_hide_keyword(self):
        verdict = classify("SELECT '`' FROM t WHERE 1 LOCK IN SHARE MODE AND x = '`'")
        assert verdict.disallowed_keywords == ("LOCK",)

    def test_string_literal_still_scanned(self):
        assert classify("SELECT 'drop' FROM t").disallowed_keywords == ("DROP",)


class TestCompatibilityWarnings:
    """Detection of constructs missing from MariaDB 10.0."""

    def test_window_function(self):
        verdict = classify("SELECT ROW_NUMBER() OVER (ORDER BY id) FROM t")
        constructs = [w.construct for w in verdict.warnings]
        assert "ROW_NUMBER(" in constructs
        assert "OVER(" in constructs
        assert {w.feature for w in verdict.warnings} == {FEATURE_WINDOW}

    def test_json_functions(self):
        verdict = classify("SELECT JSON_EXTRACT(doc, '$.a'), json_unquote(x) FROM t")
        assert [w.construct for w in verdict.warnings] == ["JSON_EXTRACT", "JSON_UNQUOTE"]
        assert all(w.feature == FEATURE_JSON for w in verdict.warnings)

    def test_fulltext_query_expansion(self):
        verdict = classify(
            "SELECT * FROM a WHERE MATCH (body) AGAINST ('db' "
            "IN NATURAL LANGUAGE MODE WITH QUERY EXPANSION)"
        )
        assert [w.feature for w in verdict.warnings] == [FEATURE_FULLTEXT]

    def test_rank_requires_call_syntax(self):
        assert classify("SELECT rank FROM t").warnings == ()
        assert classify("SELECT percent_rank(x) FROM t").warnings == ()

    def test_message_names_construct_and_target(self):
        (warning,) = classify("SELECT JSON_VALID(x) FROM t").warnings
        assert "JSON_VALID" in warning.message
        assert "MariaDB 10.0" in warning.message

    def test_plain_query_has_no_warnings(self):
        assert classify("SELECT id, name FROM users WHERE id = %s").warnings == ()


def test_verdict_ignores_configuration_state():
    assert classify("DELETE FROM t") == classify("DELETE FROM t")
