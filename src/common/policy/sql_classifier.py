"""Lexical classification of SQL statements.

The classifier never parses SQL. It strips comments, normalizes whitespace and
matches keywords on an uppercased copy, so it errs on the side of flagging
too much: a disallowed word inside a string literal or used as a bare identifier
is still reported.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple

from common.sql.comments import strip_sql_comments

READ_COMMANDS = frozenset({"SELECT", "SHOW", "DESCRIBE", "DESC", "EXPLAIN"})
WRITE_COMMANDS = frozenset({"INSERT", "UPDATE", "DELETE"})

DISALLOWED_COMMANDS: Tuple[str, ...] = (
    "DROP",
    "CREATE",
    "ALTER",
    "TRUNCATE",
    "RENAME",
    "REPLACE",
    "GRANT",
    "REVOKE",
    "LOCK",
    "UNLOCK",
    "CALL",
    "EXEC",
    "EXECUTE",
    "START",
    "BEGIN",
    "COMMIT",
    "ROLLBACK",
)

FEATURE_JSON = "JSON functions"
FEATURE_WINDOW = "window functions"
FEATURE_FULLTEXT = "full-text query expansion"

TARGET_SERVER = "MariaDB 10.0"

# (construct label, feature group, pattern) for constructs missing from the target server.
UNSUPPORTED_FEATURES: Tuple[Tuple[str, str, "re.Pattern[str]"], ...] = tuple(
    (label, feature, re.compile(pattern))
    for label, feature, pattern in (
        ("JSON_EXTRACT", FEATURE_JSON, r"\bJSON_EXTRACT\b"),
        ("JSON_UNQUOTE", FEATURE_JSON, r"\bJSON_UNQUOTE\b"),
        ("JSON_OBJECT", FEATURE_JSON, r"\bJSON_OBJECT\b"),
        ("JSON_ARRAY", FEATURE_JSON, r"\bJSON_ARRAY\b"),
        ("JSON_VALID", FEATURE_JSON, r"\bJSON_VALID\b"),
        ("JSON_TYPE", FEATURE_JSON, r"\bJSON_TYPE\b"),
        ("JSON_COMPACT", FEATURE_JSON, r"\bJSON_COMPACT\b"),
        ("JSON_LOOSE", FEATURE_JSON, r"\bJSON_LOOSE\b"),
        ("JSON_DETAILED", FEATURE_JSON, r"\bJSON_DETAILED\b"),
        (
            "MATCH ... AGAINST ... WITH QUERY EXPANSION",
            FEATURE_FULLTEXT,
            r"\bMATCH\b.*\bAGAINST\b.*\bIN NATURAL LANGUAGE MODE WITH QUERY EXPANSION\b",
        ),
        ("WINDOW FUNCTION", FEATURE_WINDOW, r"\bWINDOW FUNCTION\b"),
        ("OVER(", FEATURE_WINDOW, r"\bOVER\s*\("),
        ("ROW_NUMBER(", FEATURE_WINDOW, r"\bROW_NUMBER\s*\("),
        ("RANK(", FEATURE_WINDOW, r"(?<![\w$])RANK\s*\("),
        ("DENSE_RANK(", FEATURE_WINDOW, r"\bDENSE_RANK\s*\("),
        ("PARTITION BY", FEATURE_WINDOW, r"\bPARTITION BY\b"),
    )
)

_DISALLOWED_RE = re.compile(r"(?<![\w$])(" + "|".join(DISALLOWED_COMMANDS) + r")(?![\w$])")
# String literals are matched alongside backtick identifiers so a backtick inside a
# literal never opens an identifier span.
_QUOTED_SPAN_RE = re.compile(
    r"'(?:[^'\\]|\\.|'')*'" r'|"(?:[^"\\]|\\.|"")*"' r"|`(?:[^`]|``)*`",
    re.DOTALL,
)
_LEADING_TOKEN_RE = re.compile(r"[A-Z_]+")
_WHITESPACE_RE = re.compile(r"\s+")


class CommandKind(str, Enum):
    """Category of a statement's leading command."""

    READ = "read"
    WRITE = "write"
    OTHER = "other"
    EMPTY = "empty"


@dataclass(frozen=True)
class CompatibilityWarning:
    """A construct the target server generation does not support."""

    feature: str
    construct: str

    @property
    def message(self) -> str:
        """Human-readable warning text."""
        return (
            f"Query uses '{self.construct}' ({self.feature}), which may not be supported "
            f"in {TARGET_SERVER}. Consider using alternative syntax."
        )


@dataclass(frozen=True)
class ClassificationVerdict:
    """Outcome of classifying one SQL text. Independent of configuration."""

    command: CommandKind
    leading_token: Optional[str] = None
    disallowed_keywords: Tuple[str, ...] = ()
    has_multiple_statements: bool = False
    warnings: Tuple[CompatibilityWarning, ...] = ()

    @property
    def has_disallowed_keyword(self) -> bool:
        """True when any administrative/destructive keyword was found."""
        return bool(self.disallowed_keywords)

    @property
    def warning_messages(self) -> list[str]:
        """Warning texts in detection order."""
        return [warning.message for warning in self.warnings]


def normalize_sql(sql: str) -> str:
    """Return the comment-free, whitespace-collapsed, uppercased working copy."""
    stripped = strip_sql_comments(sql)
    return _WHITESPACE_RE.sub(" ", stripped).strip().upper()


def has_multiple_statements(normalized: str) -> bool:
    """Return True when the text holds more than one statement.

    A single trailing separator is tolerated; any other separator, including a
    second trailing one, marks an additional statement.
    """
    body = normalized.rstrip()
    if body.endswith(";"):
        body = body[:-1]
    return ";" in body


def mask_quoted_identifiers(normalized: str) -> str:
    """Blank the contents of backtick-quoted identifiers, leaving string literals intact."""

    def _mask(match: "re.Match[str]") -> str:
        span = match.group(0)
        return "``" if span.startswith("`") else span

    return _QUOTED_SPAN_RE.sub(_mask, normalized)


def find_disallowed_keywords(normalized: str) -> Tuple[str, ...]:
    """Return disallowed commands found as standalone words (deduplicated).

    Backtick-quoted identifiers are skipped; a quoted name is never a command.
    String literals are still scanned.
    """
    seen: list[str] = []
    for match in _DISALLOWED_RE.finditer(mask_quoted_identifiers(normalized)):
        keyword = match.group(1)
        if keyword not in seen:
            seen.append(keyword)
    return tuple(seen)


def find_compatibility_warnings(normalized: str) -> Tuple[CompatibilityWarning, ...]:
    """Return one warning per unsupported construct present in the text."""
    return tuple(
        CompatibilityWarning(feature=feature, construct=label)
        for label, feature, pattern in UNSUPPORTED_FEATURES
        if pattern.search(normalized)
    )


def _leading_command(normalized: str) -> Tuple[CommandKind, Optional[str]]:
    match = _LEADING_TOKEN_RE.match(normalized)
    if not match:
        return CommandKind.OTHER, normalized.split(" ", 1)[0] or None
    token = match.group(0)
    if token in READ_COMMANDS:
        return CommandKind.READ, token
    if token in WRITE_COMMANDS:
        return CommandKind.WRITE, token
    return CommandKind.OTHER, token


def classify(sql: Any) -> ClassificationVerdict:
    """Classify a raw SQL text.

    Args:
        sql: The query as received from the caller. Non-string input is
            classified as empty.

    Returns:
        A verdict describing the leading command, statement count, any
        disallowed keywords and compatibility warnings.
    """
    if not isinstance(sql, str):
        return ClassificationVerdict(command=CommandKind.EMPTY)

    normalized = normalize_sql(sql)
    if not normalized or normalized == ";":
        return ClassificationVerdict(command=CommandKind.EMPTY)

    command, token = _leading_command(normalized)
    return ClassificationVerdict(
        command=command,
        leading_token=token,
        disallowed_keywords=find_disallowed_keywords(normalized),
        has_multiple_statements=has_multiple_statements(normalized),
        warnings=find_compatibility_warnings(normalized),
    )
