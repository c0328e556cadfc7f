from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

PROVIDER = "mariadb"

# MariaDB/MySQL server and client error numbers grouped by category.
_ERRNO_CATEGORIES: dict[int, str] = {
    1044: "auth",  # ER_DBACCESS_DENIED_ERROR
    1045: "auth",  # ER_ACCESS_DENIED_ERROR
    1142: "auth",  # ER_TABLEACCESS_DENIED_ERROR
    1143: "auth",  # ER_COLUMNACCESS_DENIED_ERROR
    1227: "auth",  # ER_SPECIFIC_ACCESS_DENIED_ERROR
    1064: "syntax",  # ER_PARSE_ERROR
    1149: "syntax",  # ER_SYNTAX_ERROR
    1049: "not_found",  # ER_BAD_DB_ERROR
    1054: "not_found",  # ER_BAD_FIELD_ERROR
    1146: "not_found",  # ER_NO_SUCH_TABLE
    1305: "not_found",  # ER_SP_DOES_NOT_EXIST
    1048: "constraint",  # ER_BAD_NULL_ERROR
    1062: "constraint",  # ER_DUP_ENTRY
    1364: "constraint",  # ER_NO_DEFAULT_FOR_FIELD
    1366: "constraint",  # ER_TRUNCATED_WRONG_VALUE_FOR_FIELD
    1406: "constraint",  # ER_DATA_TOO_LONG
    1451: "constraint",  # ER_ROW_IS_REFERENCED_2
    1452: "constraint",  # ER_NO_REFERENCED_ROW_2
    1178: "unsupported",  # ER_CHECK_NOT_IMPLEMENTED
    1235: "unsupported",  # ER_NOT_SUPPORTED_YET
    1205: "timeout",  # ER_LOCK_WAIT_TIMEOUT
    1213: "deadlock",  # ER_LOCK_DEADLOCK
    2002: "connectivity",  # CR_CONNECTION_ERROR
    2003: "connectivity",  # CR_CONN_HOST_ERROR
    2006: "connectivity",  # CR_SERVER_GONE_ERROR
    2013: "connectivity",  # CR_SERVER_LOST
    2055: "connectivity",  # CR_SERVER_LOST_EXTENDED
}

_RETRYABLE_CATEGORIES = {"timeout", "deadlock", "connectivity"}

# Recovery hints for each error category
RECOVERY_HINTS: dict[str, str] = {
    "timeout": "Retry later; the pool or a lock was busy",
    "connectivity": "Check network configuration and database availability",
    "auth": "Verify credentials and permission grants for the requested operation",
    "syntax": "Review SQL syntax; MariaDB 10.0 lacks some newer constructs",
    "not_found": "Check database, table and column names with list_tables/describe_table",
    "constraint": "The statement violates a column or key constraint",
    "unsupported": "This operation is not supported by the target server",
    "deadlock": "Retry the statement",
    "unknown": "Inspect error details for root cause",
}


@dataclass(frozen=True)
class ErrorClassification:
    """Structured provider-aware error classification."""

    category: str
    errno: Optional[int]
    is_retryable: bool

    @property
    def recovery_hint(self) -> str:
        """Short guidance for the caller."""
        return RECOVERY_HINTS.get(self.category, RECOVERY_HINTS["unknown"])


def extract_errno(exc: BaseException) -> Optional[int]:
    """Return the MariaDB error number carried by a PyMySQL exception."""
    args = getattr(exc, "args", ())
    if args and isinstance(args[0], int):
        return args[0]
    return None


def extract_driver_message(exc: BaseException) -> str:
    """Return the driver's message without the errno tuple formatting."""
    args = getattr(exc, "args", ())
    if len(args) >= 2 and isinstance(args[0], int):
        return f"({args[0]}) {args[1]}"
    message = str(exc).strip()
    return message or exc.__class__.__name__


def classify_error(exc: BaseException) -> str:
    """Classify an error into a provider-agnostic category."""
    return classify_error_info(exc).category


def classify_error_info(exc: BaseException) -> ErrorClassification:
    """Classify an error into a category with retryability."""
    errno = extract_errno(exc)
    category = _ERRNO_CATEGORIES.get(errno) if errno is not None else None

    if category is None:
        category = _classify_by_message(exc)

    return ErrorClassification(
        category=category,
        errno=errno,
        is_retryable=category in _RETRYABLE_CATEGORIES,
    )


def _classify_by_message(exc: BaseException) -> str:
    message = str(exc).lower()
    class_name = exc.__class__.__name__.lower()

    if isinstance(exc, TimeoutError) or _matches_any(message, ("timeout", "timed out")):
        return "timeout"
    if isinstance(exc, ConnectionError) or _matches_any(
        message,
        (
            "can't connect",
            "could not connect",
            "connection refused",
            "connection reset",
            "lost connection",
            "server has gone away",
        ),
    ):
        return "connectivity"
    if _matches_any(message, ("access denied", "permission denied", "command denied")):
        return "auth"
    if _matches_any(message, ("syntax error", "error in your sql syntax")):
        return "syntax"
    if _matches_any(message, ("doesn't exist", "unknown database", "unknown column")):
        return "not_found"
    if _matches_any(message, ("not supported", "unsupported")):
        return "unsupported"
    if class_name == "operationalerror":
        return "connectivity"
    if class_name == "programmingerror":
        return "syntax"
    if class_name == "integrityerror":
        return "constraint"
    return "unknown"


def log_classified_error(operation: str, exc: BaseException) -> ErrorClassification:
    """Classify an error, attach it to the active span and log it."""
    info = classify_error_info(exc)

    from opentelemetry import trace

    span = trace.get_current_span()
    if span and span.is_recording():
        span.set_attribute("error.classification.category", info.category)
        span.set_attribute("error.classification.provider", PROVIDER)
        span.set_attribute("error.classification.operation", operation)
        span.set_attribute("error.classification.is_retryable", info.is_retryable)
        if info.errno is not None:
            span.set_attribute("db.mariadb.errno", info.errno)

    logger.warning(
        "dal_error_classified operation=%s category=%s errno=%s error_type=%s retryable=%s",
        operation,
        info.category,
        info.errno,
        exc.__class__.__name__,
        info.is_retryable,
    )
    return info


def _matches_any(text: str, fragments: tuple[str, ...]) -> bool:
    return any(fragment in text for fragment in fragments)
