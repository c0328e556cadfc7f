"""Query admission and execution pipeline.

``QueryExecutor.run`` classifies a query, applies the admission policy,
executes it on a pooled session and normalizes the result. Policy rejections
never reach the connection layer.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from common.config.gateway_settings import GatewaySettings
from common.errors.exceptions import ExecutionFailed, QueryDenied
from common.policy.sql_classifier import classify
from common.policy.sql_policy import REASON_EMPTY_QUERY, decide
from common.sanitization.text import bound_public_message
from dal.error_classification import extract_driver_message, log_classified_error
from dal.mariadb.connection_manager import ConnectionManager
from dal.mariadb.quoting import is_valid_identifier
from dal.type_normalization import normalize_rows
from dal.util.column_metadata import columns_from_cursor_description, columns_from_rows

logger = logging.getLogger(__name__)

REASON_INVALID_PARAMS = "INVALID_PARAMS"
REASON_INVALID_DATABASE = "INVALID_DATABASE"


@dataclass
class QueryResult:
    """Normalized outcome of one admitted query."""

    rows: List[Dict[str, Any]] = field(default_factory=list)
    columns: List[Dict[str, Any]] = field(default_factory=list)
    rows_returned: int = 0
    total_rows: Optional[int] = None
    is_truncated: bool = False
    warnings: List[str] = field(default_factory=list)
    affected_rows: Optional[int] = None
    last_insert_id: Optional[int] = None
    execution_time_ms: Optional[float] = None


class QueryExecutor:
    """Runs caller SQL through classification, admission and execution."""

    def __init__(self, manager: ConnectionManager) -> None:
        """Bind the executor to a connection manager and its settings."""
        self._manager = manager

    @property
    def settings(self) -> GatewaySettings:
        """Settings of the underlying connection manager."""
        return self._manager.settings

    @property
    def manager(self) -> ConnectionManager:
        """The connection manager sessions are drawn from."""
        return self._manager

    async def run(
        self,
        sql: Any,
        params: Optional[Sequence[Any]] = None,
        database: Optional[str] = None,
    ) -> QueryResult:
        """Admit, execute and normalize one query.

        Args:
            sql: Query text exactly as it should reach the server.
            params: Positional values bound to ``%s`` placeholders.
            database: Database to switch to before executing.

        Returns:
            The normalized result.

        Raises:
            QueryDenied: if the query fails validation or admission.
            ExecutionFailed: if the server or driver rejected the query.
        """
        settings = self.settings

        if not isinstance(sql, str) or not sql.strip():
            raise QueryDenied("Query must be a non-empty string.", REASON_EMPTY_QUERY)

        bound_params = self._validate_params(params)
        if database is not None and not is_valid_identifier(database):
            raise QueryDenied(
                f"Invalid database name {database!r}: use 1-64 letters, digits, '_' or '$'.",
                REASON_INVALID_DATABASE,
            )

        verdict = classify(sql)
        decision = decide(verdict, settings)
        if not decision.allowed:
            logger.info(
                "Query denied (command=%s reason_code=%s)",
                verdict.leading_token,
                decision.reason_code,
            )
            raise QueryDenied(decision.reason, decision.reason_code, decision.warnings)

        for warning in decision.warnings:
            logger.warning("Compatibility warning: %s", warning)

        if settings.debug_sql:
            logger.debug("Executing SQL: %s (params=%d)", sql, len(bound_params))
        else:
            logger.debug(
                "Executing %s statement (length=%d params=%d)",
                verdict.leading_token,
                len(sql),
                len(bound_params),
            )

        started = time.monotonic()
        try:
            raw = await self._manager.execute(sql, bound_params, database=database)
        except Exception as exc:
            info = log_classified_error("execute_query", exc)
            raise ExecutionFailed(
                bound_public_message(extract_driver_message(exc), "Query execution failed."),
                category=info.category,
                retryable=info.is_retryable,
            ) from exc
        execution_time_ms = (time.monotonic() - started) * 1000

        result = QueryResult(warnings=list(decision.warnings), execution_time_ms=execution_time_ms)
        if raw.has_result_set:
            rows, truncated = normalize_rows(raw.rows, settings.row_limit)
            result.rows = rows
            result.columns = columns_from_cursor_description(raw.description) or columns_from_rows(
                rows
            )
            result.rows_returned = len(rows)
            result.is_truncated = truncated
            if raw.rowcount is not None and raw.rowcount >= 0:
                result.total_rows = raw.rowcount
        else:
            result.affected_rows = raw.rowcount
            result.last_insert_id = raw.lastrowid or None

        logger.info(
            "Query executed (command=%s rows=%d truncated=%s affected=%s elapsed_ms=%.1f)",
            verdict.leading_token,
            result.rows_returned,
            result.is_truncated,
            result.affected_rows,
            execution_time_ms,
        )
        return result

    @staticmethod
    def _validate_params(params: Any) -> List[Any]:
        if params is None:
            return []
        if not isinstance(params, (list, tuple)):
            raise QueryDenied(
                "Query parameters must be a list of positional values.", REASON_INVALID_PARAMS
            )
        return list(params)
