from dataclasses import asdict, dataclass, field
from typing import Any, Generic, List, Optional, Protocol, Sequence, TypeVar

from dal.mariadb.quoting import quote_identifier

T = TypeVar("T")


class StatementRunner(Protocol):
    """Anything that runs one admitted statement and returns normalized rows."""

    async def run(
        self,
        sql: str,
        params: Optional[Sequence[Any]] = None,
        database: Optional[str] = None,
    ) -> Any:
        """Run ``sql`` and return an object exposing ``rows`` and ``is_truncated``."""
        ...


@dataclass
class Enumeration(Generic[T]):
    """Items of one enumeration statement, in server order."""

    items: List[T] = field(default_factory=list)
    is_truncated: bool = False


@dataclass(frozen=True)
class ColumnDescriptor:
    """One row of ``DESCRIBE`` output."""

    name: str
    type: str
    nullable: bool
    key: Optional[str] = None
    default: Any = None
    extra: Optional[str] = None

    def to_dict(self) -> dict:
        """Return the JSON-safe mapping exposed to callers."""
        return asdict(self)


class MariadbSchemaIntrospector:
    """Enumerates databases, tables and columns with fixed read-only statements.

    Every statement goes through the same runner as caller queries, so the
    admission policy and row cap apply here too.
    """

    def __init__(self, runner: StatementRunner) -> None:
        """Bind the introspector to a statement runner."""
        self._runner = runner

    async def list_databases(self) -> Enumeration[str]:
        """Return database names in server order."""
        result = await self._runner.run("SHOW DATABASES")
        return _enumerate(result, _first_value)

    async def list_tables(self, database: Optional[str] = None) -> Enumeration[str]:
        """Return table names of ``database`` (or the session default) in server order."""
        result = await self._runner.run("SHOW TABLES", database=database)
        return _enumerate(result, _first_value)

    async def describe_table(
        self, table: str, database: Optional[str] = None
    ) -> Enumeration[ColumnDescriptor]:
        """Return column descriptors of ``table`` in ordinal order.

        Raises:
            ValueError: if ``table`` is not a plain identifier.
        """
        quoted = quote_identifier(table, "table")
        result = await self._runner.run(f"DESCRIBE {quoted}", database=database)
        return _enumerate(result, _column_from_row)


def _enumerate(result: Any, convert) -> Enumeration:
    return Enumeration(
        items=[convert(row) for row in result.rows],
        is_truncated=result.is_truncated,
    )


def _first_value(row: Any) -> Any:
    # SHOW output names its single column after the database (Tables_in_<db>).
    if isinstance(row, dict):
        return next(iter(row.values()), None)
    if isinstance(row, (list, tuple)):
        return row[0] if row else None
    return row


def _column_from_row(row: dict) -> ColumnDescriptor:
    return ColumnDescriptor(
        name=row.get("Field"),
        type=row.get("Type"),
        nullable=str(row.get("Null", "")).upper() == "YES",
        key=row.get("Key") or None,
        default=row.get("Default"),
        extra=row.get("Extra") or None,
    )
