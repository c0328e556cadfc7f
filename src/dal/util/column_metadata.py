"""Helpers for building column metadata payloads from MariaDB cursors."""

from __future__ import annotations

from typing import Any, List, Optional

from pymysql.constants import FIELD_TYPE

LogicalType = str

# Native MariaDB wire type -> (reported type name, logical type)
_MARIADB_TYPES: dict[int, tuple[str, LogicalType]] = {
    FIELD_TYPE.DECIMAL: ("DECIMAL", "numeric"),
    FIELD_TYPE.NEWDECIMAL: ("DECIMAL", "numeric"),
    FIELD_TYPE.TINY: ("TINYINT", "integer"),
    FIELD_TYPE.SHORT: ("SMALLINT", "integer"),
    FIELD_TYPE.LONG: ("INT", "integer"),
    FIELD_TYPE.INT24: ("MEDIUMINT", "integer"),
    FIELD_TYPE.LONGLONG: ("BIGINT", "integer"),
    FIELD_TYPE.FLOAT: ("FLOAT", "float"),
    FIELD_TYPE.DOUBLE: ("DOUBLE", "float"),
    FIELD_TYPE.NULL: ("NULL", "unknown"),
    FIELD_TYPE.TIMESTAMP: ("TIMESTAMP", "timestamp"),
    FIELD_TYPE.DATETIME: ("DATETIME", "timestamp"),
    FIELD_TYPE.DATE: ("DATE", "date"),
    FIELD_TYPE.NEWDATE: ("DATE", "date"),
    FIELD_TYPE.TIME: ("TIME", "time"),
    FIELD_TYPE.YEAR: ("YEAR", "integer"),
    FIELD_TYPE.BIT: ("BIT", "binary"),
    FIELD_TYPE.JSON: ("JSON", "json"),
    FIELD_TYPE.ENUM: ("ENUM", "string"),
    FIELD_TYPE.SET: ("SET", "string"),
    FIELD_TYPE.TINY_BLOB: ("TINYBLOB", "binary"),
    FIELD_TYPE.MEDIUM_BLOB: ("MEDIUMBLOB", "binary"),
    FIELD_TYPE.LONG_BLOB: ("LONGBLOB", "binary"),
    FIELD_TYPE.BLOB: ("BLOB", "binary"),
    FIELD_TYPE.VARCHAR: ("VARCHAR", "string"),
    FIELD_TYPE.VAR_STRING: ("VARCHAR", "string"),
    FIELD_TYPE.STRING: ("CHAR", "string"),
    FIELD_TYPE.GEOMETRY: ("GEOMETRY", "binary"),
}


def build_column_meta(
    name: str,
    logical_type: LogicalType,
    db_type: Optional[str] = None,
    nullable: Optional[bool] = None,
) -> dict:
    """Return a normalized column metadata payload."""
    return {
        "name": name,
        "type": logical_type,
        "db_type": db_type,
        "nullable": nullable,
    }


def mariadb_type_info(type_code: Any) -> tuple[Optional[str], LogicalType]:
    """Map a DB-API type code to its reported type name and logical type."""
    if isinstance(type_code, int) and type_code in _MARIADB_TYPES:
        return _MARIADB_TYPES[type_code]
    return None, "unknown"


def columns_from_cursor_description(description: Optional[list]) -> List[dict]:
    """Build column metadata from DB-API cursor description tuples.

    Entries follow PEP 249: (name, type_code, display_size, internal_size,
    precision, scale, null_ok).
    """
    columns: List[dict] = []
    for entry in description or []:
        if not isinstance(entry, (list, tuple)) or not entry:
            continue
        type_code = entry[1] if len(entry) > 1 else None
        db_type, logical_type = mariadb_type_info(type_code)
        null_ok = entry[6] if len(entry) > 6 else None
        nullable = bool(null_ok) if null_ok is not None else None
        columns.append(
            build_column_meta(entry[0], logical_type, db_type=db_type, nullable=nullable)
        )
    return columns


def columns_from_rows(rows: list) -> List[dict]:
    """Fallback column metadata from dict rows when no cursor description exists."""
    if not rows or not isinstance(rows[0], dict):
        return []
    return [build_column_meta(key, "unknown") for key in rows[0].keys()]
