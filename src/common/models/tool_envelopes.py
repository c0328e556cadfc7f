"""Typed envelope models for tool IO."""

from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field, field_validator

from common.models.error_metadata import ToolError

# Current schema version for future-proofing
CURRENT_SCHEMA_VERSION = "1.0"
CURRENT_TOOL_VERSION = "v1"
T = TypeVar("T")


class ExecuteQueryMetadata(BaseModel):
    """Metadata for SQL query execution results."""

    tool_version: str = Field(
        default=CURRENT_TOOL_VERSION,
        description="Version of the execute_query response contract",
    )
    provider: str = Field("mariadb", description="Database provider")
    rows_returned: int = Field(..., description="Number of rows in the response")
    is_truncated: bool = Field(False, description="Whether rows were cut at the row limit")
    row_limit: Optional[int] = Field(None, description="Configured row cap (0 disables)")
    total_rows: Optional[int] = Field(
        None, description="Row count reported by the driver before truncation, when known"
    )
    affected_rows: Optional[int] = Field(None, description="Rows changed by a write statement")
    last_insert_id: Optional[int] = Field(None, description="Auto-increment id of an INSERT")
    warnings: List[str] = Field(
        default_factory=list, description="Compatibility warnings for the target server"
    )
    execution_time_ms: Optional[float] = None


class ExecuteQueryResponseEnvelope(BaseModel):
    """Standardized envelope for execute_query tool responses."""

    schema_version: str = Field(default=CURRENT_SCHEMA_VERSION)
    rows: List[Dict[str, Any]] = Field(default_factory=list)
    columns: Optional[List[Dict[str, Any]]] = None
    metadata: ExecuteQueryMetadata
    error: Optional[ToolError] = None

    @field_validator("rows", mode="before")
    @classmethod
    def validate_rows(cls, v):
        """Ensure rows is always a list."""
        if v is None:
            return []
        return v

    def is_error(self) -> bool:
        """Check if the envelope represents an error."""
        return self.error is not None


class GenericToolMetadata(BaseModel):
    """Generic metadata for tool responses."""

    tool_version: str = Field(
        default=CURRENT_TOOL_VERSION,
        description="Version of the tool response contract",
    )
    provider: str = Field("mariadb", description="Database or system provider")
    execution_time_ms: Optional[float] = None
    items_returned: Optional[int] = None
    is_truncated: Optional[bool] = Field(
        None, description="Whether items were cut at the row limit"
    )
    row_limit: Optional[int] = Field(None, description="Configured row cap (0 disables)")
    database: Optional[str] = None
    warnings: Optional[List[str]] = None


class ToolResponseEnvelope(BaseModel, Generic[T]):
    """Standardized envelope for enumeration tool responses."""

    schema_version: str = Field(default=CURRENT_SCHEMA_VERSION)
    result: Optional[T] = None
    metadata: GenericToolMetadata = Field(default_factory=GenericToolMetadata)
    error: Optional[ToolError] = None

    def is_error(self) -> bool:
        """Check if the envelope represents an error."""
        return self.error is not None
