"""Session table column mapping and typed session rows.

The session table layout is configurable: every logical field of a session
row (id, name, data, modified, lifetime) is stored in a column whose name is
supplied through ``SchemaConfig``. The mapping is validated once, when the
config is built, and rows coming back from the table are converted into
``SessionRecord`` instances so the rest of the code never looks columns up
by name.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SchemaConfig(BaseModel):
    """Names of the columns backing each session field.

    Example:
        schema = SchemaConfig(id_column="sess_id", data_column="payload")
        schema.key_filter("abc", "PHPSESSID")
        # {"sess_id": "abc", "name": "PHPSESSID"}
    """

    model_config = ConfigDict(frozen=True)

    id_column: str = Field(default="id", min_length=1, description="Session id column")
    name_column: str = Field(default="name", min_length=1, description="Session name column")
    data_column: str = Field(default="data", min_length=1, description="Payload column")
    modified_column: str = Field(
        default="modified", min_length=1, description="Last write unix timestamp column"
    )
    lifetime_column: str = Field(
        default="lifetime", min_length=1, description="Lifetime in seconds column"
    )

    @model_validator(mode="after")
    def validate_distinct_columns(self) -> "SchemaConfig":
        """All five columns must be distinct."""
        columns = self.columns()
        if any(not c.strip() for c in columns):
            raise ValueError("Session column names must be non-empty")
        duplicates = sorted({c for c in columns if columns.count(c) > 1})
        if duplicates:
            raise ValueError(f"Session column names must be distinct: {', '.join(duplicates)}")
        return self

    def columns(self) -> list[str]:
        """Column names in (id, name, data, modified, lifetime) order."""
        return [
            self.id_column,
            self.name_column,
            self.data_column,
            self.modified_column,
            self.lifetime_column,
        ]

    def key_filter(self, session_id: str, session_name: str) -> dict[str, str]:
        """Equality filter selecting the row(s) of one session."""
        return {self.id_column: session_id, self.name_column: session_name}

    def record_from_row(self, row: Mapping[str, Any]) -> "SessionRecord":
        """Convert a table row into a ``SessionRecord``.

        A NULL data column reads back as an empty payload.
        """
        data = row[self.data_column]
        return SessionRecord(
            id=str(row[self.id_column]),
            name=str(row[self.name_column]),
            data="" if data is None else str(data),
            modified=int(row[self.modified_column]),
            lifetime=int(row[self.lifetime_column]),
        )

    def record_to_values(self, record: "SessionRecord") -> dict[str, Any]:
        """Convert a ``SessionRecord`` into insertable column values."""
        return {
            self.id_column: record.id,
            self.name_column: record.name,
            self.data_column: record.data,
            self.modified_column: record.modified,
            self.lifetime_column: record.lifetime,
        }


@dataclass(frozen=True)
class SessionRecord:
    """One session row.

    Attributes:
        id: Session identifier supplied by the caller
        name: Session name (namespace) set by open()
        data: Opaque serialized payload
        modified: Unix timestamp of the last write
        lifetime: Lifetime in seconds, captured when the row was created
    """

    id: str
    name: str
    data: str
    modified: int
    lifetime: int

    @property
    def expires_at(self) -> int:
        """Unix timestamp from which the session is expired."""
        return self.modified + self.lifetime

    def is_expired(self, now: int) -> bool:
        """Whether the session is no longer valid at ``now``."""
        return self.expires_at <= now


__all__ = ["SchemaConfig", "SessionRecord"]
