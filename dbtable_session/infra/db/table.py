"""Table gateway over the session table.

``TableGateway`` is the table-access handle the save handler works with: it
is bound to one SQLAlchemy Core ``Table`` and one ``AsyncEngine`` and offers
select/insert/update/delete plus dialect identifier quoting. Every call runs
in its own transaction (commit on success, rollback on error).

Example:
    table = build_session_table(SchemaConfig(), table_name="sessions")
    gateway = TableGateway(manager.engine, table)
    await gateway.create_table()

    await gateway.insert({"id": "abc", "name": "PHPSESSID", "data": "", ...})
    rows = await gateway.select({"id": "abc", "name": "PHPSESSID"})
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import (
    Column,
    ColumnElement,
    Index,
    Integer,
    MetaData,
    RowMapping,
    String,
    Table,
    Text,
    and_,
    delete,
    insert,
    select,
    text,
    update,
)
from sqlalchemy.ext.asyncio import AsyncEngine

from dbtable_session.session.schema import SchemaConfig

logger = logging.getLogger(__name__)

Filter = Mapping[str, Any] | ColumnElement[bool] | str


def build_session_table(
    schema: SchemaConfig,
    table_name: str = "sessions",
    metadata: MetaData | None = None,
) -> Table:
    """Build the session table definition from a column mapping.

    The table has no primary key; one row per (id, name) is kept by the save
    handler itself. A non-unique index on (id, name) serves the lookups.

    Args:
        schema: Column mapping
        table_name: Table name
        metadata: MetaData to attach the table to (a fresh one if omitted)

    Returns:
        SQLAlchemy Core Table
    """
    metadata = metadata if metadata is not None else MetaData()
    return Table(
        table_name,
        metadata,
        Column(schema.id_column, String(255), nullable=False, comment="Session identifier"),
        Column(schema.name_column, String(255), nullable=False, comment="Session name"),
        Column(schema.data_column, Text, nullable=True, comment="Serialized session payload"),
        Column(
            schema.modified_column,
            Integer,
            nullable=False,
            comment="Unix timestamp of last write",
        ),
        Column(
            schema.lifetime_column,
            Integer,
            nullable=False,
            comment="Session lifetime in seconds",
        ),
        Index(f"idx_{table_name}_id_name", schema.id_column, schema.name_column),
    )


class TableGateway:
    """Async CRUD access to a single table.

    The engine is borrowed: the gateway never disposes or reconfigures it.
    """

    def __init__(self, engine: AsyncEngine, table: Table) -> None:
        """Initialize table gateway.

        Args:
            engine: Async engine the table lives in
            table: Table definition to operate on
        """
        self.engine = engine
        self.table = table

    def _where(self, where: Filter) -> ColumnElement[bool]:
        """Build a WHERE clause from an equality mapping, expression or SQL string."""
        if isinstance(where, str):
            return text(where)  # type: ignore[return-value]
        if isinstance(where, Mapping):
            return and_(*(self.table.c[column] == value for column, value in where.items()))
        return where

    async def select(self, where: Filter) -> Sequence[RowMapping]:
        """Select rows matching a filter.

        Args:
            where: Column/value equality mapping, SQL expression or SQL string

        Returns:
            Matching rows as mappings keyed by column name
        """
        stmt = select(self.table).where(self._where(where))
        async with self.engine.connect() as conn:
            result = await conn.execute(stmt)
            return result.mappings().all()

    async def insert(self, values: Mapping[str, Any]) -> int:
        """Insert one row.

        Args:
            values: Column values

        Returns:
            Number of rows inserted
        """
        async with self.engine.begin() as conn:
            result = await conn.execute(insert(self.table).values(dict(values)))
            return result.rowcount

    async def update(self, values: Mapping[str, Any], where: Filter) -> int:
        """Update rows matching a filter.

        Args:
            values: Column values to set
            where: Column/value equality mapping, SQL expression or SQL string

        Returns:
            Number of rows updated
        """
        stmt = update(self.table).where(self._where(where)).values(dict(values))
        async with self.engine.begin() as conn:
            result = await conn.execute(stmt)
            return result.rowcount

    async def delete(self, where: Filter) -> int:
        """Delete rows matching a filter.

        Args:
            where: Column/value equality mapping, SQL expression or SQL string

        Returns:
            Number of rows deleted
        """
        stmt = delete(self.table).where(self._where(where))
        async with self.engine.begin() as conn:
            result = await conn.execute(stmt)
            return result.rowcount

    def quote_identifier(self, name: str) -> str:
        """Quote an identifier for the engine's SQL dialect."""
        return self.engine.dialect.identifier_preparer.quote_identifier(name)

    async def create_table(self) -> None:
        """Create the table and its index if they do not exist."""
        async with self.engine.begin() as conn:
            await conn.run_sync(self.table.metadata.create_all, tables=[self.table])
        logger.info("Session table ready", extra={"table_name": self.table.name})

    async def drop_table(self) -> None:
        """Drop the table if it exists."""
        async with self.engine.begin() as conn:
            await conn.run_sync(self.table.metadata.drop_all, tables=[self.table])
        logger.info("Session table dropped", extra={"table_name": self.table.name})


__all__ = ["Filter", "TableGateway", "build_session_table"]
