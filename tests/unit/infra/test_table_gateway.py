"""Tests for the session table gateway against in-memory SQLite."""

import pytest
from sqlalchemy import Integer, MetaData, String, Text, inspect

from dbtable_session.infra.db.engine import DatabaseManager
from dbtable_session.infra.db.table import TableGateway, build_session_table
from dbtable_session.session.schema import SchemaConfig, SessionRecord


def _values(schema: SchemaConfig, session_id: str, modified: int = 100, data: str = "x") -> dict:
    return schema.record_to_values(
        SessionRecord(id=session_id, name="PHPSESSID", data=data, modified=modified, lifetime=60)
    )


class TestBuildSessionTable:
    """Tests for build_session_table()."""

    def test_columns_follow_schema(self) -> None:
        schema = SchemaConfig(id_column="sess_id", data_column="payload")
        table = build_session_table(schema, table_name="php_sessions")

        assert table.name == "php_sessions"
        assert [c.name for c in table.columns] == [
            "sess_id",
            "name",
            "payload",
            "modified",
            "lifetime",
        ]
        assert isinstance(table.c.sess_id.type, String)
        assert isinstance(table.c.payload.type, Text)
        assert isinstance(table.c.modified.type, Integer)
        assert table.c.payload.nullable is True

    def test_no_primary_key(self) -> None:
        table = build_session_table(SchemaConfig())
        assert list(table.primary_key.columns) == []

    def test_index_on_id_and_name(self) -> None:
        table = build_session_table(SchemaConfig(), table_name="sessions")
        (index,) = table.indexes
        assert index.name == "idx_sessions_id_name"
        assert [c.name for c in index.columns] == ["id", "name"]
        assert index.unique is False

    def test_uses_given_metadata(self) -> None:
        metadata = MetaData()
        table = build_session_table(SchemaConfig(), metadata=metadata)
        assert metadata.tables["sessions"] is table


class TestTableGateway:
    """Tests for TableGateway CRUD operations."""

    @pytest.mark.asyncio
    async def test_create_table_is_idempotent(
        self, gateway: TableGateway, database: DatabaseManager
    ) -> None:
        await gateway.create_table()

        async with database.engine.connect() as conn:
            tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
        assert "sessions" in tables

    @pytest.mark.asyncio
    async def test_insert_and_select(self, gateway: TableGateway, schema: SchemaConfig) -> None:
        assert await gateway.insert(_values(schema, "abc")) == 1

        rows = await gateway.select({"id": "abc", "name": "PHPSESSID"})

        assert len(rows) == 1
        assert rows[0]["data"] == "x"
        assert await gateway.select({"id": "missing"}) == []

    @pytest.mark.asyncio
    async def test_update_returns_affected_count(
        self, gateway: TableGateway, schema: SchemaConfig
    ) -> None:
        await gateway.insert(_values(schema, "abc"))

        assert await gateway.update({"data": "y"}, {"id": "abc"}) == 1
        assert await gateway.update({"data": "z"}, {"id": "missing"}) == 0

        rows = await gateway.select({"id": "abc"})
        assert rows[0]["data"] == "y"

    @pytest.mark.asyncio
    async def test_delete_with_mapping(self, gateway: TableGateway, schema: SchemaConfig) -> None:
        await gateway.insert(_values(schema, "abc"))
        await gateway.insert(_values(schema, "def"))

        assert await gateway.delete({"id": "abc", "name": "PHPSESSID"}) == 1
        assert await gateway.select({"id": "abc"}) == []
        assert len(await gateway.select({"id": "def"})) == 1

    @pytest.mark.asyncio
    async def test_delete_with_sql_string(
        self, gateway: TableGateway, schema: SchemaConfig
    ) -> None:
        await gateway.insert(_values(schema, "old", modified=10))
        await gateway.insert(_values(schema, "new", modified=500))

        predicate = f"{gateway.quote_identifier('modified')} < 100"
        assert await gateway.delete(predicate) == 1

        assert await gateway.select({"id": "old"}) == []
        assert len(await gateway.select({"id": "new"})) == 1

    @pytest.mark.asyncio
    async def test_delete_with_expression(
        self, gateway: TableGateway, schema: SchemaConfig
    ) -> None:
        await gateway.insert(_values(schema, "abc", modified=10))

        assert await gateway.delete(gateway.table.c.modified < 100) == 1

    @pytest.mark.asyncio
    async def test_delete_nothing_returns_zero(self, gateway: TableGateway) -> None:
        assert await gateway.delete({"id": "missing"}) == 0

    @pytest.mark.asyncio
    async def test_quote_identifier_always_quotes(self, gateway: TableGateway) -> None:
        assert gateway.quote_identifier("modified") == '"modified"'

    @pytest.mark.asyncio
    async def test_drop_table(self, gateway: TableGateway, database: DatabaseManager) -> None:
        await gateway.drop_table()

        async with database.engine.connect() as conn:
            tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
        assert "sessions" not in tables
