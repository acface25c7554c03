"""Session save handler storing sessions in a database table.

Each session is one row keyed by (session id, session name). Rows carry the
serialized payload, the unix timestamp of their last write and the lifetime
captured when they were created; a row is valid while
``modified + lifetime > now``.

Example:
    manager = await initialize_database_manager(settings)
    handler = DbTableSaveHandler.from_settings(settings, manager.engine)

    await handler.open("/tmp", "PHPSESSID")
    await handler.write("abc", "foo=1")
    await handler.read("abc")  # "foo=1"
    await handler.close()
"""

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from dbtable_session.exceptions import SessionNotOpenError
from dbtable_session.infra.db.table import TableGateway, build_session_table
from dbtable_session.infra.observability.metrics import (
    gc_deleted_sessions_total,
    record_operation,
    save_handler_operation_duration_seconds,
)
from dbtable_session.session.handler import SaveHandler
from dbtable_session.session.schema import SchemaConfig, SessionRecord

if TYPE_CHECKING:
    from dbtable_session.config import Settings

logger = logging.getLogger(__name__)


def _unix_now() -> int:
    return int(time.time())


class DbTableSaveHandler(SaveHandler):
    """Save handler backed by a table gateway.

    The server's max session lifetime is injected as ``max_lifetime`` (an int,
    or a callable returning one) and captured on every open(). Rows keep the
    lifetime they were created with; gc() sweeps with the captured value.

    Database errors are not translated: they propagate from the gateway
    unchanged after being counted.
    """

    def __init__(
        self,
        gateway: TableGateway,
        schema: SchemaConfig | None = None,
        max_lifetime: int | Callable[[], int] = 1440,
        clock: Callable[[], int] | None = None,
    ) -> None:
        """Initialize save handler.

        Args:
            gateway: Table gateway bound to the session table (externally owned)
            schema: Column mapping of the session table
            max_lifetime: Server max session lifetime in seconds, or a provider of it
            clock: Returns the current unix timestamp in seconds
        """
        self.gateway = gateway
        self.schema = schema if schema is not None else SchemaConfig()
        self.max_lifetime = max_lifetime
        self.clock = clock if clock is not None else _unix_now

        self.save_path: str | None = None
        self.session_name: str | None = None
        self.lifetime: int | None = None

    @classmethod
    def from_settings(
        cls,
        settings: "Settings",
        engine: AsyncEngine,
        clock: Callable[[], int] | None = None,
    ) -> "DbTableSaveHandler":
        """Build a handler for the table described by settings.

        Args:
            settings: Application settings
            engine: Async engine holding the session table
            clock: Optional clock override

        Returns:
            DbTableSaveHandler instance
        """
        schema = settings.schema_config()
        table = build_session_table(schema, table_name=settings.session_table_name)
        return cls(
            TableGateway(engine, table),
            schema=schema,
            max_lifetime=lambda: settings.session_gc_maxlifetime,
            clock=clock,
        )

    def _require_open(self, operation: str) -> str:
        if self.session_name is None or self.lifetime is None:
            raise SessionNotOpenError(
                "Save handler not opened. Call open() first.",
                context={"operation": operation},
            )
        return self.session_name

    async def open(self, save_path: str, name: str) -> bool:
        """Record save path and session name and capture the max lifetime."""
        self.save_path = save_path
        self.session_name = name
        self.lifetime = int(
            self.max_lifetime() if callable(self.max_lifetime) else self.max_lifetime
        )

        logger.debug(
            "Session save handler opened",
            extra={"session_name": name, "lifetime": self.lifetime},
        )
        record_operation("open", "success")
        return True

    async def close(self) -> bool:
        """Nothing to release: the gateway is externally owned."""
        record_operation("close", "success")
        return True

    async def read(self, session_id: str, destroy_expired: bool = True) -> str:
        """Read session data.

        An expired row is destroyed unless ``destroy_expired`` is False.
        Absent, expired and empty sessions all read as an empty string.

        Args:
            session_id: Session identifier
            destroy_expired: Delete the row if it has expired

        Returns:
            Stored payload, or empty string
        """
        operation = "read"
        session_name = self._require_open(operation)
        try:
            with save_handler_operation_duration_seconds.labels(operation=operation).time():
                rows = await self.gateway.select(self.schema.key_filter(session_id, session_name))
        except SQLAlchemyError:
            record_operation(operation, "error")
            logger.error(
                "Session read failed",
                extra={"session_id": session_id, "session_name": session_name},
                exc_info=True,
            )
            raise

        if not rows:
            record_operation(operation, "miss")
            return ""

        record = self.schema.record_from_row(rows[0])
        if not record.is_expired(self.clock()):
            record_operation(operation, "hit")
            return record.data

        logger.debug(
            "Session expired",
            extra={
                "session_id": session_id,
                "session_name": session_name,
                "status": "destroyed" if destroy_expired else "kept",
            },
        )
        record_operation(operation, "expired")
        if destroy_expired:
            await self.destroy(session_id)
        return ""

    async def write(self, session_id: str, data: str | None) -> bool:
        """Store session data.

        Updates the existing row's payload and modification time in place, or
        inserts a new row with the lifetime captured at open(). The lifetime of
        an existing row is never changed.
        A None payload is stored as an empty string.

        Returns:
            True if a row was updated or inserted
        """
        operation = "write"
        session_name = self._require_open(operation)
        key = self.schema.key_filter(session_id, session_name)
        now = self.clock()
        payload = "" if data is None else str(data)
        try:
            with save_handler_operation_duration_seconds.labels(operation=operation).time():
                if await self.gateway.select(key):
                    values = {
                        self.schema.modified_column: now,
                        self.schema.data_column: payload,
                    }
                    affected = await self.gateway.update(values, key)
                    status = "updated"
                else:
                    record = SessionRecord(
                        id=session_id,
                        name=session_name,
                        data=payload,
                        modified=now,
                        lifetime=int(self.lifetime),  # type: ignore[arg-type]
                    )
                    affected = await self.gateway.insert(self.schema.record_to_values(record))
                    status = "inserted"
        except SQLAlchemyError:
            record_operation(operation, "error")
            logger.error(
                "Session write failed",
                extra={"session_id": session_id, "session_name": session_name},
                exc_info=True,
            )
            raise

        logger.debug(
            "Session written",
            extra={
                "session_id": session_id,
                "session_name": session_name,
                "status": status,
                "rows_affected": affected,
            },
        )
        record_operation(operation, status if affected else "not_stored")
        return bool(affected)

    async def destroy(self, session_id: str) -> bool:
        """Delete every row of the session. Succeeds whether or not one existed."""
        operation = "destroy"
        session_name = self._require_open(operation)
        try:
            with save_handler_operation_duration_seconds.labels(operation=operation).time():
                deleted = await self.gateway.delete(
                    self.schema.key_filter(session_id, session_name)
                )
        except SQLAlchemyError:
            record_operation(operation, "error")
            logger.error(
                "Session destroy failed",
                extra={"session_id": session_id, "session_name": session_name},
                exc_info=True,
            )
            raise

        logger.debug(
            "Session destroyed" if deleted else "Session not found for destroy",
            extra={
                "session_id": session_id,
                "session_name": session_name,
                "rows_affected": deleted,
            },
        )
        record_operation(operation, "success" if deleted else "not_found")
        return True

    async def gc(self, maxlifetime: int) -> bool:
        """Delete rows last modified before ``now - lifetime``.

        The lifetime captured at open() is used; ``maxlifetime`` is accepted
        for interface compatibility and ignored. Rows of every session name
        are swept. Deleting nothing is still a success.
        """
        operation = "gc"
        self._require_open(operation)
        cutoff = self.clock() - int(self.lifetime)  # type: ignore[arg-type]
        predicate = "%s < %d" % (
            self.gateway.quote_identifier(self.schema.modified_column),
            cutoff,
        )
        try:
            with save_handler_operation_duration_seconds.labels(operation=operation).time():
                deleted = await self.gateway.delete(predicate)
        except SQLAlchemyError:
            record_operation(operation, "error")
            logger.error("Session garbage collection failed", exc_info=True)
            raise

        if deleted > 0:
            gc_deleted_sessions_total.inc(deleted)
        logger.info(
            "Session garbage collection finished",
            extra={
                "operation": operation,
                "lifetime": self.lifetime,
                "rows_affected": deleted,
            },
        )
        record_operation(operation, "success")
        return True


__all__ = ["DbTableSaveHandler"]
