"""Database engine management with connection pooling.

Manages the SQLAlchemy async engine backing the session table, with support
for both SQLite and PostgreSQL databases.

Key features:
- Connection pooling (PostgreSQL) and appropriate defaults (SQLite)
- In-memory SQLite shared across connections (tests, development)
- Global manager singleton pattern
"""

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

if TYPE_CHECKING:
    from dbtable_session.config import Settings

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Database engine manager with connection pooling.

    The engine is owned here, never by the save handler: handlers and table
    gateways borrow it and must not dispose it.

    Example:
        manager = DatabaseManager(settings)
        await manager.init()

        gateway = TableGateway(manager.engine, build_session_table(schema))
        ...

        await manager.close()
    """

    def __init__(self, settings: "Settings") -> None:
        """Initialize engine manager.

        Args:
            settings: Application settings
        """
        self.settings = settings
        self._engine: AsyncEngine | None = None

    async def init(self) -> None:
        """Initialize database engine.

        Creates async engine with appropriate configuration for SQLite or PostgreSQL.
        Must be called before using the engine property.
        """
        connect_args: dict[str, Any]
        pool_config: dict[str, Any]
        if self.settings.is_sqlite:
            connect_args = {
                "check_same_thread": False,
                "timeout": 30.0,  # Lock timeout
            }
            if ":memory:" in self.settings.database_url:
                # Every connection must see the same in-memory database
                pool_config = {"poolclass": StaticPool}
            else:
                pool_config = {}
        else:
            connect_args = {}
            pool_config = {
                "pool_size": self.settings.database_pool_size,
                "max_overflow": self.settings.database_max_overflow,
                "pool_pre_ping": True,
                "pool_recycle": 3600,
            }

        self._engine = create_async_engine(
            self.settings.database_url,
            echo=self.settings.database_echo,
            connect_args=connect_args,
            **pool_config,
        )

        logger.info(
            "Database engine initialized",
            extra={"database_driver": self.settings.database_driver},
        )

    async def close(self) -> None:
        """Close database engine and cleanup connections."""
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            logger.info("Database engine disposed")

    @property
    def engine(self) -> AsyncEngine:
        """Get database engine.

        Returns:
            AsyncEngine instance

        Raises:
            RuntimeError: If not initialized
        """
        if self._engine is None:
            raise RuntimeError("DatabaseManager not initialized. Call init() first.")
        return self._engine


# Global manager instance
_database_manager: DatabaseManager | None = None


def get_database_manager(settings: "Settings | None" = None) -> DatabaseManager:
    """Get global database manager instance (singleton).

    Args:
        settings: Application settings (global settings are used if omitted)

    Returns:
        DatabaseManager instance
    """
    global _database_manager

    if _database_manager is None:
        if settings is None:
            from dbtable_session.config import get_settings

            settings = get_settings()
        _database_manager = DatabaseManager(settings)

    return _database_manager


async def initialize_database_manager(settings: "Settings | None" = None) -> DatabaseManager:
    """Get the global database manager and make sure its engine is ready.

    Args:
        settings: Application settings (global settings are used if omitted)

    Returns:
        Initialized DatabaseManager instance
    """
    manager = get_database_manager(settings)
    if manager._engine is None:
        await manager.init()
    return manager


def reset_database_manager() -> None:
    """Reset global database manager (mainly for testing).

    This should only be used in test fixtures to ensure clean state.
    """
    global _database_manager
    _database_manager = None
