"""Database infrastructure module.

Key components:
- engine: Async engine management with connection pooling
- table: Table gateway over the session table
"""

from dbtable_session.infra.db.engine import (
    DatabaseManager,
    get_database_manager,
    initialize_database_manager,
    reset_database_manager,
)
from dbtable_session.infra.db.table import TableGateway, build_session_table

__all__ = [
    # Engine management
    "DatabaseManager",
    "get_database_manager",
    "initialize_database_manager",
    "reset_database_manager",
    # Table access
    "TableGateway",
    "build_session_table",
]
