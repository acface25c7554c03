"""Session save handlers.

Provides the save handler interface and its database table backend:
- SaveHandler: abstract open/close/read/write/destroy/gc interface
- DbTableSaveHandler: stores sessions as rows of a configurable table
"""

from dbtable_session.session.dbtable import DbTableSaveHandler
from dbtable_session.session.handler import SaveHandler
from dbtable_session.session.schema import SchemaConfig, SessionRecord

__all__ = [
    "SaveHandler",
    "DbTableSaveHandler",
    "SchemaConfig",
    "SessionRecord",
]
