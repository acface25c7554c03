"""dbtable-session - HTTP session save handler backed by a relational table.

This package persists opaque session payloads into a configurable database
table and exposes the open/close/read/write/destroy/gc save handler
interface a session subsystem delegates persistence to.
"""

__version__ = "0.1.0"
__author__ = "dbtable-session Contributors"

from dbtable_session.config import Settings, get_settings, load_settings_from_file, set_settings

__all__ = [
    "Settings",
    "__version__",
    "get_settings",
    "load_settings_from_file",
    "set_settings",
]
