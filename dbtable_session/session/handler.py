"""Save handler interface.

A save handler is the persistence backend a session subsystem delegates to.
The subsystem owns session ids, payload serialization and cookies; the
handler only stores opaque payload strings keyed by (session id, session
name) and expires them.

Lifecycle for one request:
    await handler.open(save_path, name)
    data = await handler.read(session_id)
    ...
    await handler.write(session_id, data)
    await handler.close()

gc() runs periodically, outside the request cycle or probabilistically
within it.
"""

from abc import ABC, abstractmethod


class SaveHandler(ABC):
    """Abstract base class for session save handlers."""

    @abstractmethod
    async def open(self, save_path: str, name: str) -> bool:
        """Start a session handling cycle.

        Args:
            save_path: Backend-specific save path
            name: Session name (namespace)

        Returns:
            True on success
        """

    @abstractmethod
    async def close(self) -> bool:
        """End a session handling cycle.

        Returns:
            True on success
        """

    @abstractmethod
    async def read(self, session_id: str, destroy_expired: bool = True) -> str:
        """Read session data.

        Args:
            session_id: Session identifier
            destroy_expired: Delete the session if it has expired

        Returns:
            Serialized payload, or empty string if absent or expired
        """

    @abstractmethod
    async def write(self, session_id: str, data: str | None) -> bool:
        """Write session data.

        Args:
            session_id: Session identifier
            data: Serialized payload (None is stored as empty)

        Returns:
            True if the payload was stored
        """

    @abstractmethod
    async def destroy(self, session_id: str) -> bool:
        """Destroy a session.

        Args:
            session_id: Session identifier

        Returns:
            True on success
        """

    @abstractmethod
    async def gc(self, maxlifetime: int) -> bool:
        """Delete expired sessions.

        Args:
            maxlifetime: Max lifetime in seconds requested by the caller

        Returns:
            True on success
        """
