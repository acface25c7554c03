"""Exceptions raised by the session save handler.

Database failures are not wrapped: SQLAlchemy errors raised by the table
gateway propagate to the caller unchanged. The exceptions here only cover
misuse of the handler itself.
"""


class SessionHandlerError(Exception):
    """Base exception for save handler errors."""

    def __init__(self, message: str, *, context: dict | None = None) -> None:
        """Initialize save handler error.

        Args:
            message: Human-readable error message
            context: Additional context about the error
        """
        self.message = message
        self.context = context or {}
        super().__init__(message)


class SessionNotOpenError(SessionHandlerError):
    """Raised when a session operation runs before open().

    Context should include:
        - operation: The operation that was attempted

    Example:
        raise SessionNotOpenError(
            "Save handler not opened. Call open() first.",
            context={"operation": "read"},
        )
    """

    pass


__all__ = ["SessionHandlerError", "SessionNotOpenError"]
