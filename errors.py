"""
Exception types shared by the builder, the store and both web layers.

- ConfigurationError: the author supplied an invalid or incomplete configuration
- SessionStateError: an authoring operation was called in the wrong mode
- EscapeRoomNotFound: no persisted record for the requested identifier
- StorageUnavailable: the relational store failed (retryable, never retried automatically)
"""


class EscapeRoomError(Exception):
    """Base class for every error raised by this project."""


class ConfigurationError(EscapeRoomError):
    """Invalid author input. The operation is aborted without changing state."""


class SessionStateError(EscapeRoomError):
    """An operation that is not allowed in the current authoring mode."""


class EscapeRoomNotFound(EscapeRoomError):

    def __init__(self, room_id: str):
        super().__init__(f"Escape room not found: {room_id}")
        self.room_id = room_id


class StorageUnavailable(EscapeRoomError):
    """Wraps driver/ORM failures at the storage boundary."""
