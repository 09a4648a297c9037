"""
Error taxonomy for the message board.

Validation and lookup failures are expected outcomes of user input and map
to 4xx responses. Store failures are logged where they happen and surface
as generic 5xx responses.
"""


class MessageBoardError(Exception):
    """Base class for all message board errors."""


class MessageValidationError(MessageBoardError):
    """Message text is missing, blank, or too long."""


class MessageNotFound(MessageBoardError):
    """No stored message has the requested id."""

    def __init__(self, message_id: str):
        super().__init__(f"Message not found: {message_id}")
        self.message_id = message_id


class StoreError(MessageBoardError):
    """Base class for failures of the backing file."""


class PersistenceError(StoreError):
    """The collection could not be written."""


class StoreReadError(StoreError):
    """The collection could not be read (only raised when failing closed)."""
