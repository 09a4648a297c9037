"""
Message service: business rules on top of the flat-file store.

The store is the only source of truth; nothing is cached between calls.
"""

import logging
from typing import Optional

from msgboard.exceptions import MessageNotFound, MessageValidationError
from msgboard.models import Message
from msgboard.storage import MessageStore
from msgboard.utils import MessageIdGenerator, id_generator, trim_text, utc_now_iso

logger = logging.getLogger(__name__)

DEFAULT_MAX_LENGTH = 500


class MessageService:
    """Create, list and delete messages held in a MessageStore."""

    def __init__(
        self,
        store: MessageStore,
        max_length: int = DEFAULT_MAX_LENGTH,
        ids: Optional[MessageIdGenerator] = None,
    ):
        self.store = store
        self.max_length = max_length
        self.ids = ids or id_generator

    def validate_text(self, text: Optional[str]) -> str:
        """
        Trim `text` and check it against the length rules.

        Returns:
            The trimmed text.

        Raises:
            MessageValidationError: Text is missing, blank, or too long.
        """
        if text is not None:
            text = trim_text(text)
        if not text:
            raise MessageValidationError("Message text is required")
        if len(text) > self.max_length:
            raise MessageValidationError(f"Message too long (max {self.max_length} characters)")
        return text

    def create(self, text: Optional[str]) -> Message:
        """
        Validate `text`, then append a new message to the store.

        Validation happens before the store is touched, so a rejected
        message causes no read and no write.
        """
        try:
            text = self.validate_text(text)
        except MessageValidationError as e:
            logger.info("Message rejected", extra={"reason": str(e)})
            raise

        with self.store.lock:
            messages = self.store.read_all()
            existing_ids = {m.id for m in messages}

            message_id = self.ids.next_id()
            while message_id in existing_ids:
                message_id = self.ids.next_id()

            message = Message(id=message_id, text=text, created_at=utc_now_iso())
            messages.append(message)
            self.store.write_all(messages)

        logger.info("Message created", extra={"id": message.id})
        return message

    def list_messages(self) -> list[Message]:
        """All messages, newest first."""
        messages = self.store.read_all()
        messages.reverse()
        return messages

    def delete(self, message_id: str) -> None:
        """
        Remove the message whose id equals `message_id` exactly.

        Raises:
            MessageNotFound: No message has that id; the store is not written.
        """
        with self.store.lock:
            messages = self.store.read_all()
            remaining = [m for m in messages if m.id != message_id]

            if len(remaining) == len(messages):
                raise MessageNotFound(message_id)

            self.store.write_all(remaining)

        logger.info("Message deleted", extra={"id": message_id})

    def health(self) -> dict:
        """
        Report service status and collection size.

        Status is always "healthy"; the count is read fail-open so a broken
        data file shows up as zero messages rather than as an error.
        """
        count = len(self.store.read_all(fail_open=True))
        return {
            "status": "healthy",
            "timestamp": utc_now_iso(),
            "count": count,
        }
