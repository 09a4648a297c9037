import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Iterable, Optional

from pydantic import TypeAdapter, ValidationError

from msgboard.exceptions import PersistenceError, StoreReadError
from msgboard.models import Message

logger = logging.getLogger(__name__)

_messages_adapter = TypeAdapter(list[Message])

FAIL_OPEN = "fail_open"
FAIL_CLOSED = "fail_closed"


class MessageStore:
    """
    Flat-file store holding the whole message collection as one JSON array.

    Every read parses the full file and every write replaces it. Records are
    kept in insertion order (oldest first).

    Read failures follow `read_failure_policy`: with "fail_open" they are
    logged and read as an empty collection, with "fail_closed" they raise
    StoreReadError. Write failures are always logged and raised as
    PersistenceError.

    `lock` serializes read-modify-write cycles within the process; callers
    mutating the collection hold it across read_all() and write_all().
    """

    def __init__(self, path, read_failure_policy: str = FAIL_OPEN):
        if read_failure_policy not in (FAIL_OPEN, FAIL_CLOSED):
            raise ValueError(f"Unknown read failure policy: {read_failure_policy}")
        self.path = Path(path)
        self.read_failure_policy = read_failure_policy
        self.lock = threading.RLock()

    def init(self) -> None:
        """
        Create the backing file with an empty array if it does not exist.
        Called during application startup. Existing data is never touched.
        """
        logger.debug(f"Initializing data file: {self.path}")
        if self.path.exists():
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text("[]", encoding="utf-8")
        except OSError as e:
            logger.error("Failed to create data file", extra={"error": str(e), "path": str(self.path)})
            raise PersistenceError(str(e)) from e
        logger.info("Data file created", extra={"path": str(self.path)})

    def read_all(self, fail_open: Optional[bool] = None) -> list[Message]:
        """
        Read and parse the entire collection.

        Args:
            fail_open: Override the store's policy for this call.

        Returns:
            Messages in insertion order.

        Raises:
            StoreReadError: The file is unreadable or malformed and the
                effective policy is fail-closed.
        """
        if fail_open is None:
            fail_open = self.read_failure_policy == FAIL_OPEN

        try:
            raw = self.path.read_text(encoding="utf-8")
            messages = _messages_adapter.validate_json(raw)
        except (OSError, ValueError) as e:
            # pydantic's ValidationError is a ValueError; covers bad JSON and bad records
            error = _describe(e)
            logger.error("Failed to read messages", extra={"error": error, "path": str(self.path)})
            if fail_open:
                return []
            raise StoreReadError(error) from e

        logger.debug(f"Read {len(messages)} messages from {self.path}")
        return messages

    def write_all(self, messages: Iterable[Message]) -> None:
        """
        Replace the collection with `messages`, pretty-printed.

        The data is written to a temporary file next to the target and moved
        into place, so a failed write leaves the previous contents intact.

        Raises:
            PersistenceError: Serialization or I/O failed.
        """
        messages = list(messages)
        tmp_name = None
        try:
            payload = json.dumps([m.to_record() for m in messages], indent=2, ensure_ascii=False)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, self.path)
            tmp_name = None
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to write messages", extra={"error": str(e), "path": str(self.path)})
            raise PersistenceError(str(e)) from e
        finally:
            if tmp_name is not None:
                _remove_quietly(tmp_name)

        logger.info("Messages saved", extra={"count": len(messages)})


def _describe(error: Exception) -> str:
    if isinstance(error, ValidationError):
        return f"malformed data file: {error.error_count()} invalid value(s)"
    return str(error)


def _remove_quietly(path: str) -> None:
    try:
        os.unlink(path)
    except OSError as e:
        logger.warning(f"Could not remove temporary file {path}: {e}")
