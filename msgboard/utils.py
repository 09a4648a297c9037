"""
Utility functions for the message board: timestamps, message ids and trimming.
"""

import logging
import re
import threading
import time
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class MessageIdGenerator:
    """
    Issue message ids derived from the creation instant in milliseconds.

    Ids are strictly increasing within the process: when the clock has not
    moved past the last issued value (two creates in the same millisecond,
    or the clock stepping backwards), the previous id plus one is used.
    """

    def __init__(self, clock=None):
        self._clock = clock or (lambda: int(time.time() * 1000))
        self._last = 0
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            candidate = self._clock()
            if candidate <= self._last:
                logger.debug(f"Clock at {candidate} not past last id {self._last}, bumping")
                candidate = self._last + 1
            self._last = candidate
            return str(candidate)


# Process-wide generator shared by every MessageService
id_generator = MessageIdGenerator()


# Unicode whitespace plus the byte order mark, which str.strip() keeps
_EDGE_WHITESPACE = re.compile(r"\A[\s\ufeff]+|[\s\ufeff]+\Z")


def trim_text(text: str) -> str:
    """Strip leading/trailing whitespace, including U+FEFF."""
    return _EDGE_WHITESPACE.sub("", text)
