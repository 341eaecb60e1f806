"""Shared text output guarded by a lock so concurrent writers never interleave."""

import sys
import threading
from typing import TextIO

from ingestor.errors import SinkError


class Sink:
    """Thread-safe wrapper around a text stream.

    Each ``write`` holds the lock for exactly one message and its flush, so a
    multi-line block written in one call always appears contiguously.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdout
        self._lock = threading.Lock()
        self._writes = 0

    def write(self, message: str) -> None:
        """Write *message* atomically. Raises SinkError if the stream fails."""
        with self._lock:
            try:
                self._stream.write(message)
                self._stream.flush()
            except (OSError, ValueError) as e:
                raise SinkError(f"Failed to write to output: {e}") from e
            self._writes += 1

    @property
    def write_count(self) -> int:
        with self._lock:
            return self._writes
