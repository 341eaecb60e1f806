"""Contract shared by every analytic processor."""

from typing import Protocol, runtime_checkable

from ingestor.models import GroupedLogs
from ingestor.sink import Sink


@runtime_checkable
class Processor(Protocol):
    """Consumes ordered log groups and writes findings to a shared sink.

    Each implementation owns its accumulation state exclusively. ``process``
    raises on failure; the dispatcher isolates the error from siblings.
    """

    def process(self, group: GroupedLogs, sink: Sink) -> None: ...
