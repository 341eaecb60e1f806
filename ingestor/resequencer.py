"""Resequencer: restores time order for a stream with bounded skew.

Records are buffered by timestamp until the spread between the lowest and
highest buffered timestamps exceeds the window, then the lowest group is
released. Emitted groups are strictly increasing in time; a record that
arrives for a second that was already released is dropped as late.
"""

import bisect
import logging
from typing import AsyncIterable

from ingestor.errors import ParseError
from ingestor.models import GroupedLogs, HttpLog

logger = logging.getLogger(__name__)


class Resequencer:
    """Async iterator of GroupedLogs over a source of HttpLog | ParseError.

    The only suspension point is the await on the source; buffering itself
    never blocks. Not restartable: once exhausted it stays exhausted.
    """

    def __init__(self, source: AsyncIterable[HttpLog | ParseError], window_seconds: int) -> None:
        if window_seconds < 0:
            raise ValueError("window_seconds must not be negative")
        self._source = aiter(source)
        self._window = window_seconds
        self._exhausted = False

        self._groups: dict[int, list[HttpLog]] = {}
        self._times: list[int] = []  # ascending
        self._low: int | None = None
        self._high: int | None = None
        self._last_emitted: int | None = None

        self._parse_errors = 0
        self._late_records = 0
        self._groups_emitted = 0

    def __aiter__(self) -> "Resequencer":
        return self

    async def __anext__(self) -> GroupedLogs:
        while not self._exhausted and self._spread() <= self._window:
            try:
                item = await anext(self._source)
            except StopAsyncIteration:
                self._exhausted = True
                break
            self._accept(item)

        if self._times:
            return self._pop_lowest()

        raise StopAsyncIteration

    # Counters

    @property
    def parse_errors(self) -> int:
        return self._parse_errors

    @property
    def late_records(self) -> int:
        return self._late_records

    @property
    def groups_emitted(self) -> int:
        return self._groups_emitted

    @property
    def buffered_times(self) -> list[int]:
        return list(self._times)

    # Internal helpers

    def _spread(self) -> int:
        if self._low is None or self._high is None:
            return 0
        return self._high - self._low

    def _accept(self, item: HttpLog | ParseError) -> None:
        if isinstance(item, ParseError):
            self._parse_errors += 1
            logger.warning("Skipping unparseable log line: %s", item)
            return

        time = item.time
        if self._last_emitted is not None and time <= self._last_emitted:
            self._late_records += 1
            logger.warning(
                "Dropping late log at %d, group %d was already released",
                time, self._last_emitted,
            )
            return

        self._low = time if self._low is None else min(self._low, time)
        self._high = time if self._high is None else max(self._high, time)

        group = self._groups.get(time)
        if group is None:
            group = self._groups[time] = []
            bisect.insort(self._times, time)
        group.append(item)

    def _pop_lowest(self) -> GroupedLogs:
        time = self._times.pop(0)
        logs = self._groups.pop(time)
        self._low = self._times[0] if self._times else self._high
        self._last_emitted = time
        self._groups_emitted += 1
        return GroupedLogs(time=time, logs=tuple(logs))
