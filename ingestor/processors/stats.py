"""Periodic per-section traffic summary."""

import logging
from collections import defaultdict

from ingestor.models import GroupedLogs, HttpLog, format_number
from ingestor.sink import Sink

logger = logging.getLogger(__name__)


class Stats:
    """Accumulates records per section and reports every ``period_seconds``.

    ``Avg Time`` is elapsed seconds per request, the reciprocal of the rate;
    the input carries no duration field.
    """

    def __init__(self, period_seconds: int, sort_sections: bool = False) -> None:
        if period_seconds <= 0:
            raise ValueError("period_seconds must be positive")
        self.period_seconds = period_seconds
        self.sort_sections = sort_sections
        self._buckets: dict[str, list[HttpLog]] = defaultdict(list)
        self._last_flush = 0

    def process(self, group: GroupedLogs, sink: Sink) -> None:
        for log in group.logs:
            self._buckets[log.section].append(log)

        elapsed = group.time - self._last_flush
        if elapsed < self.period_seconds:
            return

        logger.debug("Flushing stats for %d section(s) after %ds", len(self._buckets), elapsed)
        sink.write(self.render(elapsed))
        self._buckets.clear()
        self._last_flush = group.time

    def render(self, elapsed: int) -> str:
        """Format the current buckets as one stats block."""
        rows = [(section, logs) for section, logs in self._buckets.items() if logs]
        if self.sort_sections:
            rows.sort(key=lambda row: (-len(row[1]), row[0]))

        lines = [f"\nSTATS ({elapsed}s):\n********\n"]
        for section, logs in rows:
            hits = len(logs)
            total_bytes = sum(log.bytes for log in logs)
            lines.append(
                f"Section: {section}, Total Hits: {hits}, "
                f"Avg Reqs/Sec: {format_number(hits / elapsed)}, "
                f"Avg Time: {format_number(elapsed / hits)}s, "
                f"Avg Bytes: {total_bytes // hits}\n"
            )
        return "".join(lines)
