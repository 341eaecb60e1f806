"""Sliding-window traffic alarm with edge-triggered notifications."""

import logging
from collections import deque
from enum import Enum

from ingestor.errors import OutOfOrderError
from ingestor.models import GroupedLogs, format_number
from ingestor.sink import Sink

logger = logging.getLogger(__name__)

ALERT_BANNER = "\n\033[1;31m>>> ALERT\033[0m\n"


class AlertState(Enum):
    NORMAL = "normal"
    ALERTING = "alerting"


class Alerts:
    """Average requests/sec over a trailing window compared to a threshold.

    - NORMAL: a rate strictly above ``threshold`` writes a high-traffic alert
      and moves to ALERTING.
    - ALERTING: a rate at or below ``threshold`` writes a recovery message and
      moves back to NORMAL.

    Repeated evaluations on the same side of the threshold write nothing.
    """

    def __init__(self, threshold: float, window_seconds: int, highlight: bool = False) -> None:
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.threshold = threshold
        self.window_seconds = window_seconds
        self.highlight = highlight

        self.state = AlertState.NORMAL
        self.avg_rate = 0.0
        self._floor: int | None = None
        self._origin: int | None = None
        self._samples: deque[tuple[int, int]] = deque()  # (time, request count)

    def process(self, group: GroupedLogs, sink: Sink) -> None:
        time = group.time
        if self._floor is None:
            logger.debug("Alert window starts at %d", time)
            self._floor = self._origin = time

        if time < self._floor:
            raise OutOfOrderError(time, self._floor)

        self._samples.append((time, len(group)))
        self._origin = max(self._origin, time)

        if self._origin - self._floor >= self.window_seconds:
            self._floor = self._origin - self.window_seconds
            while self._samples and self._samples[0][0] < self._floor:
                self._samples.popleft()

        total = sum(count for _, count in self._samples)
        self.avg_rate = total / self.window_seconds
        above = self.avg_rate > self.threshold

        if above and self.state is AlertState.NORMAL:
            self.state = AlertState.ALERTING
            logger.info("Traffic alert raised at %d (%.3f req/s)", time, self.avg_rate)
            sink.write(self._prefix() + (
                f"High traffic generated an alert - hits = {format_number(self.avg_rate)}, "
                f"triggered at {time}\n"
            ))
        elif not above and self.state is AlertState.ALERTING:
            self.state = AlertState.NORMAL
            logger.info("Traffic recovered at %d (%.3f req/s)", time, self.avg_rate)
            sink.write(self._prefix() + (
                f"Normal traffic recovered - hits = {format_number(self.avg_rate)}, "
                f"recovered at {time}\n"
            ))

    def _prefix(self) -> str:
        return ALERT_BANNER if self.highlight else ""
