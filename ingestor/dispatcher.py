"""Fan-out of ordered log groups to every registered processor."""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import AsyncIterable, Sequence

from ingestor.errors import ProcessorError, SinkError
from ingestor.models import GroupedLogs
from ingestor.processors.base import Processor
from ingestor.sink import Sink

logger = logging.getLogger(__name__)


@dataclass
class DispatchSummary:
    groups: int = 0
    processor_errors: int = 0


class Dispatcher:
    """Runs all processors concurrently on each group, one group at a time.

    Group N+1 is only handed out after group N finished on every processor.
    Processor failures are logged and counted; a SinkError is re-raised.
    """

    def __init__(
        self,
        processors: Sequence[Processor],
        sink: Sink,
        max_workers: int | None = None,
    ) -> None:
        if not processors:
            raise ValueError("Dispatcher needs at least one processor")
        self.processors = list(processors)
        self.sink = sink
        self.summary = DispatchSummary()
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or len(self.processors),
            thread_name_prefix="processor",
        )

    async def __aenter__(self) -> "Dispatcher":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    async def run(self, groups: AsyncIterable[GroupedLogs]) -> DispatchSummary:
        """Dispatch every group from *groups* in order, then shut the pool down."""
        try:
            async for group in groups:
                await self.dispatch(group)
        finally:
            self.close()
        return self.summary

    async def dispatch(self, group: GroupedLogs) -> None:
        """Run every processor on *group* and wait for all of them."""
        loop = asyncio.get_running_loop()
        results = await asyncio.gather(
            *(
                loop.run_in_executor(self._executor, processor.process, group, self.sink)
                for processor in self.processors
            ),
            return_exceptions=True,
        )
        self.summary.groups += 1

        sink_error = None
        for processor, result in zip(self.processors, results):
            if isinstance(result, SinkError):
                sink_error = sink_error or result
            elif isinstance(result, Exception):
                self._report(ProcessorError(type(processor).__name__, group.time, result))

        if sink_error is not None:
            raise sink_error

    def _report(self, error: ProcessorError) -> None:
        self.summary.processor_errors += 1
        logger.error(
            "Processor %s failed on group %d: %s",
            error.processor, error.time, error.__cause__,
            exc_info=error.__cause__,
        )
