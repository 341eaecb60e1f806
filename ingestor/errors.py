"""Error types raised across the ingestion pipeline."""


class IngestorError(Exception):
    """Base class for every error raised by the ingestor."""


class ParseError(IngestorError):
    """A malformed input line. Yielded as a value by the reader, never raised
    into the pipeline."""

    def __init__(self, line_number: int, reason: str, raw: str = "") -> None:
        super().__init__(f"line {line_number}: {reason}")
        self.line_number = line_number
        self.reason = reason
        self.raw = raw


class OutOfOrderError(IngestorError):
    """A group arrived with a timestamp below a processor's window floor."""

    def __init__(self, time: int, floor: int) -> None:
        super().__init__(
            f"Log group time {time} is less than the window floor {floor}. "
            "Try to adjust the resequencer buffer seconds."
        )
        self.time = time
        self.floor = floor


class ProcessorError(IngestorError):
    """Any other failure inside a processor, tagged with its identity."""

    def __init__(self, processor: str, time: int, cause: BaseException) -> None:
        super().__init__(f"{processor} failed on group {time}: {cause}")
        self.processor = processor
        self.time = time
        self.__cause__ = cause


class SinkError(IngestorError):
    """Writing to the output sink failed. Always fatal."""
