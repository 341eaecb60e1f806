"""Async CSV ingestion: turns access-log lines into HttpLog records.

Malformed rows are yielded as ParseError values so a single bad line never
aborts the stream; the consumer decides how to report them.
"""

import csv
import logging
import sys
from typing import AsyncIterable, AsyncIterator

import aiofiles

from ingestor.errors import ParseError
from ingestor.models import HttpLog, LogRequest

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("remotehost", "rfc931", "authuser", "date", "request", "status", "bytes")
MAX_STATUS = 65535


def open_source(path: str | None = None):
    """Open *path* (or stdin when None) as an async text stream.

    Returns an aiofiles context manager; use with ``async with``. Bytes that
    are not valid UTF-8 are kept as surrogate escapes so that
    ``read_csv_async`` can report the offending line instead of failing the
    whole read.
    """
    if path is None:
        return aiofiles.open(
            sys.stdin.fileno(), mode="r", encoding="utf-8", errors="surrogateescape", closefd=False
        )
    return aiofiles.open(path, mode="r", encoding="utf-8", errors="surrogateescape")


def is_valid_text(line: str) -> bool:
    """False if *line* holds undecodable bytes (surrogate escapes or U+FFFD)."""
    if "\ufffd" in line:
        return False
    try:
        line.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def split_row(line: str) -> list[str]:
    """Split one CSV line into trimmed, unquoted fields."""
    fields = next(csv.reader([line], skipinitialspace=True), [])
    return [f.strip() for f in fields]


def _parse_unsigned(value: str, name: str, maximum: int | None = None) -> int:
    number = int(value)
    if number < 0:
        raise ValueError(f"{name} must not be negative: {value}")
    if maximum is not None and number > maximum:
        raise ValueError(f"{name} out of range: {value}")
    return number


def parse_row(columns: dict[str, int], fields: list[str], line_number: int) -> HttpLog | ParseError:
    """Build an HttpLog from split fields using the header's column positions."""
    try:
        values = {name: fields[index] for name, index in columns.items()}
    except IndexError:
        return ParseError(line_number, f"expected {len(columns)} columns, got {len(fields)}")

    try:
        return HttpLog(
            remote_host=values["remotehost"],
            rfc931=values["rfc931"],
            auth_user=values["authuser"],
            time=_parse_unsigned(values["date"], "date"),
            request=LogRequest.from_str(values["request"]),
            status=_parse_unsigned(values["status"], "status", MAX_STATUS),
            bytes=_parse_unsigned(values["bytes"], "bytes"),
        )
    except ValueError as e:
        return ParseError(line_number, str(e))


def parse_header(fields: list[str]) -> dict[str, int]:
    """Map required column names to their positions. Raises ValueError if one is missing."""
    positions = {name: index for index, name in enumerate(fields) if name}
    missing = [name for name in REQUIRED_COLUMNS if name not in positions]
    if missing:
        raise ValueError(f"CSV header is missing columns: {', '.join(missing)}")
    return {name: positions[name] for name in REQUIRED_COLUMNS}


async def read_csv_async(lines: AsyncIterable[str]) -> AsyncIterator[HttpLog | ParseError]:
    """Yield one HttpLog or ParseError per data line of *lines*.

    The first non-blank line is the header. A header without the expected
    columns raises ValueError, since no row could be read against it.
    """
    columns = None
    line_number = 0
    async for line in lines:
        line_number += 1
        if not line.strip():
            continue

        if columns is not None and not is_valid_text(line):
            yield ParseError(line_number, "invalid UTF-8")
            continue

        fields = split_row(line)
        if columns is None:
            columns = parse_header(fields)
            logger.debug("CSV header parsed: %s", columns)
            continue

        yield parse_row(columns, fields, line_number)
