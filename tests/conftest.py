"""Shared pytest fixtures for the log-ingestor test suite."""

import io
import os

import pytest

from ingestor.models import GroupedLogs, HttpLog, LogRequest
from ingestor.sink import Sink

SAMPLE_CSV = os.path.join(os.path.dirname(__file__), "..", "logs", "sample.csv")


async def _aiter_lines(text: str):
    for line in text.splitlines(keepends=True):
        yield line


async def _aiter_items(items):
    for item in items:
        yield item


@pytest.fixture()
def sample_csv_path() -> str:
    return SAMPLE_CSV


@pytest.fixture()
def sample_csv_text() -> str:
    with open(SAMPLE_CSV, "r", encoding="utf-8") as f:
        return f.read()


@pytest.fixture()
def async_lines():
    """Factory: text -> async iterator of its lines."""
    return _aiter_lines


@pytest.fixture()
def async_items():
    """Factory: list -> async iterator over it."""
    return _aiter_items


@pytest.fixture()
def make_log():
    """Factory for a single HttpLog with overridable fields."""

    def _make(time: int, path: str = "/api/user", bytes: int = 100, host: str = "10.0.0.1") -> HttpLog:
        return HttpLog(
            remote_host=host,
            rfc931="-",
            auth_user="apache",
            time=time,
            request=LogRequest.from_str(f"GET {path} HTTP/1.0"),
            status=200,
            bytes=bytes,
        )

    return _make


@pytest.fixture()
def make_group(make_log):
    """Factory for a GroupedLogs of *count* identical records at *time*."""

    def _make(time: int, count: int, path: str = "/api/user") -> GroupedLogs:
        return GroupedLogs(time=time, logs=tuple(make_log(time, path) for _ in range(count)))

    return _make


@pytest.fixture()
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture()
def sink(output) -> Sink:
    return Sink(output)
