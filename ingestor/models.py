"""HTTP access-log records and the per-second groups built from them."""

from dataclasses import dataclass
from decimal import Decimal


def section_of(path: str) -> str:
    """Return the first path segment: from index 0 up to the next '/'."""
    end = path.find("/", 1)
    return path if end == -1 else path[:end]


def format_number(value: float | int) -> str:
    """Render a number in its shortest positional form.

    ``1.0`` -> ``1``, ``1.5`` -> ``1.5``, ``1e-09`` -> ``0.000000001``. Never
    uses exponent notation.
    """
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return format(Decimal(repr(value)), "f")
    return str(value)


@dataclass(frozen=True)
class LogRequest:
    verb: str
    path: str
    section: str
    protocol: str

    @classmethod
    def from_str(cls, line: str) -> "LogRequest":
        """Parse ``"VERB PATH PROTOCOL"``. Raises ValueError on missing parts."""
        parts = line.split()
        if not parts:
            raise ValueError(f"Invalid request, no verb: {line!r}")
        if len(parts) < 2:
            raise ValueError(f"Invalid request, no path: {line!r}")
        if len(parts) < 3:
            raise ValueError(f"Invalid request, no protocol: {line!r}")
        verb, path, protocol = parts[:3]
        return cls(verb=verb, path=path, section=section_of(path), protocol=protocol)


@dataclass(frozen=True)
class HttpLog:
    remote_host: str
    rfc931: str
    auth_user: str
    time: int
    request: LogRequest
    status: int
    bytes: int

    @property
    def section(self) -> str:
        return self.request.section


@dataclass(frozen=True)
class GroupedLogs:
    """All records sharing one timestamp, in arrival order."""

    time: int
    logs: tuple[HttpLog, ...]

    def __post_init__(self):
        if not self.logs:
            raise ValueError("GroupedLogs requires at least one record")

    def __len__(self) -> int:
        return len(self.logs)
