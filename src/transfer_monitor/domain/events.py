"""Domain models for session log events."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum


class LogLevel(Enum):
    """Severity of a session log event."""

    INFO = "info"
    WARN = "warn"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class LogEvent:
    """A single timestamped line of a transfer session narrative."""

    level: LogLevel
    message: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    def to_payload(self) -> dict[str, str]:
        """Return the JSON-ready wire representation."""
        stamp = self.timestamp.astimezone(UTC).isoformat(timespec="milliseconds")
        return {
            "level": self.level.value,
            "message": self.message,
            "timestamp": stamp.replace("+00:00", "Z"),
        }
