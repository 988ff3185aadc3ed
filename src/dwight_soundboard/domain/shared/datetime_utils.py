"""Date/time helpers.

All timestamps are timezone-aware UTC. The database stores them as ISO 8601
strings with an explicit ``+00:00`` offset.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

from ...domain.shared.messages import ErrorMessages


@dataclass(frozen=True, slots=True)
class UtcDateTime:
    """A tiny value-object wrapper around a timezone-aware UTC `datetime`."""

    dt: datetime

    def __post_init__(self) -> None:
        if self.dt.tzinfo is None:
            raise ValueError(ErrorMessages.TIMEZONE_REQUIRED_UTC_DATETIME)
        object.__setattr__(self, "dt", self.dt.astimezone(UTC))

    @classmethod
    def now(cls) -> UtcDateTime:
        return cls(datetime.now(UTC))

    @classmethod
    def from_iso(cls, value: str) -> UtcDateTime:
        # Accepts: '...+00:00' or '...Z'; naive values written by SQLite are UTC
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        parsed = datetime.fromisoformat(value)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return cls(parsed)

    @property
    def iso(self) -> str:
        """RFC3339/ISO8601 with explicit offset (+00:00)."""
        return self.dt.isoformat()

    @property
    def unix_seconds(self) -> int:
        return int(self.dt.timestamp())

    def discord_timestamp(self, style: str = "R") -> str:
        """Discord timestamp markup, e.g. ``<t:1700000000:R>``."""
        return f"<t:{self.unix_seconds}:{style}>"


def utcnow() -> datetime:
    """Timezone-aware "now" in UTC."""
    return datetime.now(UTC)
