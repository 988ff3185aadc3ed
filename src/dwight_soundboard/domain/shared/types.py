"""Reusable Pydantic Annotated types for domain-wide validation.

Every constrained type used across the catalog and playback contexts is
defined here once, so models can simply annotate their fields::

    from dwight_soundboard.domain.shared.types import DiscordSnowflake, SoundNameStr

    class MyModel(BaseModel):
        guild_id: DiscordSnowflake
        name: SoundNameStr
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

from pydantic import BeforeValidator, Field

# ── Numeric constraints ─────────────────────────────────────────────

DiscordSnowflake = Annotated[int, Field(gt=0, lt=2**64)]
"""Positive integer that fits a Discord snowflake (1 … 2^64-1)."""

NonNegativeInt = Annotated[int, Field(ge=0)]
"""Integer >= 0."""

PositiveInt = Annotated[int, Field(gt=0)]
"""Integer > 0."""


# ── String constraints ──────────────────────────────────────────────

NonEmptyStr = Annotated[str, Field(min_length=1)]
"""String with at least one character."""

MAX_SOUND_NAME_LENGTH: int = 64
"""Longest sound name the catalog stores."""

SoundNameStr = Annotated[str, Field(min_length=1, max_length=MAX_SOUND_NAME_LENGTH)]
"""Sound name: 1-64 characters."""

FileExtensionStr = Annotated[str, Field(pattern=r"^[a-z0-9]{1,8}$")]
"""Lower-case file extension without the leading dot."""


# ── File size constraints ──────────────────────────────────────────

BYTES_PER_KB: int = 1024
"""1 kibibyte = 1 024 bytes."""


# ── Domain-specific numeric constraints ─────────────────────────────

SoundId = PositiveInt
"""Catalog row id of a sound."""

MAX_SOUND_LIMIT: int = 1000


# ── Datetime constraints ────────────────────────────────────────────

def _ensure_utc(v: datetime) -> datetime:
    """Validate that a datetime is timezone-aware and normalise to UTC."""
    if v.tzinfo is None:
        raise ValueError("datetime must be timezone-aware (UTC)")
    return v.astimezone(UTC)


UtcDatetimeField = Annotated[datetime, BeforeValidator(_ensure_utc)]
"""Timezone-aware datetime, normalised to UTC on input."""
