"""Catalog entities: sounds, entrees and play records."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from dwight_soundboard.domain.shared.datetime_utils import utcnow
from dwight_soundboard.domain.shared.types import (
    DiscordSnowflake,
    FileExtensionStr,
    SoundId,
    SoundNameStr,
    UtcDatetimeField,
)
from dwight_soundboard.domain.shared.validators import sound_name_key


class Sound(BaseModel):
    """A named audio clip owned by one guild.

    Sounds are soft-deleted: ``deleted`` rows keep their id so play history
    stays intact, but they never show up in listings or resolve to a file.
    """

    model_config = ConfigDict(frozen=True)

    id: SoundId
    guild_id: DiscordSnowflake
    name: SoundNameStr
    hidden: bool = False
    deleted: bool = False
    created_by: DiscordSnowflake | None = None
    file_extension: FileExtensionStr = "mp3"

    @property
    def file_name(self) -> str:
        return f"{self.id}.{self.file_extension}"


class SoundListEntry(BaseModel):
    """Row returned by ``CatalogStore.get_sounds_for_guild``."""

    model_config = ConfigDict(frozen=True)

    id: SoundId
    name: SoundNameStr
    hidden: bool = False

    @property
    def sort_key(self) -> tuple[str, str]:
        return (sound_name_key(self.name), self.name)


class EntreeListEntry(BaseModel):
    """A user's entree with the sound name resolved."""

    model_config = ConfigDict(frozen=True)

    user_id: DiscordSnowflake
    sound_id: SoundId
    sound_name: SoundNameStr


class Play(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: DiscordSnowflake
    sound_id: SoundId
    played_at: UtcDatetimeField = Field(default_factory=utcnow)
