"""
Catalog Repository Interface

Abstract base class defining the contract for the durable sound catalog.
Implementations live in the infrastructure layer.
"""

from abc import ABC, abstractmethod
from pathlib import Path

from dwight_soundboard.domain.catalog.entities import (
    EntreeListEntry,
    Play,
    Sound,
    SoundListEntry,
)


class CatalogStore(ABC):
    """Abstract store for sounds, entrees, per-guild limits and the play log.

    Every mutating call is durably committed before it returns, so callers may
    trigger a soundboard rebuild right after it.
    """

    # === Sounds ===

    @abstractmethod
    async def get_sounds_for_guild(self, guild_id: int) -> list[SoundListEntry]:
        """List live (not deleted) sounds of a guild, ordered by name.

        Hidden sounds are included; callers filter on ``hidden``.
        """
        ...

    @abstractmethod
    async def get_sound(self, sound_id: int) -> Sound | None:
        """Get a live sound by id."""
        ...

    @abstractmethod
    async def get_sound_by_name(self, guild_id: int, name: str) -> Sound | None:
        """Get a live sound by its name (case-insensitive)."""
        ...

    @abstractmethod
    async def get_path_to_sound(self, sound_id: int) -> Path:
        """Resolve a sound to its audio file.

        Raises:
            SoundNotFoundError: If the sound is unknown, deleted, or its file is missing.
        """
        ...

    @abstractmethod
    async def add_sound(
        self,
        *,
        guild_id: int,
        name: str,
        hidden: bool,
        created_by: int | None,
        audio: bytes,
        file_extension: str,
    ) -> Sound:
        """Store a new sound and its audio.

        Raises:
            ValidationError: If the name is taken or the guild's sound limit is reached.
        """
        ...

    @abstractmethod
    async def remove_sound(self, guild_id: int, name: str) -> Sound:
        """Soft-delete a sound and delete every entree pointing at it.

        Raises:
            SoundNotFoundError: If no live sound has that name.
        """
        ...

    @abstractmethod
    async def rename_sound(self, guild_id: int, old_name: str, new_name: str) -> Sound:
        """Rename a sound.

        Raises:
            SoundNotFoundError: If no live sound is called *old_name*.
            ValidationError: If *new_name* is already taken.
        """
        ...

    @abstractmethod
    async def get_sound_limit(self, guild_id: int) -> int:
        """Maximum number of live sounds the guild may have."""
        ...

    @abstractmethod
    async def set_sound_limit(self, guild_id: int, max_sounds: int) -> None:
        ...

    # === Entrees ===

    @abstractmethod
    async def get_entree_sound_id_for_guild_user(self, guild_id: int, user_id: int) -> int | None:
        ...

    @abstractmethod
    async def set_entree(self, guild_id: int, user_id: int, sound_id: int) -> None:
        """Create or replace the entree of a user."""
        ...

    @abstractmethod
    async def remove_entree(self, guild_id: int, user_id: int) -> bool:
        """Delete the entree of a user. Returns False if there was none."""
        ...

    @abstractmethod
    async def get_entrees_for_guild(self, guild_id: int) -> list[EntreeListEntry]:
        ...

    # === Plays ===

    @abstractmethod
    async def record_play(self, user_id: int, sound_id: int) -> None:
        ...

    @abstractmethod
    async def get_plays_for_sound(self, sound_id: int, limit: int = 50) -> list[Play]:
        """Most recent plays of a sound, newest first."""
        ...

    # === Guild lifecycle ===

    @abstractmethod
    async def remove_all_data_for_guild(self, guild_id: int) -> None:
        """Delete all entrees and soft-delete all sounds of a guild."""
        ...
