"""Validated catalog mutations that announce themselves once committed."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ...domain.shared.events import CatalogChanged, CatalogChangeReason
from ...domain.shared.exceptions import SoundNotFoundError, ValidationError
from ...domain.shared.messages import ErrorMessages, LogTemplates
from ...domain.shared.types import BYTES_PER_KB
from ...domain.shared.validators import file_extension, validate_sound_name

if TYPE_CHECKING:
    from ...config.settings import AudioSettings, CatalogSettings
    from ...domain.catalog.entities import EntreeListEntry, Play, Sound, SoundListEntry
    from ...domain.catalog.repository import CatalogStore
    from ...domain.shared.events import EventBus

logger = logging.getLogger(__name__)


class CatalogService:
    """Front door for every change to a guild's sounds and entrees.

    Sound mutations publish :class:`CatalogChanged` only after the store call
    has returned, so a rebuild triggered by the event always sees the new state.
    Entree changes do not affect the rendered channel and publish nothing.
    """

    def __init__(
        self,
        *,
        catalog_store: CatalogStore,
        event_bus: EventBus,
        audio_settings: AudioSettings,
        catalog_settings: CatalogSettings,
    ) -> None:
        self._store = catalog_store
        self._bus = event_bus
        self._audio = audio_settings
        self._catalog = catalog_settings

    # ─────────────────────────────────────────────────────────────────
    # Validation
    # ─────────────────────────────────────────────────────────────────

    def normalise_name(self, name: str, field: str = "name") -> str:
        try:
            return validate_sound_name(name, self._catalog.max_sound_name_length)
        except ValueError as exc:
            raise ValidationError(str(exc), field=field) from exc

    def check_upload(self, filename: str, size: int) -> str:
        """Validate an upload before downloading it. Returns its extension."""
        extension = file_extension(filename)
        if extension not in self._audio.allowed_extensions:
            raise ValidationError(
                ErrorMessages.FILE_TYPE_NOT_ALLOWED.format(
                    extension=extension or "?",
                    allowed=", ".join(self._audio.allowed_extensions),
                ),
                field="file",
            )
        if size <= 0:
            raise ValidationError(ErrorMessages.EMPTY_AUDIO_FILE, field="file")
        if size > self._audio.max_file_size_bytes:
            raise ValidationError(
                ErrorMessages.FILE_TOO_LARGE.format(
                    size=-(-size // BYTES_PER_KB),
                    limit=self._audio.max_file_size_bytes // BYTES_PER_KB,
                ),
                field="file",
            )
        return extension

    # ─────────────────────────────────────────────────────────────────
    # Sounds
    # ─────────────────────────────────────────────────────────────────

    async def list_sounds(self, guild_id: int) -> list[SoundListEntry]:
        return await self._store.get_sounds_for_guild(guild_id)

    async def sound_limit(self, guild_id: int) -> int:
        return await self._store.get_sound_limit(guild_id)

    async def add_sound(
        self,
        *,
        guild_id: int,
        name: str,
        hidden: bool,
        created_by: int | None,
        audio: bytes,
        filename: str,
    ) -> Sound:
        clean_name = self.normalise_name(name)
        extension = self.check_upload(filename, len(audio))

        sound = await self._store.add_sound(
            guild_id=guild_id,
            name=clean_name,
            hidden=hidden,
            created_by=created_by,
            audio=audio,
            file_extension=extension,
        )
        logger.info(LogTemplates.SOUND_ADDED, sound.id, sound.name, guild_id)
        await self._publish(guild_id, CatalogChangeReason.SOUND_ADDED, sound.id)
        return sound

    async def remove_sound(self, guild_id: int, name: str) -> Sound:
        sound = await self._store.remove_sound(guild_id, self.normalise_name(name))
        logger.info(LogTemplates.SOUND_REMOVED, sound.id, sound.name, guild_id)
        await self._publish(guild_id, CatalogChangeReason.SOUND_REMOVED, sound.id)
        return sound

    async def rename_sound(self, guild_id: int, old_name: str, new_name: str) -> Sound:
        old_clean = self.normalise_name(old_name, field="old_name")
        new_clean = self.normalise_name(new_name, field="new_name")

        sound = await self._store.rename_sound(guild_id, old_clean, new_clean)
        logger.info(LogTemplates.SOUND_RENAMED, sound.id, guild_id, old_clean, new_clean)
        await self._publish(guild_id, CatalogChangeReason.SOUND_RENAMED, sound.id)
        return sound

    async def recent_plays(self, guild_id: int, name: str, limit: int = 10) -> tuple[Sound, list[Play]]:
        """The sound called *name* and its latest plays, newest first."""
        clean_name = self.normalise_name(name)
        sound = await self._store.get_sound_by_name(guild_id, clean_name)
        if sound is None:
            raise SoundNotFoundError(
                clean_name, ErrorMessages.SOUND_NAME_NOT_FOUND.format(name=clean_name)
            )
        return sound, await self._store.get_plays_for_sound(sound.id, limit)

    # ─────────────────────────────────────────────────────────────────
    # Entrees
    # ─────────────────────────────────────────────────────────────────

    async def list_entrees(self, guild_id: int) -> list[EntreeListEntry]:
        return await self._store.get_entrees_for_guild(guild_id)

    async def set_entree(self, guild_id: int, user_id: int, sound_name: str) -> Sound:
        clean_name = self.normalise_name(sound_name, field="sound")
        sound = await self._store.get_sound_by_name(guild_id, clean_name)
        if sound is None:
            raise SoundNotFoundError(
                clean_name, ErrorMessages.SOUND_NAME_NOT_FOUND.format(name=clean_name)
            )

        await self._store.set_entree(guild_id, user_id, sound.id)
        logger.info(LogTemplates.ENTREE_SET, user_id, guild_id, sound.id)
        return sound

    async def remove_entree(self, guild_id: int, user_id: int) -> bool:
        removed = await self._store.remove_entree(guild_id, user_id)
        if removed:
            logger.info(LogTemplates.ENTREE_REMOVED, user_id, guild_id)
        return removed

    # ─────────────────────────────────────────────────────────────────
    # Guild lifecycle
    # ─────────────────────────────────────────────────────────────────

    async def remove_all_data_for_guild(self, guild_id: int) -> None:
        await self._store.remove_all_data_for_guild(guild_id)
        logger.info(LogTemplates.GUILD_DATA_REMOVED, guild_id)

    async def _publish(self, guild_id: int, reason: CatalogChangeReason, sound_id: int) -> None:
        await self._bus.publish(CatalogChanged(guild_id=guild_id, reason=reason, sound_id=sound_id))
