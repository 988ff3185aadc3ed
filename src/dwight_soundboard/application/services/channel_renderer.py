"""Render the soundboard channel from the catalog and own the control mapping."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import uuid4

from ...application.interfaces.rendering_surface import (
    ChannelHandle,
    ControlSpec,
    RenderedMessage,
)
from ...domain.shared.constants import ControlIds, DiscordLimits
from ...domain.shared.events import SoundboardRebuilt
from ...domain.shared.exceptions import ChannelPermissionError
from ...domain.shared.messages import DiscordUIMessages, LogTemplates

if TYPE_CHECKING:
    from ...application.interfaces.rendering_surface import RenderingSurface
    from ...config.settings import RenderingSettings
    from ...domain.catalog.entities import SoundListEntry
    from ...domain.catalog.repository import CatalogStore
    from ...domain.shared.events import EventBus

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RenderResult:
    guild_id: int
    channel_id: int
    control_count: int
    message_count: int
    adopted: bool = False


@dataclass(frozen=True, slots=True)
class _Page:
    content: str
    sounds: tuple[SoundListEntry, ...]


class ChannelRenderer:
    """Rebuilds the rendering channel of a guild and maps its buttons to sounds.

    The ``control id -> sound id`` mapping of a guild is replaced wholesale at the
    end of every successful rebuild and is never patched incrementally. A rebuild
    that fails before the channel is touched leaves the previous mapping in place.
    """

    def __init__(
        self,
        *,
        catalog_store: CatalogStore,
        surface: RenderingSurface,
        settings: RenderingSettings,
        event_bus: EventBus,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._catalog = catalog_store
        self._surface = surface
        self._settings = settings
        self._bus = event_bus
        self._sleep = sleep
        self._controls: dict[int, dict[str, int]] = {}
        self._channels: dict[int, int] = {}

    # ─────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────

    def resolve_control(self, guild_id: int, control_id: str) -> int | None:
        return self._controls.get(guild_id, {}).get(control_id)

    def is_rendering_channel(self, guild_id: int, channel_id: int) -> bool:
        return self._channels.get(guild_id) == channel_id

    def channel_for(self, guild_id: int) -> int | None:
        return self._channels.get(guild_id)

    def controls_for(self, guild_id: int) -> dict[str, int]:
        return dict(self._controls.get(guild_id, {}))

    def forget_guild(self, guild_id: int) -> None:
        self._controls.pop(guild_id, None)
        self._channels.pop(guild_id, None)

    # ─────────────────────────────────────────────────────────────────
    # Rebuild
    # ─────────────────────────────────────────────────────────────────

    async def rebuild(self, guild_id: int) -> RenderResult:
        """Bring the guild's rendering channel in line with its catalog.

        Raises:
            ChannelPermissionError: If the channel exists but may not be deleted.
        """
        logger.info(LogTemplates.REBUILD_STARTED, guild_id)

        entries = await self._catalog.get_sounds_for_guild(guild_id)
        visible = sorted((e for e in entries if not e.hidden), key=lambda e: e.sort_key)
        pages = self._paginate(visible)

        existing = await self._surface.find_channel(guild_id, self._settings.channel_name)

        if existing is not None and self._settings.reconcile_existing:
            adopted = await self._try_adopt(existing, pages)
            if adopted is not None:
                return await self._commit(guild_id, existing.channel_id, adopted, len(pages), True)

        channel = await self._replace_channel(guild_id, existing)

        # The old channel and its buttons are gone from here on.
        self._controls.pop(guild_id, None)
        self._channels[guild_id] = channel.channel_id

        generation = uuid4().hex[:8]
        mapping: dict[str, int] = {}
        index = 0
        for page_number, page in enumerate(pages):
            if page_number:
                await self._sleep(self._settings.send_delay_seconds)

            controls: list[ControlSpec] = []
            for sound in page.sounds:
                control_id = ControlIds.build(generation, index)
                controls.append(ControlSpec(control_id=control_id, label=self._label(sound.name)))
                mapping[control_id] = sound.id
                index += 1

            await self._surface.send_controls(channel.channel_id, page.content, controls)

        return await self._commit(guild_id, channel.channel_id, mapping, len(pages), False)

    async def _replace_channel(self, guild_id: int, existing: ChannelHandle | None) -> ChannelHandle:
        topic = self._settings.channel_topic or DiscordUIMessages.SOUNDBOARD_TOPIC

        if existing is None:
            logger.info(LogTemplates.RENDER_CREATING, guild_id)
            return await self._surface.create_channel(guild_id, self._settings.channel_name, topic)

        if not existing.deletable:
            await self._notify_owner(guild_id, existing)
            logger.warning(LogTemplates.RENDER_NOT_DELETABLE, existing.channel_id, guild_id)
            raise ChannelPermissionError(guild_id, existing.channel_id)

        logger.info(LogTemplates.RENDER_RECREATING, existing.channel_id, guild_id)
        return await self._surface.recreate_channel(existing, topic)

    async def _notify_owner(self, guild_id: int, existing: ChannelHandle) -> None:
        message = DiscordUIMessages.OWNER_CANNOT_DELETE_CHANNEL.format(
            channel_name=existing.name, guild_name=existing.guild_name or guild_id
        )
        await self._surface.notify_owner(guild_id, message)

    async def _commit(
        self,
        guild_id: int,
        channel_id: int,
        mapping: dict[str, int],
        message_count: int,
        adopted: bool,
    ) -> RenderResult:
        self._controls[guild_id] = mapping
        self._channels[guild_id] = channel_id

        if adopted:
            logger.info(LogTemplates.RENDER_ADOPTED, channel_id, guild_id, len(mapping))
        else:
            logger.info(LogTemplates.RENDER_COMPLETE, len(mapping), message_count, guild_id, channel_id)

        await self._bus.publish(
            SoundboardRebuilt(
                guild_id=guild_id,
                channel_id=channel_id,
                control_count=len(mapping),
                adopted=adopted,
            )
        )
        return RenderResult(
            guild_id=guild_id,
            channel_id=channel_id,
            control_count=len(mapping),
            message_count=message_count,
            adopted=adopted,
        )

    # ─────────────────────────────────────────────────────────────────
    # Reconciliation
    # ─────────────────────────────────────────────────────────────────

    async def _try_adopt(
        self, existing: ChannelHandle, pages: Sequence[_Page]
    ) -> dict[str, int] | None:
        """Map the existing buttons onto *pages* if the channel already shows them exactly."""
        messages = await self._surface.fetch_messages(existing.channel_id)
        if not self._matches(messages, pages):
            return None

        mapping: dict[str, int] = {}
        for message, page in zip(messages, pages, strict=True):
            for control, sound in zip(message.controls, page.sounds, strict=True):
                mapping[control.control_id] = sound.id
        return mapping

    def _matches(self, messages: Sequence[RenderedMessage], pages: Sequence[_Page]) -> bool:
        if len(messages) != len(pages):
            return False

        seen: set[str] = set()
        for message, page in zip(messages, pages, strict=True):
            if not message.author_is_self or message.content != page.content:
                return False
            if len(message.controls) != len(page.sounds):
                return False
            for control, sound in zip(message.controls, page.sounds, strict=True):
                if control.label != self._label(sound.name):
                    return False
                if not ControlIds.is_control(control.control_id) or control.control_id in seen:
                    return False
                seen.add(control.control_id)
        return True

    # ─────────────────────────────────────────────────────────────────
    # Layout
    # ─────────────────────────────────────────────────────────────────

    def _paginate(self, sounds: Sequence[SoundListEntry]) -> list[_Page]:
        size = min(self._settings.page_size, DiscordLimits.MAX_BUTTONS_PER_MESSAGE)
        if not sounds:
            return [_Page(content=DiscordUIMessages.SOUNDBOARD_EMPTY, sounds=())]

        chunks = [tuple(sounds[i : i + size]) for i in range(0, len(sounds), size)]
        return [
            _Page(
                content=DiscordUIMessages.SOUNDBOARD_PAGE.format(page=n, pages=len(chunks)),
                sounds=chunk,
            )
            for n, chunk in enumerate(chunks, start=1)
        ]

    @staticmethod
    def _label(name: str) -> str:
        return name[: DiscordLimits.MAX_BUTTON_LABEL]
