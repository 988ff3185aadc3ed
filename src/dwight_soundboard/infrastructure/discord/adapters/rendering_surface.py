"""Discord implementation of the soundboard rendering surface."""

from __future__ import annotations

import logging
from collections.abc import Sequence

import discord

from dwight_soundboard.application.interfaces.rendering_surface import (
    ChannelHandle,
    ControlSpec,
    RenderedMessage,
    RenderingSurface,
)
from dwight_soundboard.domain.shared.constants import DiscordLimits
from dwight_soundboard.domain.shared.exceptions import ChannelPermissionError
from dwight_soundboard.domain.shared.messages import ErrorMessages, LogTemplates
from dwight_soundboard.infrastructure.discord.views.soundboard_view import SoundboardView

logger = logging.getLogger(__name__)


def default_overwrites(
    guild: discord.Guild,
) -> dict[discord.Role | discord.Member, discord.PermissionOverwrite]:
    """Read-only for everyone, writable for the bot."""
    overwrites: dict[discord.Role | discord.Member, discord.PermissionOverwrite] = {
        guild.default_role: discord.PermissionOverwrite(
            send_messages=False,
            add_reactions=False,
            view_channel=True,
            read_message_history=True,
        ),
    }
    if guild.me is not None:
        overwrites[guild.me] = discord.PermissionOverwrite(
            send_messages=True,
            add_reactions=True,
            view_channel=True,
        )
    return overwrites


def controls_from_message(message: discord.Message) -> tuple[ControlSpec, ...]:
    """Read the buttons of *message* in row order."""
    controls: list[ControlSpec] = []
    for row in message.components:
        for child in getattr(row, "children", ()):
            if isinstance(child, discord.Button) and child.custom_id:
                controls.append(ControlSpec(control_id=child.custom_id, label=child.label or ""))
    return tuple(controls)


class DiscordRenderingSurface(RenderingSurface):
    def __init__(self, bot: discord.Client) -> None:
        self._bot = bot

    def _get_guild(self, guild_id: int) -> discord.Guild:
        guild = self._bot.get_guild(guild_id)
        if guild is None:
            raise ChannelPermissionError(
                guild_id, message=ErrorMessages.GUILD_NOT_AVAILABLE.format(guild_id=guild_id)
            )
        return guild

    async def _get_text_channel(self, channel_id: int) -> discord.TextChannel:
        channel = self._bot.get_channel(channel_id)
        if channel is None:
            try:
                channel = await self._bot.fetch_channel(channel_id)
            except discord.HTTPException as e:
                raise ChannelPermissionError(
                    0, channel_id, ErrorMessages.CHANNEL_NOT_AVAILABLE.format(channel_id=channel_id)
                ) from e
        if not isinstance(channel, discord.TextChannel):
            raise ChannelPermissionError(
                0, channel_id, ErrorMessages.CHANNEL_NOT_AVAILABLE.format(channel_id=channel_id)
            )
        return channel

    @staticmethod
    def _handle(channel: discord.TextChannel) -> ChannelHandle:
        guild = channel.guild
        deletable = guild.me is not None and channel.permissions_for(guild.me).manage_channels
        return ChannelHandle(
            guild_id=guild.id,
            channel_id=channel.id,
            name=channel.name,
            deletable=deletable,
            guild_name=guild.name,
        )

    # ─────────────────────────────────────────────────────────────────
    # Channels
    # ─────────────────────────────────────────────────────────────────

    async def find_channel(self, guild_id: int, name: str) -> ChannelHandle | None:
        guild = self._get_guild(guild_id)
        channel = discord.utils.get(guild.text_channels, name=name)
        if channel is None:
            return None
        return self._handle(channel)

    # TODO(integ): Recreate a channel inside a category in a test guild and check
    # that position and overwrites survive.
    async def recreate_channel(self, existing: ChannelHandle, topic: str) -> ChannelHandle:
        old = await self._get_text_channel(existing.channel_id)
        guild = old.guild
        position = old.position
        category = old.category
        overwrites = dict(old.overwrites)

        try:
            await old.delete(reason="Rebuilding soundboard")
            channel = await guild.create_text_channel(
                existing.name,
                category=category,
                position=position,
                topic=topic,
                overwrites=overwrites,
                reason="Rebuilding soundboard",
            )
        except discord.Forbidden as e:
            raise ChannelPermissionError(guild.id, existing.channel_id) from e

        return self._handle(channel)

    async def create_channel(self, guild_id: int, name: str, topic: str) -> ChannelHandle:
        guild = self._get_guild(guild_id)
        try:
            channel = await guild.create_text_channel(
                name,
                topic=topic,
                overwrites=default_overwrites(guild),
                reason="Creating soundboard",
            )
        except discord.Forbidden as e:
            raise ChannelPermissionError(guild_id) from e

        return self._handle(channel)

    async def notify_owner(self, guild_id: int, message: str) -> None:
        guild = self._bot.get_guild(guild_id)
        if guild is None:
            logger.warning(LogTemplates.GUILD_NOT_FOUND, guild_id)
            return

        try:
            owner = guild.owner or await self._bot.fetch_user(guild.owner_id)
            await owner.send(message)
        except discord.HTTPException as exc:
            logger.warning(LogTemplates.RENDER_OWNER_NOTIFY_FAILED, guild_id, exc)

    # ─────────────────────────────────────────────────────────────────
    # Messages
    # ─────────────────────────────────────────────────────────────────

    async def fetch_messages(self, channel_id: int) -> list[RenderedMessage]:
        channel = await self._get_text_channel(channel_id)
        me = self._bot.user

        messages: list[RenderedMessage] = []
        try:
            async for message in channel.history(
                limit=DiscordLimits.HISTORY_SCAN_LIMIT, oldest_first=True
            ):
                messages.append(
                    RenderedMessage(
                        message_id=message.id,
                        author_is_self=me is not None and message.author.id == me.id,
                        content=message.content,
                        controls=controls_from_message(message),
                    )
                )
        except discord.Forbidden as exc:
            logger.warning(LogTemplates.RENDER_HISTORY_UNREADABLE, channel_id, exc)
            return []
        return messages

    async def send_controls(
        self, channel_id: int, content: str, controls: Sequence[ControlSpec]
    ) -> int:
        channel = await self._get_text_channel(channel_id)
        view = SoundboardView(controls) if controls else None

        try:
            if view is None:
                message = await channel.send(content)
            else:
                message = await channel.send(content, view=view)
        except discord.Forbidden as e:
            raise ChannelPermissionError(channel.guild.id, channel_id) from e
        finally:
            # Presses are dispatched from on_interaction; never let the view store claim them.
            if view is not None:
                view.stop()

        return message.id
