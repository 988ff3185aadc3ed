"""Slash-command cog for managing a guild's sounds, entrees and soundboard channel."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from dwight_soundboard.application.services.rebuild_coordinator import RebuildStatus
from dwight_soundboard.domain.shared.datetime_utils import UtcDateTime
from dwight_soundboard.domain.shared.exceptions import ChannelPermissionError, DomainError
from dwight_soundboard.domain.shared.messages import DiscordUIMessages, ErrorMessages
from dwight_soundboard.domain.shared.validators import sound_name_key
from dwight_soundboard.infrastructure.discord.guards.member_guards import (
    get_member,
    send_ephemeral,
)
from dwight_soundboard.utils.reply import join_lines, mention, truncate

if TYPE_CHECKING:
    from ....config.container import Container

logger = logging.getLogger(__name__)

MAX_AUTOCOMPLETE_CHOICES = 25
MAX_PLAYS_SHOWN = 25


class CatalogCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container

    async def _fail(self, interaction: discord.Interaction, error: DomainError) -> None:
        await send_ephemeral(interaction, DiscordUIMessages.ERROR_PREFIX.format(message=error.message))

    async def sound_name_autocomplete(
        self, interaction: discord.Interaction, current: str
    ) -> list[app_commands.Choice[str]]:
        if interaction.guild_id is None:
            return []

        needle = sound_name_key(current)
        sounds = await self.container.catalog_service.list_sounds(interaction.guild_id)
        return [
            app_commands.Choice(name=truncate(s.name, 100), value=s.name)
            for s in sounds
            if needle in sound_name_key(s.name)
        ][:MAX_AUTOCOMPLETE_CHOICES]

    # ─────────────────────────────────────────────────────────────────
    # Soundboard Channel
    # ─────────────────────────────────────────────────────────────────

    @app_commands.command(name="rebuild", description="Rebuild the soundboard channel.")
    @app_commands.guild_only()
    @app_commands.default_permissions(manage_guild=True)
    async def rebuild(self, interaction: discord.Interaction) -> None:
        if await get_member(interaction) is None:
            return
        assert interaction.guild is not None

        await interaction.response.defer(ephemeral=True)
        try:
            status = await self.container.rebuild_coordinator.request_rebuild(interaction.guild.id)
        except ChannelPermissionError:
            await send_ephemeral(interaction, DiscordUIMessages.ERROR_CHANNEL_PERMISSION)
            return

        if status is RebuildStatus.COALESCED:
            await send_ephemeral(interaction, DiscordUIMessages.SUCCESS_REBUILD_QUEUED)
        else:
            await send_ephemeral(interaction, DiscordUIMessages.SUCCESS_REBUILT)

    # ─────────────────────────────────────────────────────────────────
    # Sounds
    # ─────────────────────────────────────────────────────────────────

    @app_commands.command(name="sounds", description="List the sounds of this server.")
    @app_commands.guild_only()
    async def sounds(self, interaction: discord.Interaction) -> None:
        if await get_member(interaction) is None:
            return
        assert interaction.guild is not None

        service = self.container.catalog_service
        sounds = await service.list_sounds(interaction.guild.id)
        if not sounds:
            await send_ephemeral(interaction, DiscordUIMessages.SOUNDS_EMPTY)
            return

        limit = await service.sound_limit(interaction.guild.id)
        header = DiscordUIMessages.SOUNDS_HEADER.format(count=len(sounds), limit=limit)
        lines = [
            f"• {s.name}{DiscordUIMessages.HIDDEN_NOTE if s.hidden else ''}"
            for s in sorted(sounds, key=lambda s: s.sort_key)
        ]
        await send_ephemeral(interaction, join_lines(header, lines))

    @app_commands.command(name="add_sound", description="Upload a new sound.")
    @app_commands.describe(
        name="Name of the sound",
        file="Audio file to upload",
        hidden="Keep the sound off the soundboard (entree only)",
    )
    @app_commands.guild_only()
    @app_commands.default_permissions(manage_guild=True)
    async def add_sound(
        self,
        interaction: discord.Interaction,
        name: str,
        file: discord.Attachment,
        hidden: bool = False,
    ) -> None:
        member = await get_member(interaction)
        if member is None:
            return
        assert interaction.guild is not None

        service = self.container.catalog_service
        try:
            # Reject bad uploads before downloading them.
            service.check_upload(file.filename, file.size)
            await interaction.response.defer(ephemeral=True)
            audio = await file.read()
            sound = await service.add_sound(
                guild_id=interaction.guild.id,
                name=name,
                hidden=hidden,
                created_by=member.id,
                audio=audio,
                filename=file.filename,
            )
        except DomainError as e:
            await self._fail(interaction, e)
            return

        await send_ephemeral(
            interaction,
            DiscordUIMessages.SUCCESS_SOUND_ADDED.format(
                name=sound.name,
                hidden_note=DiscordUIMessages.HIDDEN_NOTE if sound.hidden else "",
            ),
        )

    @app_commands.command(name="rename_sound", description="Rename a sound.")
    @app_commands.describe(old_name="Current name", new_name="New name")
    @app_commands.guild_only()
    @app_commands.default_permissions(manage_guild=True)
    async def rename_sound(
        self, interaction: discord.Interaction, old_name: str, new_name: str
    ) -> None:
        if await get_member(interaction) is None:
            return
        assert interaction.guild is not None

        try:
            sound = await self.container.catalog_service.rename_sound(
                interaction.guild.id, old_name, new_name
            )
        except DomainError as e:
            await self._fail(interaction, e)
            return

        await send_ephemeral(
            interaction,
            DiscordUIMessages.SUCCESS_SOUND_RENAMED.format(old_name=old_name, new_name=sound.name),
        )

    @app_commands.command(name="delete_sound", description="Delete a sound.")
    @app_commands.describe(name="Name of the sound")
    @app_commands.guild_only()
    @app_commands.default_permissions(manage_guild=True)
    async def delete_sound(self, interaction: discord.Interaction, name: str) -> None:
        if await get_member(interaction) is None:
            return
        assert interaction.guild is not None

        try:
            sound = await self.container.catalog_service.remove_sound(interaction.guild.id, name)
        except DomainError as e:
            await self._fail(interaction, e)
            return

        await send_ephemeral(interaction, DiscordUIMessages.SUCCESS_SOUND_DELETED.format(name=sound.name))

    @app_commands.command(name="plays", description="Show who played a sound recently.")
    @app_commands.describe(name="Name of the sound", count="How many plays to show")
    @app_commands.guild_only()
    async def plays(
        self,
        interaction: discord.Interaction,
        name: str,
        count: app_commands.Range[int, 1, MAX_PLAYS_SHOWN] = 10,
    ) -> None:
        if await get_member(interaction) is None:
            return
        assert interaction.guild is not None

        try:
            sound, plays = await self.container.catalog_service.recent_plays(
                interaction.guild.id, name, count
            )
        except DomainError as e:
            await self._fail(interaction, e)
            return

        if not plays:
            await send_ephemeral(interaction, DiscordUIMessages.PLAYS_EMPTY.format(name=sound.name))
            return

        header = DiscordUIMessages.PLAYS_HEADER.format(name=sound.name, count=len(plays))
        lines = [
            f"• {mention(p.user_id)} {UtcDateTime(p.played_at).discord_timestamp()}" for p in plays
        ]
        await send_ephemeral(interaction, join_lines(header, lines))

    # ─────────────────────────────────────────────────────────────────
    # Entrees
    # ─────────────────────────────────────────────────────────────────

    @app_commands.command(name="entrees", description="List the entree sounds of this server.")
    @app_commands.guild_only()
    async def entrees(self, interaction: discord.Interaction) -> None:
        if await get_member(interaction) is None:
            return
        assert interaction.guild is not None

        entrees = await self.container.catalog_service.list_entrees(interaction.guild.id)
        if not entrees:
            await send_ephemeral(interaction, DiscordUIMessages.ENTREES_EMPTY)
            return

        header = DiscordUIMessages.ENTREES_HEADER.format(count=len(entrees))
        lines = [f"• {mention(e.user_id)} → {e.sound_name}" for e in entrees]
        await send_ephemeral(interaction, join_lines(header, lines))

    @app_commands.command(name="set_entree", description="Set the sound played when a member joins voice.")
    @app_commands.describe(member="Member to greet", sound="Name of the sound")
    @app_commands.guild_only()
    @app_commands.default_permissions(manage_guild=True)
    async def set_entree(
        self, interaction: discord.Interaction, member: discord.Member, sound: str
    ) -> None:
        if await get_member(interaction) is None:
            return
        assert interaction.guild is not None

        try:
            chosen = await self.container.catalog_service.set_entree(
                interaction.guild.id, member.id, sound
            )
        except DomainError as e:
            await self._fail(interaction, e)
            return

        await send_ephemeral(
            interaction,
            DiscordUIMessages.SUCCESS_ENTREE_SET.format(user=member.mention, name=chosen.name),
        )

    @app_commands.command(name="remove_entree", description="Remove a member's entree sound.")
    @app_commands.describe(member="Member whose entree to remove")
    @app_commands.guild_only()
    @app_commands.default_permissions(manage_guild=True)
    async def remove_entree(self, interaction: discord.Interaction, member: discord.Member) -> None:
        if await get_member(interaction) is None:
            return
        assert interaction.guild is not None

        removed = await self.container.catalog_service.remove_entree(interaction.guild.id, member.id)
        if removed:
            await send_ephemeral(
                interaction, DiscordUIMessages.SUCCESS_ENTREE_REMOVED.format(user=member.mention)
            )
        else:
            await send_ephemeral(interaction, DiscordUIMessages.INFO_NO_ENTREE.format(user=member.mention))

    # ─────────────────────────────────────────────────────────────────
    # Autocomplete
    # ─────────────────────────────────────────────────────────────────

    @rename_sound.autocomplete("old_name")
    async def _rename_autocomplete(
        self, interaction: discord.Interaction, current: str
    ) -> list[app_commands.Choice[str]]:
        return await self.sound_name_autocomplete(interaction, current)

    @delete_sound.autocomplete("name")
    async def _delete_autocomplete(
        self, interaction: discord.Interaction, current: str
    ) -> list[app_commands.Choice[str]]:
        return await self.sound_name_autocomplete(interaction, current)

    @plays.autocomplete("name")
    async def _plays_autocomplete(
        self, interaction: discord.Interaction, current: str
    ) -> list[app_commands.Choice[str]]:
        return await self.sound_name_autocomplete(interaction, current)

    @set_entree.autocomplete("sound")
    async def _entree_autocomplete(
        self, interaction: discord.Interaction, current: str
    ) -> list[app_commands.Choice[str]]:
        return await self.sound_name_autocomplete(interaction, current)


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)

    await bot.add_cog(CatalogCog(bot, container))
