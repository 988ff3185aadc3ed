"""Gateway listeners wiring soundboard buttons, voice joins and guild lifecycle into the core."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from dwight_soundboard.application.services.interaction_dispatcher import (
    ControlActivation,
    DispatchResult,
    VoiceTransition,
)
from dwight_soundboard.domain.shared.constants import ControlIds
from dwight_soundboard.domain.shared.messages import (
    DiscordUIMessages,
    ErrorMessages,
    LogTemplates,
)
from dwight_soundboard.infrastructure.discord.guards.member_guards import (
    send_ephemeral,
    voice_channel_id_of,
)

if TYPE_CHECKING:
    from ....config.container import Container

logger = logging.getLogger(__name__)

_NOTICES: dict[DispatchResult, str] = {
    DispatchResult.NOT_IN_VOICE: DiscordUIMessages.STATE_MUST_BE_IN_VOICE,
    DispatchResult.UNKNOWN_CONTROL: DiscordUIMessages.ERROR_STALE_CONTROL,
    DispatchResult.SOUND_UNAVAILABLE: DiscordUIMessages.ERROR_SOUND_UNAVAILABLE,
    DispatchResult.FAILED: DiscordUIMessages.ERROR_COULD_NOT_JOIN_VOICE,
}


def control_id_of(interaction: discord.Interaction) -> str | None:
    """The custom id of a soundboard button press, or None for anything else."""
    if interaction.type is not discord.InteractionType.component:
        return None
    data = interaction.data or {}
    custom_id = data.get("custom_id")
    if not isinstance(custom_id, str) or not ControlIds.is_control(custom_id):
        return None
    return custom_id


class SoundboardCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container
        self._ready_once = False

    # ─────────────────────────────────────────────────────────────────
    # Button Presses
    # ─────────────────────────────────────────────────────────────────

    @commands.Cog.listener()
    async def on_interaction(self, interaction: discord.Interaction) -> None:
        control_id = control_id_of(interaction)
        if control_id is None or interaction.guild_id is None or interaction.channel_id is None:
            return

        # Joining voice can take longer than the acknowledgement deadline.
        await self._acknowledge(interaction)

        activation = ControlActivation(
            guild_id=interaction.guild_id,
            channel_id=interaction.channel_id,
            user_id=interaction.user.id,
            control_id=control_id,
            user_is_bot=interaction.user.bot,
            voice_channel_id=voice_channel_id_of(interaction.user),
        )

        try:
            result = await self.container.reaction_dispatcher.on_control_activated(activation)
        except Exception:
            logger.exception(LogTemplates.CONTROL_DISPATCH_FAILED, control_id)
            result = DispatchResult.FAILED

        notice = _NOTICES.get(result)
        if notice is None:
            return

        try:
            await send_ephemeral(interaction, notice)
        except discord.HTTPException as exc:
            logger.warning(LogTemplates.INTERACTION_ACK_FAILED, interaction.id, exc)

    @staticmethod
    async def _acknowledge(interaction: discord.Interaction) -> None:
        if interaction.response.is_done():
            return
        try:
            await interaction.response.defer()
        except discord.HTTPException as exc:
            logger.warning(LogTemplates.INTERACTION_ACK_FAILED, interaction.id, exc)

    # ─────────────────────────────────────────────────────────────────
    # Voice Events
    # ─────────────────────────────────────────────────────────────────

    @commands.Cog.listener()
    async def on_voice_state_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState,
    ) -> None:
        me = self.bot.user
        transition = VoiceTransition(
            guild_id=member.guild.id,
            user_id=member.id,
            before_channel_id=before.channel.id if before.channel else None,
            after_channel_id=after.channel.id if after.channel else None,
            is_self=me is not None and member.id == me.id,
        )
        if not transition.is_join or transition.is_self:
            return

        try:
            await self.container.entree_handler.on_voice_join(transition)
        except Exception:
            logger.exception(LogTemplates.ENTREE_FAILED, member.id, member.guild.id)

    # ─────────────────────────────────────────────────────────────────
    # Lifecycle Events
    # ─────────────────────────────────────────────────────────────────

    @commands.Cog.listener()
    async def on_ready(self) -> None:
        if self._ready_once:
            return
        self._ready_once = True

        if not self.container.settings.rendering.rebuild_on_ready:
            return

        guild_ids = [guild.id for guild in self.bot.guilds]
        await self.container.rebuild_coordinator.rebuild_all(guild_ids)

    @commands.Cog.listener()
    async def on_guild_join(self, guild: discord.Guild) -> None:
        logger.info(LogTemplates.GUILD_JOINED, guild.name, guild.id)
        self.container.rebuild_coordinator.schedule_rebuild(guild.id)

    @commands.Cog.listener()
    async def on_guild_remove(self, guild: discord.Guild) -> None:
        logger.info(LogTemplates.GUILD_REMOVED, guild.name, guild.id)
        self.container.channel_renderer.forget_guild(guild.id)

        try:
            await self.container.catalog_service.remove_all_data_for_guild(guild.id)
        except Exception:
            logger.exception(LogTemplates.GUILD_CLEANUP_FAILED, guild.id)


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)

    await bot.add_cog(SoundboardCog(bot, container))
