"""Prefix-only admin commands for syncing, rebuilding and diagnostics."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from dwight_soundboard.domain.shared.datetime_utils import UtcDateTime
from dwight_soundboard.domain.shared.messages import (
    DiscordUIMessages,
    ErrorMessages,
    LogTemplates,
)
from dwight_soundboard.domain.shared.types import MAX_SOUND_LIMIT
from dwight_soundboard.infrastructure.discord.guards.member_guards import is_owner_or_admin
from dwight_soundboard.utils.reply import join_lines

if TYPE_CHECKING:
    from ....config.container import Container

logger = logging.getLogger(__name__)


def _is_bot_owner(ctx: commands.Context) -> bool:
    """Check if the user is a configured bot owner or the application owner."""
    app_info = ctx.bot.application
    if app_info and app_info.owner:
        if ctx.author.id == app_info.owner.id:
            return True

    container = getattr(ctx.bot, "container", None)
    if container:
        if ctx.author.id in container.settings.discord.owner_ids:
            return True

    return False


def require_owner_or_admin():
    """Allow bot owners and guild admins or managers."""

    async def predicate(ctx: commands.Context) -> bool:
        if not ctx.guild:
            return False

        if _is_bot_owner(ctx):
            return True

        if isinstance(ctx.author, discord.Member):
            return is_owner_or_admin(ctx.author, ())

        return False

    return commands.check(predicate)


class AdminCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container

    async def _reply(self, ctx: commands.Context, content: str) -> None:
        await ctx.send(content)

    async def cog_command_error(self, ctx: commands.Context, error: Exception) -> None:
        if isinstance(error, commands.CheckFailure):
            await self._reply(ctx, DiscordUIMessages.ERROR_REQUIRES_OWNER_OR_ADMIN)
            return

        if isinstance(error, commands.MissingRequiredArgument):
            await self._reply(
                ctx, DiscordUIMessages.ERROR_MISSING_ARGUMENT.format(param_name=error.param.name)
            )
            return

        if isinstance(error, commands.BadArgument):
            await self._reply(ctx, DiscordUIMessages.ERROR_INVALID_ARGUMENT)
            return

        original = getattr(error, "original", error)
        logger.exception(LogTemplates.ADMIN_COMMAND_FAILED, exc_info=original)
        await self._reply(ctx, DiscordUIMessages.ERROR_COMMAND_FAILED_SEE_LOGS)

    # ─────────────────────────────────────────────────────────────────
    # Slash Command Sync
    # ─────────────────────────────────────────────────────────────────

    @commands.command(name="sync", description="Sync slash commands.")
    @require_owner_or_admin()
    async def sync(self, ctx: commands.Context, scope: str = "guild") -> None:
        try:
            if scope.strip().lower() == "global":
                synced = await self.bot.tree.sync()
                await self._reply(
                    ctx, DiscordUIMessages.SUCCESS_SYNCED_GLOBAL.format(count=len(synced))
                )
                return

            if not ctx.guild:
                await self._reply(ctx, DiscordUIMessages.ERROR_RUN_IN_SERVER_OR_SYNC_GLOBAL)
                return

            # Guild sync only sees commands copied into the guild tree.
            self.bot.tree.copy_global_to(guild=ctx.guild)
            synced = await self.bot.tree.sync(guild=ctx.guild)
            await self._reply(ctx, DiscordUIMessages.SUCCESS_SYNCED_GUILD.format(count=len(synced)))
        except discord.HTTPException:
            logger.exception(LogTemplates.ADMIN_SYNC_COMMANDS_FAILED)
            await self._reply(ctx, DiscordUIMessages.ERROR_SYNC_FAILED_SEE_LOGS)

    # ─────────────────────────────────────────────────────────────────
    # Soundboards
    # ─────────────────────────────────────────────────────────────────

    @commands.command(name="rebuild_all", description="Rebuild the soundboard in every server.")
    @require_owner_or_admin()
    async def rebuild_all(self, ctx: commands.Context) -> None:
        guild_ids = [guild.id for guild in self.bot.guilds]
        completed = await self.container.rebuild_coordinator.rebuild_all(guild_ids)
        await self._reply(ctx, DiscordUIMessages.SUCCESS_REBUILD_ALL.format(count=completed))

    @commands.command(name="sound_limit", description="Set how many sounds this server may have.")
    @require_owner_or_admin()
    async def sound_limit(self, ctx: commands.Context, limit: int) -> None:
        assert ctx.guild is not None

        if not 1 <= limit <= MAX_SOUND_LIMIT:
            await self._reply(
                ctx, DiscordUIMessages.ERROR_SOUND_LIMIT_INVALID.format(max_limit=MAX_SOUND_LIMIT)
            )
            return

        await self.container.catalog_store.set_sound_limit(ctx.guild.id, limit)
        logger.info(LogTemplates.ADMIN_SOUND_LIMIT_SET, ctx.guild.id, limit)
        await self._reply(ctx, DiscordUIMessages.SUCCESS_SOUND_LIMIT_SET.format(limit=limit))

    # ─────────────────────────────────────────────────────────────────
    # Diagnostics
    # ─────────────────────────────────────────────────────────────────

    @commands.command(name="sessions", description="List active playback sessions.")
    @require_owner_or_admin()
    async def sessions(self, ctx: commands.Context) -> None:
        sessions = self.container.playback_manager.active_sessions()
        if not sessions:
            await self._reply(ctx, DiscordUIMessages.SESSIONS_NONE)
            return

        lines = [
            f"• <#{s.voice_channel_id}> sound {s.current_sound_id}, "
            f"{s.plays} play(s), started {UtcDateTime(s.started_at).discord_timestamp()}"
            for s in sessions
        ]
        await self._reply(
            ctx, join_lines(DiscordUIMessages.SESSIONS_HEADER.format(count=len(sessions)), lines)
        )


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)

    await bot.add_cog(AdminCog(bot, container))
