"""Reusable guard functions for Discord interactions.

These are free functions that accept explicit dependencies rather than relying
on a specific cog instance, making them usable from any cog.
"""

from __future__ import annotations

from collections.abc import Collection

import discord

from dwight_soundboard.domain.shared.messages import DiscordUIMessages


async def send_ephemeral(interaction: discord.Interaction, message: str) -> None:
    """Send an ephemeral message, handling both fresh and already-responded interactions."""
    if interaction.response.is_done():
        await interaction.followup.send(message, ephemeral=True)
    else:
        await interaction.response.send_message(message, ephemeral=True)


async def get_member(interaction: discord.Interaction) -> discord.Member | None:
    """Validate that the interaction comes from a guild member. Returns None with error on failure."""
    if not interaction.guild:
        await send_ephemeral(interaction, DiscordUIMessages.STATE_SERVER_ONLY)
        return None

    user = interaction.user
    if not isinstance(user, discord.Member):
        await send_ephemeral(interaction, DiscordUIMessages.STATE_VERIFY_MEMBER_FAILED)
        return None

    return user


def voice_channel_id_of(user: discord.abc.User) -> int | None:
    """The id of the voice channel *user* is currently in, if they are a member in one."""
    if not isinstance(user, discord.Member):
        return None
    if user.voice is None or user.voice.channel is None:
        return None
    return user.voice.channel.id


def is_owner_or_admin(user: discord.Member, owner_ids: Collection[int]) -> bool:
    """Check if the user is a guild admin, a guild manager or a configured bot owner."""
    perms = user.guild_permissions
    return user.id in owner_ids or perms.administrator or perms.manage_guild
