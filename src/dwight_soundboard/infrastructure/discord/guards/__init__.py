"""Guard functions for Discord cogs."""

from dwight_soundboard.infrastructure.discord.guards.member_guards import (
    get_member,
    is_owner_or_admin,
    send_ephemeral,
    voice_channel_id_of,
)

__all__ = [
    "get_member",
    "is_owner_or_admin",
    "send_ephemeral",
    "voice_channel_id_of",
]
