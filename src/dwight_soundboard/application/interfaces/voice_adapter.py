"""Port interface for Discord voice operations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from pathlib import Path

from dwight_soundboard.domain.shared.types import DiscordSnowflake

FinishedCallback = Callable[[], Awaitable[None]]


class VoiceConnection(ABC):
    """A ready voice connection to one channel, carrying at most one player."""

    @property
    @abstractmethod
    def guild_id(self) -> DiscordSnowflake:
        ...

    @property
    @abstractmethod
    def channel_id(self) -> DiscordSnowflake:
        ...

    @abstractmethod
    def play(self, path: Path, on_finished: FinishedCallback) -> None:
        """Attach a player streaming *path*.

        *on_finished* is awaited on the event loop once the player goes idle,
        whether the audio ran out, was stopped, or the connection dropped.

        Raises:
            VoiceConnectionError: If a player is already attached or the
                connection is gone.
        """
        ...

    @abstractmethod
    def replace_source(self, path: Path) -> bool:
        """Swap the audio of the attached player in place.

        The player and its finish callback are kept. Returns False when no
        player is currently streaming, in which case nothing changes.
        """
        ...

    @abstractmethod
    def is_playing(self) -> bool:
        ...

    @abstractmethod
    def is_connected(self) -> bool:
        ...

    @abstractmethod
    def stop(self) -> None:
        """Stop the attached player, if any. Fires its finish callback."""
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Leave the voice channel. Never raises."""
        ...


class VoiceAdapter(ABC):
    """Interface for joining Discord voice channels."""

    @abstractmethod
    async def connect(self, guild_id: DiscordSnowflake, channel_id: DiscordSnowflake) -> VoiceConnection:
        """Join a voice channel and return once the connection is ready.

        Raises:
            VoiceConnectionError: If the channel is unknown, not a voice channel,
                forbidden, or the handshake times out.
        """
        ...
