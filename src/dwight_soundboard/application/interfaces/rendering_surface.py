"""Port interface for the text channel the soundboard is rendered into."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field

from dwight_soundboard.domain.shared.types import DiscordSnowflake


@dataclass(frozen=True, slots=True)
class ChannelHandle:
    guild_id: int
    channel_id: int
    name: str
    deletable: bool = True
    guild_name: str = ""


@dataclass(frozen=True, slots=True)
class ControlSpec:
    """One button: its custom id and the label shown to users."""

    control_id: str
    label: str


@dataclass(frozen=True, slots=True)
class RenderedMessage:
    """A message as it currently exists in the channel."""

    message_id: int
    author_is_self: bool
    content: str
    controls: tuple[ControlSpec, ...] = field(default_factory=tuple)


class RenderingSurface(ABC):
    """Interface for channel and message operations on the chat platform."""

    @abstractmethod
    async def find_channel(self, guild_id: DiscordSnowflake, name: str) -> ChannelHandle | None:
        """Find a text channel by name. ``deletable`` tells whether the bot may delete it."""
        ...

    @abstractmethod
    async def recreate_channel(self, existing: ChannelHandle, topic: str) -> ChannelHandle:
        """Delete *existing* and create a replacement in the same place.

        Position, parent category and permission overwrites are carried over
        unchanged.

        Raises:
            ChannelPermissionError: If the platform refuses the delete or create.
        """
        ...

    @abstractmethod
    async def create_channel(self, guild_id: DiscordSnowflake, name: str, topic: str) -> ChannelHandle:
        """Create a fresh channel with the soundboard permission policy.

        Raises:
            ChannelPermissionError: If the platform refuses the create.
        """
        ...

    @abstractmethod
    async def notify_owner(self, guild_id: DiscordSnowflake, message: str) -> None:
        """Send a direct message to the guild owner. Delivery failures are logged, never raised."""
        ...

    @abstractmethod
    async def fetch_messages(self, channel_id: DiscordSnowflake) -> list[RenderedMessage]:
        """List the channel's messages, oldest first."""
        ...

    @abstractmethod
    async def send_controls(
        self, channel_id: DiscordSnowflake, content: str, controls: Sequence[ControlSpec]
    ) -> int:
        """Send one message carrying *controls* as buttons, in order. Returns its id."""
        ...
