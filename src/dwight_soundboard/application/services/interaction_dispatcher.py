"""Translate button presses and voice joins into playback requests."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from ...domain.playback.entities import PlaybackOutcome
from ...domain.shared.exceptions import SoundNotFoundError
from ...domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...domain.catalog.repository import CatalogStore
    from .channel_renderer import ChannelRenderer
    from .playback_manager import PlaybackManager

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ControlActivation:
    """A user pressed a button somewhere in a guild."""

    guild_id: int
    channel_id: int
    user_id: int
    control_id: str
    user_is_bot: bool = False
    voice_channel_id: int | None = None


@dataclass(frozen=True, slots=True)
class VoiceTransition:
    """A member's voice channel changed from ``before_channel_id`` to ``after_channel_id``."""

    guild_id: int
    user_id: int
    before_channel_id: int | None
    after_channel_id: int | None
    is_self: bool = False

    @property
    def is_join(self) -> bool:
        return self.before_channel_id is None and self.after_channel_id is not None


class DispatchResult(StrEnum):
    PLAYED = "played"
    STOPPED = "stopped"
    IGNORED = "ignored"
    NOT_IN_VOICE = "not_in_voice"
    UNKNOWN_CONTROL = "unknown_control"
    SOUND_UNAVAILABLE = "sound_unavailable"
    FAILED = "failed"


_OUTCOME_RESULTS = {
    PlaybackOutcome.STARTED: DispatchResult.PLAYED,
    PlaybackOutcome.REPLACED: DispatchResult.PLAYED,
    PlaybackOutcome.STOPPED: DispatchResult.STOPPED,
    PlaybackOutcome.FAILED: DispatchResult.FAILED,
}


class ReactionDispatcher:
    """Turns soundboard button presses into non-forcing play requests."""

    def __init__(self, *, renderer: ChannelRenderer, playback_manager: PlaybackManager) -> None:
        self._renderer = renderer
        self._playback = playback_manager

    async def on_control_activated(self, activation: ControlActivation) -> DispatchResult:
        if activation.user_is_bot or not self._renderer.is_rendering_channel(
            activation.guild_id, activation.channel_id
        ):
            logger.debug(LogTemplates.CONTROL_IGNORED, activation.control_id, activation.channel_id)
            return DispatchResult.IGNORED

        sound_id = self._renderer.resolve_control(activation.guild_id, activation.control_id)
        if sound_id is None:
            logger.info(LogTemplates.CONTROL_UNKNOWN, activation.control_id, activation.guild_id)
            return DispatchResult.UNKNOWN_CONTROL

        if activation.voice_channel_id is None:
            return DispatchResult.NOT_IN_VOICE

        try:
            outcome = await self._playback.play_sound(
                sound_id=sound_id,
                voice_channel_id=activation.voice_channel_id,
                user_id=activation.user_id,
                force=False,
                guild_id=activation.guild_id,
            )
        except SoundNotFoundError as exc:
            logger.warning(LogTemplates.CONTROL_SOUND_MISSING, activation.control_id, exc.message)
            return DispatchResult.SOUND_UNAVAILABLE

        return _OUTCOME_RESULTS[outcome]


class EntreeHandler:
    """Plays a member's entree sound when they join voice from nowhere."""

    def __init__(self, *, catalog_store: CatalogStore, playback_manager: PlaybackManager) -> None:
        self._catalog = catalog_store
        self._playback = playback_manager

    async def on_voice_join(self, transition: VoiceTransition) -> PlaybackOutcome | None:
        # Moves between channels and the bot's own joins never trigger an entree.
        channel_id = transition.after_channel_id
        if transition.is_self or not transition.is_join or channel_id is None:
            return None

        sound_id = await self._catalog.get_entree_sound_id_for_guild_user(
            transition.guild_id, transition.user_id
        )
        if sound_id is None:
            return None

        logger.info(LogTemplates.ENTREE_PLAY, sound_id, transition.user_id, channel_id)
        try:
            return await self._playback.play_sound(
                sound_id=sound_id,
                voice_channel_id=channel_id,
                user_id=transition.user_id,
                force=True,
                guild_id=transition.guild_id,
            )
        except SoundNotFoundError as exc:
            logger.warning(LogTemplates.ENTREE_SOUND_MISSING, transition.user_id, exc.message)
            return None
