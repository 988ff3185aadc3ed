"""Playback session state held by the playback manager."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING

from dwight_soundboard.domain.shared.datetime_utils import utcnow

if TYPE_CHECKING:
    from ...application.interfaces.voice_adapter import VoiceConnection


class PlaybackOutcome(StrEnum):
    """What a ``play_sound`` call did."""

    STARTED = "started"
    REPLACED = "replaced"
    STOPPED = "stopped"
    FAILED = "failed"


@dataclass(eq=False)
class PlaybackSession:
    """One live voice connection, bound to a single voice channel.

    ``on_finished`` is registered once when the session starts and stays attached
    for the whole lifetime of the session, including after in-place replacement
    of the audio.
    """

    guild_id: int
    voice_channel_id: int
    connection: VoiceConnection
    current_sound_id: int
    started_by: int
    started_at: datetime = field(default_factory=utcnow)
    on_finished: Callable[[], Awaitable[None]] | None = None
    plays: int = 1
