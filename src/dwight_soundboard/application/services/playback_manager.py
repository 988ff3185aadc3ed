"""Own voice playback sessions and resolve concurrent play requests into them."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from functools import partial
from typing import TYPE_CHECKING

from ...domain.playback.entities import PlaybackOutcome, PlaybackSession
from ...domain.shared.events import PlaybackSessionEnded, SoundPlayed
from ...domain.shared.exceptions import VoiceConnectionError
from ...domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from pathlib import Path

    from ...application.interfaces.voice_adapter import VoiceAdapter
    from ...domain.catalog.repository import CatalogStore
    from ...domain.shared.events import EventBus

logger = logging.getLogger(__name__)


class PlaybackManager:
    """One session per voice channel, at most one player per connection.

    Discord allows a single voice connection per guild, so every operation is
    serialized on a per-guild lock and starting a session in one channel ends
    any session the guild has in another channel.
    """

    def __init__(
        self,
        *,
        catalog_store: CatalogStore,
        voice_adapter: VoiceAdapter,
        event_bus: EventBus,
    ) -> None:
        self._catalog = catalog_store
        self._voice = voice_adapter
        self._bus = event_bus
        self._sessions: dict[int, PlaybackSession] = {}
        self._guild_locks: dict[int, asyncio.Lock] = defaultdict(asyncio.Lock)

    def get_session(self, voice_channel_id: int) -> PlaybackSession | None:
        return self._sessions.get(voice_channel_id)

    def active_sessions(self) -> list[PlaybackSession]:
        return list(self._sessions.values())

    async def play_sound(
        self,
        *,
        sound_id: int,
        voice_channel_id: int,
        user_id: int,
        force: bool,
        guild_id: int,
    ) -> PlaybackOutcome:
        """Play *sound_id* in *voice_channel_id*.

        With no session in the channel a new one is started. With a session,
        ``force=True`` swaps the audio in place (entrees) and ``force=False``
        stops the session without playing anything (button toggle).

        Raises:
            SoundNotFoundError: If the sound or its audio file does not exist.
                No session is created or changed.
        """
        async with self._guild_locks[guild_id]:
            session = self._sessions.get(voice_channel_id)

            if session is None:
                return await self._start_session(
                    guild_id=guild_id,
                    voice_channel_id=voice_channel_id,
                    sound_id=sound_id,
                    user_id=user_id,
                )

            if force:
                return await self._replace(session, sound_id=sound_id, user_id=user_id)

            logger.info(LogTemplates.PLAYBACK_STOPPED, voice_channel_id)
            await self._teardown(session, reason="stopped")
            return PlaybackOutcome.STOPPED

    async def stop_all(self) -> None:
        sessions = self.active_sessions()
        if sessions:
            logger.info(LogTemplates.PLAYBACK_STOP_ALL, len(sessions))
        for session in sessions:
            async with self._guild_locks[session.guild_id]:
                if self._sessions.get(session.voice_channel_id) is session:
                    await self._teardown(session, reason="shutdown")

    # ─────────────────────────────────────────────────────────────────
    # Session lifecycle
    # ─────────────────────────────────────────────────────────────────

    async def _start_session(
        self, *, guild_id: int, voice_channel_id: int, sound_id: int, user_id: int
    ) -> PlaybackOutcome:
        path = await self._catalog.get_path_to_sound(sound_id)

        for other in [s for s in self._sessions.values() if s.guild_id == guild_id]:
            logger.info(LogTemplates.PLAYBACK_PREEMPTED, other.voice_channel_id, guild_id)
            await self._teardown(other, reason="preempted")

        try:
            connection = await self._voice.connect(guild_id, voice_channel_id)
        except VoiceConnectionError as exc:
            logger.warning(LogTemplates.VOICE_JOIN_FAILED, voice_channel_id, exc.reason)
            return PlaybackOutcome.FAILED

        session = PlaybackSession(
            guild_id=guild_id,
            voice_channel_id=voice_channel_id,
            connection=connection,
            current_sound_id=sound_id,
            started_by=user_id,
        )

        session.on_finished = partial(self._handle_idle, session)

        if not await self._attach(session, path):
            await connection.disconnect()
            return PlaybackOutcome.FAILED

        self._sessions[voice_channel_id] = session
        logger.info(LogTemplates.PLAYBACK_STARTED, sound_id, voice_channel_id, guild_id, user_id)
        await self._after_play(session, user_id=user_id, replaced=False)
        return PlaybackOutcome.STARTED

    async def _replace(self, session: PlaybackSession, *, sound_id: int, user_id: int) -> PlaybackOutcome:
        path = await self._catalog.get_path_to_sound(sound_id)

        # The player may have run out with its idle teardown still queued behind
        # this lock; restart it on the same connection with the same callback.
        if not session.connection.replace_source(path):
            if not await self._attach(session, path):
                await self._teardown(session, reason="attach_failed")
                return PlaybackOutcome.FAILED

        session.current_sound_id = sound_id
        session.plays += 1
        logger.info(LogTemplates.PLAYBACK_REPLACED, session.voice_channel_id, sound_id)
        await self._after_play(session, user_id=user_id, replaced=True)
        return PlaybackOutcome.REPLACED

    async def _attach(self, session: PlaybackSession, path: Path) -> bool:
        try:
            session.connection.play(path, session.on_finished)  # type: ignore[arg-type]
        except VoiceConnectionError as exc:
            logger.warning(LogTemplates.PLAYBACK_ATTACH_FAILED, session.voice_channel_id, exc.reason)
            return False
        return True

    async def _handle_idle(self, session: PlaybackSession) -> None:
        """Called from the player thread via run_coroutine_threadsafe; nothing awaits the future."""
        async with self._guild_locks[session.guild_id]:
            if self._sessions.get(session.voice_channel_id) is not session:
                return
            if session.connection.is_playing():
                return
            logger.info(LogTemplates.PLAYBACK_IDLE, session.voice_channel_id)
            try:
                await self._teardown(session, reason="finished")
            except Exception as e:
                logger.error(LogTemplates.PLAYBACK_IDLE_TEARDOWN_FAILED, session.voice_channel_id, e)

    async def _teardown(self, session: PlaybackSession, *, reason: str) -> None:
        if self._sessions.get(session.voice_channel_id) is session:
            del self._sessions[session.voice_channel_id]

        session.connection.stop()
        await session.connection.disconnect()

        await self._bus.publish(
            PlaybackSessionEnded(
                guild_id=session.guild_id,
                channel_id=session.voice_channel_id,
                reason=reason,
            )
        )

    async def _after_play(self, session: PlaybackSession, *, user_id: int, replaced: bool) -> None:
        try:
            await self._catalog.record_play(user_id, session.current_sound_id)
        except Exception:
            logger.exception(LogTemplates.PLAY_RECORD_FAILED, session.current_sound_id, user_id)

        await self._bus.publish(
            SoundPlayed(
                guild_id=session.guild_id,
                channel_id=session.voice_channel_id,
                user_id=user_id,
                sound_id=session.current_sound_id,
                replaced=replaced,
            )
        )
