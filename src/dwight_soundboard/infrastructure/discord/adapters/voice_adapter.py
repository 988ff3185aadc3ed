"""Discord voice adapter implementing VoiceAdapter for connection and playback."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import discord

from dwight_soundboard.application.interfaces.voice_adapter import (
    FinishedCallback,
    VoiceAdapter,
    VoiceConnection,
)
from dwight_soundboard.config.settings import AudioSettings
from dwight_soundboard.domain.shared.exceptions import VoiceConnectionError
from dwight_soundboard.domain.shared.messages import LogTemplates

logger = logging.getLogger(__name__)


class DiscordVoiceConnection(VoiceConnection):
    """Wraps one ``discord.VoiceClient`` streaming local files through FFmpeg."""

    def __init__(
        self,
        bot: discord.Client,
        voice_client: discord.VoiceClient,
        settings: AudioSettings,
        *,
        guild_id: int,
        channel_id: int,
    ) -> None:
        self._bot = bot
        self._vc = voice_client
        self._settings = settings
        self._guild_id = guild_id
        self._channel_id = channel_id

    @property
    def guild_id(self) -> int:
        return self._guild_id

    @property
    def channel_id(self) -> int:
        return self._channel_id

    @property
    def voice_client(self) -> discord.VoiceClient:
        return self._vc

    def _make_source(self, path: Path) -> discord.PCMVolumeTransformer[discord.FFmpegPCMAudio]:
        source = discord.FFmpegPCMAudio(
            str(path),
            before_options=self._settings.ffmpeg_options.get("before_options"),
            options=self._settings.ffmpeg_options.get("options"),
        )
        return discord.PCMVolumeTransformer(source, volume=self._settings.default_volume)

    # TODO(integ): Play a short clip on a live connection in a test guild and check
    # that the after-callback reaches the event loop exactly once.
    def play(self, path: Path, on_finished: FinishedCallback) -> None:
        if not self._vc.is_connected():
            raise VoiceConnectionError(self._guild_id, self._channel_id, "not connected")
        if self._vc.is_playing():
            raise VoiceConnectionError(self._guild_id, self._channel_id, "already playing")

        source = self._make_source(path)
        guild_id = self._guild_id

        def after_callback(error: Exception | None = None) -> None:
            if error:
                logger.warning(LogTemplates.PLAYBACK_ERROR, guild_id, error)

            # Runs on the player thread; hop back onto the bot loop.
            asyncio.run_coroutine_threadsafe(on_finished(), self._bot.loop)

        try:
            self._vc.play(source, after=after_callback)
        except discord.ClientException as e:
            source.cleanup()
            raise VoiceConnectionError(self._guild_id, self._channel_id, str(e)) from e

    def replace_source(self, path: Path) -> bool:
        if not self._vc.is_playing():
            return False

        old = self._vc.source
        self._vc.source = self._make_source(path)
        if old is not None:
            old.cleanup()
        return True

    def is_playing(self) -> bool:
        return self._vc.is_playing()

    def is_connected(self) -> bool:
        return self._vc.is_connected()

    def stop(self) -> None:
        if self._vc.is_playing() or self._vc.is_paused():
            self._vc.stop()

    async def disconnect(self) -> None:
        try:
            await self._vc.disconnect(force=True)
            logger.info(LogTemplates.VOICE_DISCONNECTED, self._guild_id)
        except Exception as exc:
            logger.warning(LogTemplates.VOICE_DISCONNECT_FAILED, self._guild_id, exc)


class DiscordVoiceAdapter(VoiceAdapter):
    def __init__(self, bot: discord.Client, settings: AudioSettings | None = None) -> None:
        self._bot = bot
        self._settings = settings or AudioSettings()

    def _get_guild(self, guild_id: int) -> discord.Guild | None:
        return self._bot.get_guild(guild_id)

    # TODO(integ): Test real voice connect with a test bot in a test guild.
    # Verify: successful connect, self-deaf, timeout, permission denied (Forbidden).
    async def connect(self, guild_id: int, channel_id: int) -> DiscordVoiceConnection:
        guild = self._get_guild(guild_id)
        if not guild:
            logger.warning(LogTemplates.GUILD_NOT_FOUND, guild_id)
            raise VoiceConnectionError(guild_id, channel_id, "guild not found")

        channel = guild.get_channel(channel_id)
        if not isinstance(channel, discord.VoiceChannel | discord.StageChannel):
            logger.warning(LogTemplates.CHANNEL_NOT_VOICE, channel_id)
            raise VoiceConnectionError(guild_id, channel_id, "not a voice channel")

        await self._cleanup_stale(guild)

        try:
            async with asyncio.timeout(self._settings.connect_timeout_seconds):
                vc = await channel.connect(self_deaf=True)
        except TimeoutError as e:
            logger.error(LogTemplates.VOICE_CONNECTION_TIMEOUT, channel_id)
            raise VoiceConnectionError(guild_id, channel_id, "timed out") from e
        except discord.Forbidden as e:
            logger.error(LogTemplates.VOICE_NO_PERMISSION, channel_id)
            raise VoiceConnectionError(guild_id, channel_id, "missing permissions") from e
        except discord.ClientException as e:
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, e)
            raise VoiceConnectionError(guild_id, channel_id, str(e)) from e

        await self._ensure_self_deaf(guild, channel)
        logger.info(LogTemplates.VOICE_CONNECTED, channel.name, guild.name)
        return DiscordVoiceConnection(
            self._bot, vc, self._settings, guild_id=guild_id, channel_id=channel_id
        )

    async def _cleanup_stale(self, guild: discord.Guild) -> None:
        """Drop a voice client left over from a previous session or a crash."""
        vc = guild.voice_client
        if vc is None:
            return

        logger.warning(LogTemplates.VOICE_STALE_CLEANUP, guild.id)
        try:
            await vc.disconnect(force=True)
        except Exception as exc:
            logger.warning(LogTemplates.VOICE_DISCONNECT_FAILED, guild.id, exc)

    async def _ensure_self_deaf(
        self,
        guild: discord.Guild,
        channel: discord.VoiceChannel | discord.StageChannel,
    ) -> None:
        """Ensure the bot is self-deafened in the guild's current voice connection."""
        try:
            await guild.change_voice_state(channel=channel, self_deaf=True)
        except Exception as exc:
            logger.debug(LogTemplates.VOICE_SELF_DEAFEN_FAILED, guild.id, exc)
