"""
Unit Tests for the Discord Voice Adapter

Tests for DiscordVoiceAdapter and DiscordVoiceConnection:
- Joining self-deafened, stale client cleanup, join failures
- Playing through FFmpeg with the finished callback hopping back onto the loop
- In-place source replacement, stop and disconnect
"""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from dwight_soundboard.config.settings import AudioSettings
from dwight_soundboard.domain.shared.exceptions import VoiceConnectionError
from dwight_soundboard.infrastructure.discord.adapters import voice_adapter as va

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def voice_client():
    vc = MagicMock(spec=discord.VoiceClient)
    vc.is_connected.return_value = True
    vc.is_playing.return_value = False
    vc.is_paused.return_value = False
    vc.disconnect = AsyncMock()
    vc.source = None
    return vc


@pytest.fixture
def channel(voice_client):
    ch = MagicMock(spec=discord.VoiceChannel)
    ch.id = 456
    ch.name = "voice"
    ch.connect = AsyncMock(return_value=voice_client)
    return ch


@pytest.fixture
def guild(channel):
    g = MagicMock(spec=discord.Guild)
    g.id = 123
    g.name = "guild"
    g.voice_client = None
    g.get_channel.return_value = channel
    g.change_voice_state = AsyncMock()
    return g


@pytest.fixture
def bot(guild):
    b = MagicMock()
    b.get_guild.return_value = guild
    return b


@pytest.fixture
def sources(monkeypatch):
    """Replace the FFmpeg source classes; returns the list of created transformers."""
    created = []

    def make_ffmpeg(path, **kwargs):
        src = MagicMock(name="ffmpeg")
        src.path = path
        src.kwargs = kwargs
        return src

    def make_transformer(source, volume):
        t = MagicMock(name="transformer")
        t.original = source
        t.volume = volume
        created.append(t)
        return t

    monkeypatch.setattr(va.discord, "FFmpegPCMAudio", make_ffmpeg)
    monkeypatch.setattr(va.discord, "PCMVolumeTransformer", make_transformer)
    return created


# =============================================================================
# Connect
# =============================================================================


class TestConnect:
    """Tests for DiscordVoiceAdapter.connect."""

    @pytest.mark.asyncio
    async def test_joins_self_deafened(self, bot, guild, channel, voice_client):
        adapter = va.DiscordVoiceAdapter(bot)

        conn = await adapter.connect(123, 456)

        channel.connect.assert_awaited_once_with(self_deaf=True)
        guild.change_voice_state.assert_awaited_once_with(channel=channel, self_deaf=True)
        assert conn.guild_id == 123
        assert conn.channel_id == 456
        assert conn.voice_client is voice_client

    @pytest.mark.asyncio
    async def test_unknown_guild(self, bot):
        bot.get_guild.return_value = None

        with pytest.raises(VoiceConnectionError, match="guild not found"):
            await va.DiscordVoiceAdapter(bot).connect(123, 456)

    @pytest.mark.asyncio
    async def test_not_a_voice_channel(self, bot, guild):
        guild.get_channel.return_value = MagicMock(spec=discord.TextChannel)

        with pytest.raises(VoiceConnectionError, match="not a voice channel"):
            await va.DiscordVoiceAdapter(bot).connect(123, 456)

    @pytest.mark.asyncio
    async def test_stale_client_disconnected_first(self, bot, guild):
        stale = MagicMock()
        stale.disconnect = AsyncMock()
        guild.voice_client = stale

        await va.DiscordVoiceAdapter(bot).connect(123, 456)

        stale.disconnect.assert_awaited_once_with(force=True)

    @pytest.mark.asyncio
    async def test_timeout(self, bot, channel):
        async def hang(**kwargs):
            await asyncio.sleep(10)

        channel.connect = AsyncMock(side_effect=hang)
        adapter = va.DiscordVoiceAdapter(bot, AudioSettings(connect_timeout_seconds=0.01))

        with pytest.raises(VoiceConnectionError, match="timed out"):
            await adapter.connect(123, 456)

    @pytest.mark.asyncio
    async def test_forbidden(self, bot, channel):
        channel.connect.side_effect = discord.Forbidden(MagicMock(status=403), "nope")

        with pytest.raises(VoiceConnectionError, match="missing permissions"):
            await va.DiscordVoiceAdapter(bot).connect(123, 456)

    @pytest.mark.asyncio
    async def test_client_exception(self, bot, channel):
        channel.connect.side_effect = discord.ClientException("Already connected")

        with pytest.raises(VoiceConnectionError, match="Already connected"):
            await va.DiscordVoiceAdapter(bot).connect(123, 456)

    @pytest.mark.asyncio
    async def test_self_deafen_failure_ignored(self, bot, guild):
        guild.change_voice_state.side_effect = RuntimeError("gateway")

        conn = await va.DiscordVoiceAdapter(bot).connect(123, 456)

        assert conn.channel_id == 456


# =============================================================================
# Connection
# =============================================================================


class TestConnection:
    """Tests for DiscordVoiceConnection."""

    @staticmethod
    def _conn(voice_client, loop=None):
        bot = MagicMock()
        bot.loop = loop
        settings = AudioSettings(default_volume=0.7)
        return va.DiscordVoiceConnection(
            bot, voice_client, settings, guild_id=123, channel_id=456
        )

    @pytest.mark.asyncio
    async def test_play_builds_source_and_calls_back_on_loop(self, voice_client, sources):
        finished = asyncio.Event()

        async def on_finished():
            finished.set()

        conn = self._conn(voice_client, asyncio.get_running_loop())

        conn.play(Path("/sounds/1.mp3"), on_finished)

        source = voice_client.play.call_args.args[0]
        assert source is sources[0]
        assert source.volume == 0.7
        assert source.original.path == str(Path("/sounds/1.mp3"))
        assert source.original.kwargs == {"before_options": "-nostdin", "options": "-vn"}

        after = voice_client.play.call_args.kwargs["after"]
        after(None)
        await asyncio.wait_for(finished.wait(), timeout=1)

    @pytest.mark.asyncio
    async def test_play_when_disconnected(self, voice_client, sources):
        voice_client.is_connected.return_value = False

        with pytest.raises(VoiceConnectionError, match="not connected"):
            self._conn(voice_client).play(Path("a.mp3"), AsyncMock())

        voice_client.play.assert_not_called()

    @pytest.mark.asyncio
    async def test_play_when_already_playing(self, voice_client, sources):
        voice_client.is_playing.return_value = True

        with pytest.raises(VoiceConnectionError, match="already playing"):
            self._conn(voice_client).play(Path("a.mp3"), AsyncMock())

    @pytest.mark.asyncio
    async def test_play_client_exception_cleans_up(self, voice_client, sources):
        voice_client.play.side_effect = discord.ClientException("Not connected to voice.")

        with pytest.raises(VoiceConnectionError):
            self._conn(voice_client).play(Path("a.mp3"), AsyncMock())

        sources[0].cleanup.assert_called_once()

    def test_replace_source_swaps_and_cleans_up(self, voice_client, sources):
        old = MagicMock()
        voice_client.source = old
        voice_client.is_playing.return_value = True

        assert self._conn(voice_client).replace_source(Path("b.mp3")) is True

        assert voice_client.source is sources[0]
        old.cleanup.assert_called_once()
        voice_client.play.assert_not_called()

    def test_replace_source_when_idle(self, voice_client, sources):
        assert self._conn(voice_client).replace_source(Path("b.mp3")) is False
        assert sources == []

    def test_stop_only_when_active(self, voice_client):
        conn = self._conn(voice_client)

        conn.stop()
        voice_client.stop.assert_not_called()

        voice_client.is_playing.return_value = True
        conn.stop()
        voice_client.stop.assert_called_once()

    @pytest.mark.asyncio
    async def test_disconnect_swallows_errors(self, voice_client):
        voice_client.disconnect.side_effect = RuntimeError("socket closed")

        await self._conn(voice_client).disconnect()

        voice_client.disconnect.assert_awaited_once_with(force=True)
