"""
Unit Tests for CatalogCog

Tests for the catalog slash commands:
- /rebuild (completed, coalesced, permission failure)
- /sounds and /entrees listings
- /add_sound, /rename_sound, /delete_sound with validation errors
- /plays history
- /set_entree and /remove_entree
- Sound name autocomplete
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest
from discord.ext import commands

from dwight_soundboard.application.services.rebuild_coordinator import RebuildStatus
from dwight_soundboard.domain.catalog.entities import EntreeListEntry, Play, Sound, SoundListEntry
from dwight_soundboard.domain.shared.exceptions import (
    ChannelPermissionError,
    SoundNotFoundError,
    ValidationError,
)
from dwight_soundboard.domain.shared.messages import DiscordUIMessages
from dwight_soundboard.infrastructure.discord.cogs.catalog_cog import CatalogCog, setup

# =============================================================================
# Fixtures
# =============================================================================


def _sound(sound_id=1, name="airhorn", hidden=False):
    return Sound(id=sound_id, guild_id=111, name=name, hidden=hidden, created_by=222)


@pytest.fixture
def mock_container():
    container = MagicMock()
    container.rebuild_coordinator.request_rebuild = AsyncMock(return_value=RebuildStatus.COMPLETED)

    service = container.catalog_service
    service.list_sounds = AsyncMock(return_value=[])
    service.sound_limit = AsyncMock(return_value=20)
    service.check_upload = MagicMock(return_value="mp3")
    service.add_sound = AsyncMock(return_value=_sound())
    service.rename_sound = AsyncMock(return_value=_sound(name="foghorn"))
    service.remove_sound = AsyncMock(return_value=_sound())
    service.list_entrees = AsyncMock(return_value=[])
    service.set_entree = AsyncMock(return_value=_sound())
    service.remove_entree = AsyncMock(return_value=True)
    service.recent_plays = AsyncMock(return_value=(_sound(), []))
    return container


@pytest.fixture
def cog(mock_container):
    bot = MagicMock()
    return CatalogCog(bot, mock_container)


@pytest.fixture
def interaction():
    i = MagicMock(spec=discord.Interaction)
    state = {"done": False}

    async def defer(*args, **kwargs):
        state["done"] = True

    i.response = MagicMock()
    i.response.is_done = MagicMock(side_effect=lambda: state["done"])
    i.response.defer = AsyncMock(side_effect=defer)
    i.response.send_message = AsyncMock()
    i.followup = MagicMock()
    i.followup.send = AsyncMock()

    i.guild = MagicMock()
    i.guild.id = 111
    i.guild_id = 111

    member = MagicMock(spec=discord.Member)
    member.id = 222
    i.user = member
    return i


@pytest.fixture
def target_member():
    member = MagicMock(spec=discord.Member)
    member.id = 333
    member.mention = "<@333>"
    return member


@pytest.fixture
def attachment():
    file = MagicMock(spec=discord.Attachment)
    file.filename = "airhorn.mp3"
    file.size = 1234
    file.read = AsyncMock(return_value=b"ID3audio")
    return file


def _reply(interaction) -> str:
    """The single ephemeral message the command sent, however it was sent."""
    if interaction.followup.send.await_count:
        call = interaction.followup.send.await_args
    else:
        call = interaction.response.send_message.await_args
    assert call.kwargs.get("ephemeral") is True
    return call.args[0]


# =============================================================================
# /rebuild
# =============================================================================


class TestRebuild:
    @pytest.mark.asyncio
    async def test_rebuild_completed(self, cog, interaction, mock_container):
        await cog.rebuild.callback(cog, interaction)

        interaction.response.defer.assert_awaited_once_with(ephemeral=True)
        mock_container.rebuild_coordinator.request_rebuild.assert_awaited_once_with(111)
        assert _reply(interaction) == DiscordUIMessages.SUCCESS_REBUILT

    @pytest.mark.asyncio
    async def test_rebuild_coalesced(self, cog, interaction, mock_container):
        mock_container.rebuild_coordinator.request_rebuild.return_value = RebuildStatus.COALESCED

        await cog.rebuild.callback(cog, interaction)

        assert _reply(interaction) == DiscordUIMessages.SUCCESS_REBUILD_QUEUED

    @pytest.mark.asyncio
    async def test_rebuild_permission_error(self, cog, interaction, mock_container):
        mock_container.rebuild_coordinator.request_rebuild.side_effect = ChannelPermissionError(111, 5)

        await cog.rebuild.callback(cog, interaction)

        assert _reply(interaction) == DiscordUIMessages.ERROR_CHANNEL_PERMISSION

    @pytest.mark.asyncio
    async def test_rebuild_outside_guild(self, cog, interaction, mock_container):
        interaction.guild = None

        await cog.rebuild.callback(cog, interaction)

        mock_container.rebuild_coordinator.request_rebuild.assert_not_awaited()
        assert _reply(interaction) == DiscordUIMessages.STATE_SERVER_ONLY


# =============================================================================
# Sounds
# =============================================================================


class TestSoundCommands:
    @pytest.mark.asyncio
    async def test_sounds_empty(self, cog, interaction):
        await cog.sounds.callback(cog, interaction)

        assert _reply(interaction) == DiscordUIMessages.SOUNDS_EMPTY

    @pytest.mark.asyncio
    async def test_sounds_lists_with_hidden_note(self, cog, interaction, mock_container):
        mock_container.catalog_service.list_sounds.return_value = [
            SoundListEntry(id=2, name="bears"),
            SoundListEntry(id=1, name="Alarm", hidden=True),
        ]

        await cog.sounds.callback(cog, interaction)

        content = _reply(interaction)
        assert content.splitlines() == [
            DiscordUIMessages.SOUNDS_HEADER.format(count=2, limit=20),
            f"• Alarm{DiscordUIMessages.HIDDEN_NOTE}",
            "• bears",
        ]

    @pytest.mark.asyncio
    async def test_add_sound(self, cog, interaction, attachment, mock_container):
        await cog.add_sound.callback(cog, interaction, "airhorn", attachment, False)

        mock_container.catalog_service.check_upload.assert_called_once_with("airhorn.mp3", 1234)
        mock_container.catalog_service.add_sound.assert_awaited_once_with(
            guild_id=111,
            name="airhorn",
            hidden=False,
            created_by=222,
            audio=b"ID3audio",
            filename="airhorn.mp3",
        )
        assert _reply(interaction) == DiscordUIMessages.SUCCESS_SOUND_ADDED.format(
            name="airhorn", hidden_note=""
        )

    @pytest.mark.asyncio
    async def test_add_hidden_sound(self, cog, interaction, attachment, mock_container):
        mock_container.catalog_service.add_sound.return_value = _sound(hidden=True)

        await cog.add_sound.callback(cog, interaction, "airhorn", attachment, True)

        assert _reply(interaction) == DiscordUIMessages.SUCCESS_SOUND_ADDED.format(
            name="airhorn", hidden_note=DiscordUIMessages.HIDDEN_NOTE
        )

    @pytest.mark.asyncio
    async def test_add_sound_rejected_before_download(self, cog, interaction, attachment, mock_container):
        mock_container.catalog_service.check_upload.side_effect = ValidationError("too big")

        await cog.add_sound.callback(cog, interaction, "airhorn", attachment, False)

        attachment.read.assert_not_awaited()
        mock_container.catalog_service.add_sound.assert_not_awaited()
        assert _reply(interaction) == DiscordUIMessages.ERROR_PREFIX.format(message="too big")

    @pytest.mark.asyncio
    async def test_add_sound_duplicate(self, cog, interaction, attachment, mock_container):
        mock_container.catalog_service.add_sound.side_effect = ValidationError("already exists")

        await cog.add_sound.callback(cog, interaction, "airhorn", attachment, False)

        assert _reply(interaction) == DiscordUIMessages.ERROR_PREFIX.format(message="already exists")

    @pytest.mark.asyncio
    async def test_rename_sound(self, cog, interaction, mock_container):
        await cog.rename_sound.callback(cog, interaction, "airhorn", "foghorn")

        mock_container.catalog_service.rename_sound.assert_awaited_once_with(111, "airhorn", "foghorn")
        assert _reply(interaction) == DiscordUIMessages.SUCCESS_SOUND_RENAMED.format(
            old_name="airhorn", new_name="foghorn"
        )

    @pytest.mark.asyncio
    async def test_delete_sound_unknown(self, cog, interaction, mock_container):
        mock_container.catalog_service.remove_sound.side_effect = SoundNotFoundError(
            "ghost", "No sound named 'ghost'"
        )

        await cog.delete_sound.callback(cog, interaction, "ghost")

        assert _reply(interaction) == DiscordUIMessages.ERROR_PREFIX.format(
            message="No sound named 'ghost'"
        )

    @pytest.mark.asyncio
    async def test_delete_sound(self, cog, interaction, mock_container):
        await cog.delete_sound.callback(cog, interaction, "airhorn")

        assert _reply(interaction) == DiscordUIMessages.SUCCESS_SOUND_DELETED.format(name="airhorn")

    @pytest.mark.asyncio
    async def test_plays_lists_players_with_timestamps(self, cog, interaction, mock_container):
        played_at = datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)
        mock_container.catalog_service.recent_plays.return_value = (
            _sound(),
            [
                Play(user_id=333, sound_id=1, played_at=played_at),
                Play(user_id=222, sound_id=1, played_at=played_at),
            ],
        )

        await cog.plays.callback(cog, interaction, "AIRHORN", 5)

        mock_container.catalog_service.recent_plays.assert_awaited_once_with(111, "AIRHORN", 5)
        stamp = f"<t:{int(played_at.timestamp())}:R>"
        assert _reply(interaction) == (
            DiscordUIMessages.PLAYS_HEADER.format(name="airhorn", count=2)
            + f"\n• <@333> {stamp}\n• <@222> {stamp}"
        )

    @pytest.mark.asyncio
    async def test_plays_never_played(self, cog, interaction):
        await cog.plays.callback(cog, interaction, "airhorn", 10)

        assert _reply(interaction) == DiscordUIMessages.PLAYS_EMPTY.format(name="airhorn")

    @pytest.mark.asyncio
    async def test_plays_unknown_sound(self, cog, interaction, mock_container):
        mock_container.catalog_service.recent_plays.side_effect = SoundNotFoundError(
            "ghost", "No sound named 'ghost'"
        )

        await cog.plays.callback(cog, interaction, "ghost", 10)

        assert _reply(interaction) == DiscordUIMessages.ERROR_PREFIX.format(
            message="No sound named 'ghost'"
        )


# =============================================================================
# Entrees
# =============================================================================


class TestEntreeCommands:
    @pytest.mark.asyncio
    async def test_entrees_empty(self, cog, interaction):
        await cog.entrees.callback(cog, interaction)

        assert _reply(interaction) == DiscordUIMessages.ENTREES_EMPTY

    @pytest.mark.asyncio
    async def test_entrees_lists_mentions(self, cog, interaction, mock_container):
        mock_container.catalog_service.list_entrees.return_value = [
            EntreeListEntry(user_id=333, sound_id=1, sound_name="airhorn")
        ]

        await cog.entrees.callback(cog, interaction)

        content = _reply(interaction)
        assert content.startswith(DiscordUIMessages.ENTREES_HEADER.format(count=1))
        assert "<@333> → airhorn" in content

    @pytest.mark.asyncio
    async def test_set_entree(self, cog, interaction, target_member, mock_container):
        await cog.set_entree.callback(cog, interaction, target_member, "AIRHORN")

        mock_container.catalog_service.set_entree.assert_awaited_once_with(111, 333, "AIRHORN")
        assert _reply(interaction) == DiscordUIMessages.SUCCESS_ENTREE_SET.format(
            user="<@333>", name="airhorn"
        )

    @pytest.mark.asyncio
    async def test_set_entree_unknown_sound(self, cog, interaction, target_member, mock_container):
        mock_container.catalog_service.set_entree.side_effect = SoundNotFoundError("x", "nope")

        await cog.set_entree.callback(cog, interaction, target_member, "x")

        assert _reply(interaction) == DiscordUIMessages.ERROR_PREFIX.format(message="nope")

    @pytest.mark.asyncio
    async def test_remove_entree(self, cog, interaction, target_member):
        await cog.remove_entree.callback(cog, interaction, target_member)

        assert _reply(interaction) == DiscordUIMessages.SUCCESS_ENTREE_REMOVED.format(user="<@333>")

    @pytest.mark.asyncio
    async def test_remove_missing_entree(self, cog, interaction, target_member, mock_container):
        mock_container.catalog_service.remove_entree.return_value = False

        await cog.remove_entree.callback(cog, interaction, target_member)

        assert _reply(interaction) == DiscordUIMessages.INFO_NO_ENTREE.format(user="<@333>")


# =============================================================================
# Autocomplete
# =============================================================================


class TestAutocomplete:
    @pytest.mark.asyncio
    async def test_filters_by_substring_ignoring_case(self, cog, interaction, mock_container):
        mock_container.catalog_service.list_sounds.return_value = [
            SoundListEntry(id=1, name="Airhorn"),
            SoundListEntry(id=2, name="foghorn"),
            SoundListEntry(id=3, name="bears"),
        ]

        choices = await cog.sound_name_autocomplete(interaction, "HORN")

        assert [c.value for c in choices] == ["Airhorn", "foghorn"]

    @pytest.mark.asyncio
    async def test_caps_choices(self, cog, interaction, mock_container):
        mock_container.catalog_service.list_sounds.return_value = [
            SoundListEntry(id=i, name=f"sound {i}") for i in range(1, 40)
        ]

        choices = await cog.sound_name_autocomplete(interaction, "")

        assert len(choices) == 25

    @pytest.mark.asyncio
    async def test_outside_guild(self, cog, interaction):
        interaction.guild_id = None

        assert await cog.sound_name_autocomplete(interaction, "a") == []


# =============================================================================
# Setup Tests
# =============================================================================


@pytest.mark.asyncio
async def test_setup_adds_cog(mock_container):
    bot = MagicMock(spec=commands.Bot)
    bot.container = mock_container
    bot.add_cog = AsyncMock()

    await setup(bot)

    assert isinstance(bot.add_cog.await_args.args[0], CatalogCog)
