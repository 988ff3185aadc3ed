import asyncio
from collections.abc import Sequence
from pathlib import Path

import pytest
import pytest_asyncio

from dwight_soundboard.application.interfaces.rendering_surface import (
    ChannelHandle,
    ControlSpec,
    RenderedMessage,
    RenderingSurface,
)
from dwight_soundboard.application.interfaces.voice_adapter import (
    FinishedCallback,
    VoiceAdapter,
    VoiceConnection,
)
from dwight_soundboard.domain.catalog.entities import EntreeListEntry, Play, Sound, SoundListEntry
from dwight_soundboard.domain.catalog.repository import CatalogStore
from dwight_soundboard.domain.shared.exceptions import (
    ChannelPermissionError,
    SoundNotFoundError,
    VoiceConnectionError,
)
from dwight_soundboard.domain.shared.exceptions import ValidationError as CatalogValidationError
from dwight_soundboard.domain.shared.messages import ErrorMessages
from dwight_soundboard.domain.shared.validators import sound_name_key

GUILD_ID = 111111111
OTHER_GUILD_ID = 222222222
USER_ID = 333333333
VOICE_CHANNEL_ID = 444444444
OTHER_VOICE_CHANNEL_ID = 555555555

# ============================================================================
# Database Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def in_memory_database():
    """Create an in-memory SQLite database for testing."""
    from dwight_soundboard.infrastructure.persistence.database import Database

    db = Database(":memory:")
    await db.initialize()
    yield db
    await db.close()


@pytest.fixture
def sounds_path(tmp_path) -> Path:
    path = tmp_path / "sounds"
    path.mkdir()
    return path


@pytest_asyncio.fixture
async def catalog_store(in_memory_database, sounds_path):
    """SQLite catalog store backed by the in-memory database and a temp sounds dir."""
    from dwight_soundboard.infrastructure.persistence.repositories.catalog_repository import (
        SQLiteCatalogStore,
    )

    return SQLiteCatalogStore(in_memory_database, sounds_path, default_sound_limit=20)


async def add_sound(store, name: str, *, guild_id: int = GUILD_ID, hidden: bool = False):
    """Add a sound with a few bytes of fake audio."""
    return await store.add_sound(
        guild_id=guild_id,
        name=name,
        hidden=hidden,
        created_by=USER_ID,
        audio=b"ID3fake-audio",
        file_extension="mp3",
    )


# ============================================================================
# Catalog Fakes
# ============================================================================


class InMemoryCatalogStore(CatalogStore):
    """Dict-backed CatalogStore with the same rules as the SQLite store.

    Audio bytes are kept in memory; ``missing_files`` simulates audio that
    vanished from disk.
    """

    def __init__(self, default_sound_limit: int = 20) -> None:
        self._default_limit = default_sound_limit
        self._next_id = 1
        self.sounds: dict[int, Sound] = {}
        self.audio: dict[int, bytes] = {}
        self.entrees: dict[tuple[int, int], int] = {}
        self.limits: dict[int, int] = {}
        self.plays: list[Play] = []
        self.missing_files: set[int] = set()

    def _live(self, guild_id: int) -> list[Sound]:
        return [s for s in self.sounds.values() if s.guild_id == guild_id and not s.deleted]

    def _find(self, guild_id: int, name: str, ignore_id: int | None = None) -> Sound | None:
        for sound in self._live(guild_id):
            if sound.id != ignore_id and sound_name_key(sound.name) == sound_name_key(name):
                return sound
        return None

    def _require(self, guild_id: int, name: str) -> Sound:
        sound = self._find(guild_id, name)
        if sound is None:
            raise SoundNotFoundError(name, ErrorMessages.SOUND_NAME_NOT_FOUND.format(name=name))
        return sound

    def _ensure_name_free(self, guild_id: int, name: str, ignore_id: int | None = None) -> None:
        if self._find(guild_id, name, ignore_id) is not None:
            raise CatalogValidationError(
                ErrorMessages.DUPLICATE_SOUND_NAME.format(name=name), field="name"
            )

    async def get_sounds_for_guild(self, guild_id: int) -> list[SoundListEntry]:
        entries = [SoundListEntry(id=s.id, name=s.name, hidden=s.hidden) for s in self._live(guild_id)]
        return sorted(entries, key=lambda e: e.sort_key)

    async def get_sound(self, sound_id: int) -> Sound | None:
        sound = self.sounds.get(sound_id)
        return sound if sound is not None and not sound.deleted else None

    async def get_sound_by_name(self, guild_id: int, name: str) -> Sound | None:
        return self._find(guild_id, name)

    async def get_path_to_sound(self, sound_id: int) -> Path:
        sound = await self.get_sound(sound_id)
        if sound is None:
            raise SoundNotFoundError(sound_id)
        if sound_id in self.missing_files:
            raise SoundNotFoundError(
                sound_id, ErrorMessages.SOUND_FILE_MISSING.format(sound_id=sound_id)
            )
        return Path("memory") / sound.file_name

    async def add_sound(
        self,
        *,
        guild_id: int,
        name: str,
        hidden: bool,
        created_by: int | None,
        audio: bytes,
        file_extension: str,
    ) -> Sound:
        self._ensure_name_free(guild_id, name)
        limit = await self.get_sound_limit(guild_id)
        if len(self._live(guild_id)) >= limit:
            raise CatalogValidationError(ErrorMessages.SOUND_LIMIT_REACHED.format(limit=limit))

        sound = Sound(
            id=self._next_id,
            guild_id=guild_id,
            name=name,
            hidden=hidden,
            created_by=created_by,
            file_extension=file_extension,
        )
        self._next_id += 1
        self.sounds[sound.id] = sound
        self.audio[sound.id] = audio
        return sound

    async def remove_sound(self, guild_id: int, name: str) -> Sound:
        sound = self._require(guild_id, name)
        self.entrees = {k: v for k, v in self.entrees.items() if v != sound.id}
        removed = sound.model_copy(update={"deleted": True})
        self.sounds[sound.id] = removed
        return removed

    async def rename_sound(self, guild_id: int, old_name: str, new_name: str) -> Sound:
        sound = self._require(guild_id, old_name)
        self._ensure_name_free(guild_id, new_name, ignore_id=sound.id)
        renamed = sound.model_copy(update={"name": new_name})
        self.sounds[sound.id] = renamed
        return renamed

    async def get_sound_limit(self, guild_id: int) -> int:
        return self.limits.get(guild_id, self._default_limit)

    async def set_sound_limit(self, guild_id: int, max_sounds: int) -> None:
        self.limits[guild_id] = max_sounds

    async def get_entree_sound_id_for_guild_user(self, guild_id: int, user_id: int) -> int | None:
        return self.entrees.get((guild_id, user_id))

    async def set_entree(self, guild_id: int, user_id: int, sound_id: int) -> None:
        self.entrees[(guild_id, user_id)] = sound_id

    async def remove_entree(self, guild_id: int, user_id: int) -> bool:
        return self.entrees.pop((guild_id, user_id), None) is not None

    async def get_entrees_for_guild(self, guild_id: int) -> list[EntreeListEntry]:
        entries = [
            EntreeListEntry(user_id=user_id, sound_id=sound_id, sound_name=self.sounds[sound_id].name)
            for (g, user_id), sound_id in self.entrees.items()
            if g == guild_id and not self.sounds[sound_id].deleted
        ]
        return sorted(entries, key=lambda e: (sound_name_key(e.sound_name), e.user_id))

    async def record_play(self, user_id: int, sound_id: int) -> None:
        self.plays.append(Play(user_id=user_id, sound_id=sound_id))

    async def get_plays_for_sound(self, sound_id: int, limit: int = 50) -> list[Play]:
        plays = [p for p in reversed(self.plays) if p.sound_id == sound_id]
        return plays[:limit]

    async def remove_all_data_for_guild(self, guild_id: int) -> None:
        self.entrees = {k: v for k, v in self.entrees.items() if k[0] != guild_id}
        for sound in self._live(guild_id):
            self.sounds[sound.id] = sound.model_copy(update={"deleted": True})
        self.limits.pop(guild_id, None)


@pytest.fixture
def memory_catalog_store():
    return InMemoryCatalogStore(default_sound_limit=20)


@pytest_asyncio.fixture(params=["sqlite", "memory"])
async def any_catalog_store(request, sounds_path):
    """Each CatalogStore implementation in turn."""
    if request.param == "memory":
        yield InMemoryCatalogStore(default_sound_limit=20)
        return

    from dwight_soundboard.infrastructure.persistence.database import Database
    from dwight_soundboard.infrastructure.persistence.repositories.catalog_repository import (
        SQLiteCatalogStore,
    )

    db = Database(":memory:")
    await db.initialize()
    yield SQLiteCatalogStore(db, sounds_path, default_sound_limit=20)
    await db.close()


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def event_bus():
    from dwight_soundboard.domain.shared.events import EventBus

    return EventBus()


@pytest.fixture
def rendering_settings():
    from dwight_soundboard.config.settings import RenderingSettings

    return RenderingSettings(page_size=2, send_delay_seconds=1.1)


@pytest.fixture
def recorded_sleeps():
    return []


@pytest.fixture
def fake_sleep(recorded_sleeps):
    async def _sleep(delay: float) -> None:
        recorded_sleeps.append(delay)

    return _sleep


# ============================================================================
# Voice Fakes
# ============================================================================


class FakeVoiceConnection(VoiceConnection):
    """In-memory voice connection. ``finish()`` simulates the audio running out."""

    def __init__(self, guild_id: int, channel_id: int, *, fail_play: bool = False) -> None:
        self._guild_id = guild_id
        self._channel_id = channel_id
        self.fail_play = fail_play
        self.connected = True
        self.playing = False
        self.source: Path | None = None
        self.on_finished: FinishedCallback | None = None
        self.played: list[Path] = []
        self.replaced: list[Path] = []
        self.stop_calls = 0
        self.disconnect_calls = 0
        self.tasks: set[asyncio.Task] = set()

    @property
    def guild_id(self) -> int:
        return self._guild_id

    @property
    def channel_id(self) -> int:
        return self._channel_id

    def play(self, path: Path, on_finished: FinishedCallback) -> None:
        if self.fail_play or not self.connected:
            raise VoiceConnectionError(self._guild_id, self._channel_id, "play failed")
        if self.playing:
            raise VoiceConnectionError(self._guild_id, self._channel_id, "already playing")
        self.playing = True
        self.source = path
        self.on_finished = on_finished
        self.played.append(path)

    def replace_source(self, path: Path) -> bool:
        if not self.playing:
            return False
        self.source = path
        self.replaced.append(path)
        return True

    def is_playing(self) -> bool:
        return self.playing

    def is_connected(self) -> bool:
        return self.connected

    def stop(self) -> None:
        self.stop_calls += 1
        if not self.playing:
            return
        self.playing = False
        # Mirrors the player's after-callback firing on stop.
        if self.on_finished is not None:
            task = asyncio.get_running_loop().create_task(self.on_finished())
            self.tasks.add(task)
            task.add_done_callback(self.tasks.discard)

    async def finish(self) -> None:
        self.playing = False
        assert self.on_finished is not None
        await self.on_finished()

    async def disconnect(self) -> None:
        self.disconnect_calls += 1
        self.connected = False


class FakeVoiceAdapter(VoiceAdapter):
    def __init__(self) -> None:
        self.connections: list[FakeVoiceConnection] = []
        self.fail_channels: set[int] = set()
        self.fail_play_channels: set[int] = set()

    async def connect(self, guild_id: int, channel_id: int) -> FakeVoiceConnection:
        if channel_id in self.fail_channels:
            raise VoiceConnectionError(guild_id, channel_id, "timed out")
        conn = FakeVoiceConnection(
            guild_id, channel_id, fail_play=channel_id in self.fail_play_channels
        )
        self.connections.append(conn)
        return conn

    def connections_to(self, channel_id: int) -> list[FakeVoiceConnection]:
        return [c for c in self.connections if c.channel_id == channel_id]


@pytest.fixture
def voice_adapter():
    return FakeVoiceAdapter()


@pytest.fixture
def playback_manager(catalog_store, voice_adapter, event_bus):
    from dwight_soundboard.application.services.playback_manager import PlaybackManager

    return PlaybackManager(
        catalog_store=catalog_store, voice_adapter=voice_adapter, event_bus=event_bus
    )


# ============================================================================
# Rendering Fakes
# ============================================================================


class FakeRenderingSurface(RenderingSurface):
    """Keeps channels and messages in memory and records every call."""

    def __init__(self) -> None:
        self._next_id = 900_000_000
        self.channels: dict[int, ChannelHandle] = {}
        self.messages: dict[int, list[RenderedMessage]] = {}
        self.undeletable: set[int] = set()
        self.notifications: list[tuple[int, str]] = []
        self.calls: list[tuple] = []
        self.send_gate: asyncio.Event | None = None

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def add_channel(self, guild_id: int, name: str, *, deletable: bool = True) -> ChannelHandle:
        handle = ChannelHandle(
            guild_id=guild_id,
            channel_id=self._new_id(),
            name=name,
            deletable=deletable,
            guild_name="Dunder Mifflin",
        )
        self.channels[handle.channel_id] = handle
        self.messages[handle.channel_id] = []
        return handle

    def add_message(
        self,
        channel_id: int,
        content: str,
        controls: Sequence[ControlSpec] = (),
        *,
        author_is_self: bool = True,
    ) -> RenderedMessage:
        message = RenderedMessage(
            message_id=self._new_id(),
            author_is_self=author_is_self,
            content=content,
            controls=tuple(controls),
        )
        self.messages[channel_id].append(message)
        return message

    def channel_named(self, guild_id: int, name: str) -> ChannelHandle | None:
        for handle in self.channels.values():
            if handle.guild_id == guild_id and handle.name == name:
                return handle
        return None

    async def find_channel(self, guild_id: int, name: str) -> ChannelHandle | None:
        self.calls.append(("find", guild_id, name))
        return self.channel_named(guild_id, name)

    async def recreate_channel(self, existing: ChannelHandle, topic: str) -> ChannelHandle:
        self.calls.append(("recreate", existing.guild_id, existing.channel_id))
        if existing.channel_id in self.undeletable:
            raise ChannelPermissionError(existing.guild_id, existing.channel_id)
        del self.channels[existing.channel_id]
        del self.messages[existing.channel_id]
        return self.add_channel(existing.guild_id, existing.name)

    async def create_channel(self, guild_id: int, name: str, topic: str) -> ChannelHandle:
        self.calls.append(("create", guild_id, name))
        return self.add_channel(guild_id, name)

    async def notify_owner(self, guild_id: int, message: str) -> None:
        self.notifications.append((guild_id, message))

    async def fetch_messages(self, channel_id: int) -> list[RenderedMessage]:
        self.calls.append(("fetch", channel_id))
        return list(self.messages.get(channel_id, []))

    async def send_controls(
        self, channel_id: int, content: str, controls: Sequence[ControlSpec]
    ) -> int:
        self.calls.append(("send", channel_id, content, tuple(c.label for c in controls)))
        if self.send_gate is not None:
            await self.send_gate.wait()
        return self.add_message(channel_id, content, controls).message_id

    def sent_labels(self, channel_id: int) -> list[list[str]]:
        return [[c.label for c in m.controls] for m in self.messages[channel_id]]


@pytest.fixture
def surface():
    return FakeRenderingSurface()


@pytest.fixture
def channel_renderer(catalog_store, surface, rendering_settings, event_bus, fake_sleep):
    from dwight_soundboard.application.services.channel_renderer import ChannelRenderer

    return ChannelRenderer(
        catalog_store=catalog_store,
        surface=surface,
        settings=rendering_settings,
        event_bus=event_bus,
        sleep=fake_sleep,
    )
