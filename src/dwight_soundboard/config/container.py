"""Dependency Injection Container

Manages the application's dependency graph, providing lazy initialization
and lifecycle management for the catalog, rendering, playback and dispatch
components. Components are created on-demand and cached for reuse.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from ..domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from ..application.interfaces.rendering_surface import RenderingSurface
    from ..application.interfaces.voice_adapter import VoiceAdapter
    from ..application.services.catalog_service import CatalogService
    from ..application.services.channel_renderer import ChannelRenderer
    from ..application.services.interaction_dispatcher import (
        EntreeHandler,
        ReactionDispatcher,
    )
    from ..application.services.playback_manager import PlaybackManager
    from ..application.services.rebuild_coordinator import RebuildCoordinator
    from ..domain.catalog.repository import CatalogStore
    from ..domain.shared.events import EventBus
    from ..infrastructure.persistence.database import Database
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    Adapters may be passed in up front (tests do this); anything left as
    ``None`` is built from settings on first access.
    """

    settings: Settings
    _bot: Bot | None = None

    # Persistence layer
    _database: Database | None = None
    _catalog_store: CatalogStore | None = None

    # Infrastructure adapters
    _voice_adapter: VoiceAdapter | None = None
    _rendering_surface: RenderingSurface | None = None

    # Core
    _event_bus: EventBus | None = None
    _channel_renderer: ChannelRenderer | None = None
    _rebuild_coordinator: RebuildCoordinator | None = None
    _playback_manager: PlaybackManager | None = None

    # Inbound handlers
    _reaction_dispatcher: ReactionDispatcher | None = None
    _entree_handler: EntreeHandler | None = None
    _catalog_service: CatalogService | None = None

    def set_bot(self, bot: Bot) -> None:
        """Set the Discord bot instance."""
        self._bot = bot

    @property
    def bot(self) -> Bot:
        """Get the Discord bot instance."""
        if self._bot is None:
            raise RuntimeError(ErrorMessages.BOT_NOT_INITIALIZED)
        return self._bot

    @property
    def sounds_path(self) -> Path:
        return Path(self.settings.audio.sounds_path)

    # === Database ===

    @property
    def database(self) -> Database:
        """Get the database connection manager."""
        if self._database is None:
            from ..infrastructure.persistence.database import Database

            self._database = Database(self.settings.database.url, settings=self.settings.database)
        return self._database

    @property
    def catalog_store(self) -> CatalogStore:
        if self._catalog_store is None:
            from ..infrastructure.persistence.repositories.catalog_repository import (
                SQLiteCatalogStore,
            )

            self._catalog_store = SQLiteCatalogStore(
                self.database,
                self.sounds_path,
                default_sound_limit=self.settings.catalog.default_sound_limit,
            )
        return self._catalog_store

    # === Infrastructure Adapters ===

    @property
    def voice_adapter(self) -> VoiceAdapter:
        """Get the voice adapter."""
        if self._voice_adapter is None:
            from ..infrastructure.discord.adapters.voice_adapter import DiscordVoiceAdapter

            self._voice_adapter = DiscordVoiceAdapter(self.bot, self.settings.audio)
        return self._voice_adapter

    @property
    def rendering_surface(self) -> RenderingSurface:
        if self._rendering_surface is None:
            from ..infrastructure.discord.adapters.rendering_surface import (
                DiscordRenderingSurface,
            )

            self._rendering_surface = DiscordRenderingSurface(self.bot)
        return self._rendering_surface

    # === Core ===

    @property
    def event_bus(self) -> EventBus:
        if self._event_bus is None:
            from ..domain.shared.events import EventBus

            self._event_bus = EventBus()
        return self._event_bus

    @property
    def channel_renderer(self) -> ChannelRenderer:
        """Get the soundboard channel renderer."""
        if self._channel_renderer is None:
            from ..application.services.channel_renderer import ChannelRenderer

            self._channel_renderer = ChannelRenderer(
                catalog_store=self.catalog_store,
                surface=self.rendering_surface,
                settings=self.settings.rendering,
                event_bus=self.event_bus,
            )
        return self._channel_renderer

    @property
    def rebuild_coordinator(self) -> RebuildCoordinator:
        if self._rebuild_coordinator is None:
            from ..application.services.rebuild_coordinator import RebuildCoordinator

            self._rebuild_coordinator = RebuildCoordinator(
                renderer=self.channel_renderer,
                event_bus=self.event_bus,
                auto_rebuild=self.settings.catalog.auto_rebuild_on_change,
            )
        return self._rebuild_coordinator

    @property
    def playback_manager(self) -> PlaybackManager:
        if self._playback_manager is None:
            from ..application.services.playback_manager import PlaybackManager

            self._playback_manager = PlaybackManager(
                catalog_store=self.catalog_store,
                voice_adapter=self.voice_adapter,
                event_bus=self.event_bus,
            )
        return self._playback_manager

    # === Inbound Handlers ===

    @property
    def reaction_dispatcher(self) -> ReactionDispatcher:
        if self._reaction_dispatcher is None:
            from ..application.services.interaction_dispatcher import ReactionDispatcher

            self._reaction_dispatcher = ReactionDispatcher(
                renderer=self.channel_renderer,
                playback_manager=self.playback_manager,
            )
        return self._reaction_dispatcher

    @property
    def entree_handler(self) -> EntreeHandler:
        if self._entree_handler is None:
            from ..application.services.interaction_dispatcher import EntreeHandler

            self._entree_handler = EntreeHandler(
                catalog_store=self.catalog_store,
                playback_manager=self.playback_manager,
            )
        return self._entree_handler

    @property
    def catalog_service(self) -> CatalogService:
        if self._catalog_service is None:
            from ..application.services.catalog_service import CatalogService

            self._catalog_service = CatalogService(
                catalog_store=self.catalog_store,
                event_bus=self.event_bus,
                audio_settings=self.settings.audio,
                catalog_settings=self.settings.catalog,
            )
        return self._catalog_service

    # === Lifecycle ===

    async def initialize(self) -> None:
        """Initialize all async resources."""
        await self.database.initialize()
        self.sounds_path.mkdir(parents=True, exist_ok=True)

        # Catalog changes trigger rebuilds from here on.
        self.rebuild_coordinator.start()

    async def shutdown(self) -> None:
        """Stop subscribers, wait for rebuilds, end playback and close the database."""
        if self._rebuild_coordinator is not None:
            try:
                self._rebuild_coordinator.stop()
                await self._rebuild_coordinator.drain()
            except Exception as exc:
                logger.warning(LogTemplates.SUBSCRIBER_STOP_FAILED, "rebuild coordinator", exc)

        if self._playback_manager is not None:
            try:
                await self._playback_manager.stop_all()
            except Exception as exc:
                logger.warning(LogTemplates.SUBSCRIBER_STOP_FAILED, "playback manager", exc)

        if self._event_bus is not None:
            self._event_bus.clear()

        if self._database is not None:
            await self._database.close()


def create_container(settings: Settings) -> Container:
    """Create a new dependency injection container."""
    return Container(settings)
