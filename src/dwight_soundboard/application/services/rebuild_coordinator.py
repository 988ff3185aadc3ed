"""Serialize and coalesce soundboard rebuilds per guild."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine, Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from ...domain.shared.events import CatalogChanged
from ...domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...domain.shared.events import EventBus
    from .channel_renderer import ChannelRenderer

logger = logging.getLogger(__name__)


class RebuildStatus(StrEnum):
    COMPLETED = "completed"
    SCHEDULED = "scheduled"
    COALESCED = "coalesced"


@dataclass
class RebuildState:
    in_progress: bool = False
    pending_retrigger: bool = False


class RebuildCoordinator:
    """At most one rebuild runs per guild; requests made meanwhile collapse into one follow-up.

    ``in_progress`` stays set while a trailing rebuild is handed off, so no other
    request can start a competing build in between. Guilds never share state.
    """

    def __init__(
        self,
        *,
        renderer: ChannelRenderer,
        event_bus: EventBus,
        auto_rebuild: bool = True,
    ) -> None:
        self._renderer = renderer
        self._bus = event_bus
        self._auto_rebuild = auto_rebuild
        self._states: dict[int, RebuildState] = {}
        self._tasks: set[asyncio.Task[None]] = set()
        self._started = False

    def start(self) -> None:
        if self._started:
            return
        self._bus.subscribe(CatalogChanged, self.on_catalog_changed)
        self._started = True

    def stop(self) -> None:
        if not self._started:
            return
        self._bus.unsubscribe(CatalogChanged, self.on_catalog_changed)
        self._started = False

    def is_rebuilding(self, guild_id: int) -> bool:
        state = self._states.get(guild_id)
        return state is not None and state.in_progress

    # ─────────────────────────────────────────────────────────────────
    # Requests
    # ─────────────────────────────────────────────────────────────────

    async def request_rebuild(self, guild_id: int) -> RebuildStatus:
        """Run a rebuild now, or mark one as pending if a build is already running.

        Returns without waiting when the request is coalesced.

        Raises:
            Whatever the renderer raised (e.g. ``ChannelPermissionError``), after logging it.
        """
        state = self._claim(guild_id)
        if state is None:
            return RebuildStatus.COALESCED

        await self._rebuild(guild_id, state, propagate=True)
        return RebuildStatus.COMPLETED

    def schedule_rebuild(self, guild_id: int) -> RebuildStatus:
        """Fire-and-forget variant of :meth:`request_rebuild` for event handlers."""
        state = self._claim(guild_id)
        if state is None:
            return RebuildStatus.COALESCED

        self._spawn(self._rebuild(guild_id, state, propagate=False))
        return RebuildStatus.SCHEDULED

    async def rebuild_all(self, guild_ids: Iterable[int]) -> int:
        """Rebuild guilds one after the other. Returns how many completed."""
        ids = list(guild_ids)
        logger.info(LogTemplates.REBUILD_ALL, len(ids))

        completed = 0
        for guild_id in ids:
            try:
                status = await self.request_rebuild(guild_id)
            except Exception as exc:
                logger.warning(LogTemplates.REBUILD_SKIPPED, guild_id, exc)
                continue
            if status is RebuildStatus.COMPLETED:
                completed += 1
        return completed

    async def on_catalog_changed(self, event: CatalogChanged) -> None:
        if self._auto_rebuild:
            self.schedule_rebuild(event.guild_id)

    async def drain(self) -> None:
        """Wait for all background and trailing rebuilds, including ones they spawn."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ─────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────

    def _claim(self, guild_id: int) -> RebuildState | None:
        state = self._states.setdefault(guild_id, RebuildState())
        if state.in_progress:
            state.pending_retrigger = True
            logger.debug(LogTemplates.REBUILD_COALESCED, guild_id)
            return None
        state.in_progress = True
        return state

    async def _rebuild(self, guild_id: int, state: RebuildState, *, propagate: bool) -> None:
        try:
            await self._renderer.rebuild(guild_id)
        except Exception:
            logger.exception(LogTemplates.REBUILD_FAILED, guild_id)
            if propagate:
                raise
        finally:
            self._complete(guild_id, state)

    def _complete(self, guild_id: int, state: RebuildState) -> None:
        if state.pending_retrigger:
            state.pending_retrigger = False
            logger.info(LogTemplates.REBUILD_TRAILING, guild_id)
            self._spawn(self._rebuild(guild_id, state, propagate=False))
            return

        state.in_progress = False
        if self._states.get(guild_id) is state:
            del self._states[guild_id]

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
