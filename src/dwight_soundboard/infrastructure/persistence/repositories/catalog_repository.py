"""SQLite implementation of the sound catalog with audio files on disk."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from dwight_soundboard.domain.catalog.entities import (
    EntreeListEntry,
    Play,
    Sound,
    SoundListEntry,
)
from dwight_soundboard.domain.catalog.repository import CatalogStore
from dwight_soundboard.domain.shared.datetime_utils import UtcDateTime
from dwight_soundboard.domain.shared.exceptions import SoundNotFoundError, ValidationError
from dwight_soundboard.domain.shared.messages import ErrorMessages, LogTemplates
from dwight_soundboard.domain.shared.validators import sound_name_key

if TYPE_CHECKING:
    import aiosqlite

    from ..database import Database

logger = logging.getLogger(__name__)

_SOUND_COLUMNS = "id, guild_id, name, hidden, deleted, created_by, file_extension"


class SQLiteCatalogStore(CatalogStore):
    """Sounds live in SQLite; their audio is stored as ``<sounds_path>/<id>.<ext>``."""

    def __init__(self, database: Database, sounds_path: Path, default_sound_limit: int = 20) -> None:
        self._db = database
        self._sounds_path = sounds_path
        self._default_limit = default_sound_limit

    @property
    def sounds_path(self) -> Path:
        return self._sounds_path

    # ─────────────────────────────────────────────────────────────────
    # Sounds
    # ─────────────────────────────────────────────────────────────────

    async def get_sounds_for_guild(self, guild_id: int) -> list[SoundListEntry]:
        rows = await self._db.fetch_all(
            """
            SELECT id, name, hidden FROM sounds
            WHERE guild_id = ? AND deleted = 0
            ORDER BY name_key, name
            """,
            (guild_id,),
        )
        return [
            SoundListEntry(id=row["id"], name=row["name"], hidden=bool(row["hidden"]))
            for row in rows
        ]

    async def get_sound(self, sound_id: int) -> Sound | None:
        row = await self._db.fetch_one(
            f"SELECT {_SOUND_COLUMNS} FROM sounds WHERE id = ? AND deleted = 0",
            (sound_id,),
        )
        return self._row_to_sound(row) if row else None

    async def get_sound_by_name(self, guild_id: int, name: str) -> Sound | None:
        row = await self._db.fetch_one(
            f"SELECT {_SOUND_COLUMNS} FROM sounds WHERE guild_id = ? AND name_key = ? AND deleted = 0",
            (guild_id, sound_name_key(name)),
        )
        return self._row_to_sound(row) if row else None

    async def get_path_to_sound(self, sound_id: int) -> Path:
        sound = await self.get_sound(sound_id)
        if sound is None:
            raise SoundNotFoundError(sound_id)

        path = self._sounds_path / sound.file_name
        exists = await asyncio.to_thread(path.is_file)
        if not exists:
            raise SoundNotFoundError(
                sound_id, ErrorMessages.SOUND_FILE_MISSING.format(sound_id=sound_id)
            )
        return path

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
        async with self._db.transaction() as conn:
            await self._ensure_name_free(conn, guild_id, name)

            limit = await self._read_limit(conn, guild_id)
            cursor = await conn.execute(
                "SELECT COUNT(*) AS count FROM sounds WHERE guild_id = ? AND deleted = 0",
                (guild_id,),
            )
            row = await cursor.fetchone()
            if row is not None and row["count"] >= limit:
                raise ValidationError(ErrorMessages.SOUND_LIMIT_REACHED.format(limit=limit))

            cursor = await conn.execute(
                """
                INSERT INTO sounds (guild_id, name, name_key, hidden, created_by, file_extension, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    guild_id,
                    name,
                    sound_name_key(name),
                    int(hidden),
                    created_by,
                    file_extension,
                    UtcDateTime.now().iso,
                ),
            )
            sound = Sound(
                id=cursor.lastrowid,
                guild_id=guild_id,
                name=name,
                hidden=hidden,
                created_by=created_by,
                file_extension=file_extension,
            )

            # Written before commit so a failed write leaves no row behind.
            path = self._sounds_path / sound.file_name
            try:
                await asyncio.to_thread(self._write_audio, path, audio)
            except OSError:
                logger.exception(LogTemplates.SOUND_FILE_WRITE_FAILED, path)
                raise

        return sound

    async def remove_sound(self, guild_id: int, name: str) -> Sound:
        async with self._db.transaction() as conn:
            sound = await self._require_sound(conn, guild_id, name)
            await conn.execute("DELETE FROM entrees WHERE sound_id = ?", (sound.id,))
            await conn.execute("UPDATE sounds SET deleted = 1 WHERE id = ?", (sound.id,))

        return sound.model_copy(update={"deleted": True})

    async def rename_sound(self, guild_id: int, old_name: str, new_name: str) -> Sound:
        async with self._db.transaction() as conn:
            sound = await self._require_sound(conn, guild_id, old_name)
            # The sound itself does not block a case-only rename.
            await self._ensure_name_free(conn, guild_id, new_name, ignore_id=sound.id)
            await conn.execute(
                "UPDATE sounds SET name = ?, name_key = ? WHERE id = ?",
                (new_name, sound_name_key(new_name), sound.id),
            )

        return sound.model_copy(update={"name": new_name})

    async def get_sound_limit(self, guild_id: int) -> int:
        async with self._db.connection() as conn:
            return await self._read_limit(conn, guild_id)

    async def set_sound_limit(self, guild_id: int, max_sounds: int) -> None:
        await self._db.execute(
            """
            INSERT INTO guild_limits (guild_id, max_sounds) VALUES (?, ?)
            ON CONFLICT(guild_id) DO UPDATE SET max_sounds = excluded.max_sounds
            """,
            (guild_id, max_sounds),
        )

    # ─────────────────────────────────────────────────────────────────
    # Entrees
    # ─────────────────────────────────────────────────────────────────

    async def get_entree_sound_id_for_guild_user(self, guild_id: int, user_id: int) -> int | None:
        row = await self._db.fetch_one(
            "SELECT sound_id FROM entrees WHERE guild_id = ? AND user_id = ?",
            (guild_id, user_id),
        )
        return row["sound_id"] if row else None

    async def set_entree(self, guild_id: int, user_id: int, sound_id: int) -> None:
        await self._db.execute(
            """
            INSERT INTO entrees (guild_id, user_id, sound_id) VALUES (?, ?, ?)
            ON CONFLICT(guild_id, user_id) DO UPDATE SET sound_id = excluded.sound_id
            """,
            (guild_id, user_id, sound_id),
        )

    async def remove_entree(self, guild_id: int, user_id: int) -> bool:
        deleted = await self._db.execute(
            "DELETE FROM entrees WHERE guild_id = ? AND user_id = ?",
            (guild_id, user_id),
        )
        return deleted > 0

    async def get_entrees_for_guild(self, guild_id: int) -> list[EntreeListEntry]:
        rows = await self._db.fetch_all(
            """
            SELECT e.user_id, e.sound_id, s.name AS sound_name
            FROM entrees e
            JOIN sounds s ON s.id = e.sound_id
            WHERE e.guild_id = ? AND s.deleted = 0
            ORDER BY s.name_key, e.user_id
            """,
            (guild_id,),
        )
        return [
            EntreeListEntry(
                user_id=row["user_id"],
                sound_id=row["sound_id"],
                sound_name=row["sound_name"],
            )
            for row in rows
        ]

    # ─────────────────────────────────────────────────────────────────
    # Plays
    # ─────────────────────────────────────────────────────────────────

    async def record_play(self, user_id: int, sound_id: int) -> None:
        await self._db.execute(
            "INSERT INTO plays (user_id, sound_id, played_at) VALUES (?, ?, ?)",
            (user_id, sound_id, UtcDateTime.now().iso),
        )

    async def get_plays_for_sound(self, sound_id: int, limit: int = 50) -> list[Play]:
        rows = await self._db.fetch_all(
            """
            SELECT user_id, sound_id, played_at FROM plays
            WHERE sound_id = ?
            ORDER BY played_at DESC, id DESC
            LIMIT ?
            """,
            (sound_id, limit),
        )
        return [
            Play(
                user_id=row["user_id"],
                sound_id=row["sound_id"],
                played_at=UtcDateTime.from_iso(row["played_at"]).dt,
            )
            for row in rows
        ]

    # ─────────────────────────────────────────────────────────────────
    # Guild lifecycle
    # ─────────────────────────────────────────────────────────────────

    async def remove_all_data_for_guild(self, guild_id: int) -> None:
        async with self._db.transaction() as conn:
            await conn.execute("DELETE FROM entrees WHERE guild_id = ?", (guild_id,))
            await conn.execute(
                "UPDATE sounds SET deleted = 1 WHERE guild_id = ? AND deleted = 0",
                (guild_id,),
            )
            await conn.execute("DELETE FROM guild_limits WHERE guild_id = ?", (guild_id,))

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    async def _read_limit(self, conn: aiosqlite.Connection, guild_id: int) -> int:
        cursor = await conn.execute(
            "SELECT max_sounds FROM guild_limits WHERE guild_id = ?", (guild_id,)
        )
        row = await cursor.fetchone()
        return row["max_sounds"] if row else self._default_limit

    async def _ensure_name_free(
        self,
        conn: aiosqlite.Connection,
        guild_id: int,
        name: str,
        ignore_id: int | None = None,
    ) -> None:
        cursor = await conn.execute(
            """
            SELECT 1 FROM sounds
            WHERE guild_id = ? AND name_key = ? AND deleted = 0 AND id IS NOT ?
            """,
            (guild_id, sound_name_key(name), ignore_id),
        )
        if await cursor.fetchone() is not None:
            raise ValidationError(ErrorMessages.DUPLICATE_SOUND_NAME.format(name=name), field="name")

    async def _require_sound(self, conn: aiosqlite.Connection, guild_id: int, name: str) -> Sound:
        cursor = await conn.execute(
            f"SELECT {_SOUND_COLUMNS} FROM sounds WHERE guild_id = ? AND name_key = ? AND deleted = 0",
            (guild_id, sound_name_key(name)),
        )
        row = await cursor.fetchone()
        if row is None:
            raise SoundNotFoundError(name, ErrorMessages.SOUND_NAME_NOT_FOUND.format(name=name))
        return self._row_to_sound(dict(row))

    @staticmethod
    def _write_audio(path: Path, audio: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(audio)

    @staticmethod
    def _row_to_sound(row: dict[str, Any]) -> Sound:
        return Sound(
            id=row["id"],
            guild_id=row["guild_id"],
            name=row["name"],
            hidden=bool(row["hidden"]),
            deleted=bool(row["deleted"]),
            created_by=row["created_by"],
            file_extension=row["file_extension"],
        )
