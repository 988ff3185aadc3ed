"""Centralized constants for SQLite pragmas, control ids, and Discord limits."""

from __future__ import annotations


class SQLPragmas:
    """SQLite PRAGMA statements for database configuration.

    These pragmas are applied to each connection to ensure consistent behavior.
    """

    JOURNAL_MODE_WAL = "PRAGMA journal_mode=WAL"
    FOREIGN_KEYS_ON = "PRAGMA foreign_keys=ON"
    BUSY_TIMEOUT = "PRAGMA busy_timeout={timeout}"
    TABLE_INFO = "PRAGMA table_info({table})"


class ControlIds:
    """Layout of the custom ids carried by soundboard buttons.

    A control id looks like ``dwight:sound:<generation>:<index>``. The generation
    changes on every rebuild so buttons left over from an older rendering never
    resolve to a sound.
    """

    PREFIX = "dwight:sound"
    SEPARATOR = ":"

    @classmethod
    def build(cls, generation: str, index: int) -> str:
        return f"{cls.PREFIX}{cls.SEPARATOR}{generation}{cls.SEPARATOR}{index}"

    @classmethod
    def is_control(cls, custom_id: str | None) -> bool:
        if not custom_id or not custom_id.startswith(cls.PREFIX + cls.SEPARATOR):
            return False
        parts = custom_id[len(cls.PREFIX) + 1 :].split(cls.SEPARATOR)
        return len(parts) == 2 and all(parts) and parts[1].isdigit()


class DiscordLimits:
    """Hard limits imposed by the Discord API."""

    MAX_BUTTONS_PER_MESSAGE = 25
    MAX_BUTTONS_PER_ROW = 5
    MAX_BUTTON_LABEL = 80
    MAX_MESSAGE_LENGTH = 2000
    HISTORY_SCAN_LIMIT = 200
