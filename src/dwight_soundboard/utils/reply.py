"""Utility functions for formatting Discord messages."""

from __future__ import annotations

from collections.abc import Iterable

from dwight_soundboard.domain.shared.constants import DiscordLimits


def truncate(text: str, max_length: int = 90) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 1] + "…"


def join_lines(header: str, lines: Iterable[str], max_length: int = DiscordLimits.MAX_MESSAGE_LENGTH) -> str:
    """Join *lines* under *header*, cutting off with a count of what didn't fit.

    The result never exceeds *max_length* characters.
    """
    items = list(lines)
    out = header
    for shown, line in enumerate(items):
        remaining = len(items) - shown
        more = f"\n… and {remaining} more"
        if len(out) + 1 + len(line) + len(more) > max_length and remaining > 1:
            return out + more
        if len(out) + 1 + len(line) > max_length:
            return out + more
        out = f"{out}\n{line}"
    return out


def mention(user_id: int) -> str:
    return f"<@{user_id}>"
