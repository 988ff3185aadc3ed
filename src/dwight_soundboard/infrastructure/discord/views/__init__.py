"""Discord UI views and components."""

from __future__ import annotations

from dwight_soundboard.infrastructure.discord.views.soundboard_view import (
    SoundButton,
    SoundboardView,
)

__all__ = [
    "SoundButton",
    "SoundboardView",
]
