"""Button layout for one soundboard message."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import discord

from dwight_soundboard.domain.shared.constants import DiscordLimits

if TYPE_CHECKING:
    from ....application.interfaces.rendering_surface import ControlSpec


class SoundButton(discord.ui.Button["SoundboardView"]):
    """A sound button. Presses are routed by custom id in the soundboard cog."""

    def __init__(self, control_id: str, label: str, row: int) -> None:
        super().__init__(
            label=label[: DiscordLimits.MAX_BUTTON_LABEL],
            custom_id=control_id,
            style=discord.ButtonStyle.secondary,
            row=row,
        )

    async def callback(self, interaction: discord.Interaction) -> None:
        return None


class SoundboardView(discord.ui.View):
    """Persistent (no timeout) view laying out up to 25 sound buttons, five per row."""

    def __init__(self, controls: Sequence[ControlSpec]) -> None:
        super().__init__(timeout=None)
        for index, control in enumerate(controls[: DiscordLimits.MAX_BUTTONS_PER_MESSAGE]):
            self.add_item(
                SoundButton(
                    control.control_id,
                    control.label,
                    row=index // DiscordLimits.MAX_BUTTONS_PER_ROW,
                )
            )
