"""Shared validators for catalog input and Discord identifiers."""

from pathlib import PurePath

from dwight_soundboard.domain.shared.messages import ErrorMessages
from dwight_soundboard.domain.shared.types import MAX_SOUND_NAME_LENGTH


def validate_discord_snowflake(value: int) -> int:
    """Validate a Discord snowflake ID.

    Discord snowflake IDs are 64-bit unsigned integers representing unique
    identifiers for users, guilds, channels, messages, etc.

    Args:
        value: The snowflake ID to validate.

    Returns:
        The validated snowflake ID.

    Raises:
        ValueError: If the snowflake ID is invalid.
    """
    if value <= 0:
        raise ValueError(ErrorMessages.INVALID_SNOWFLAKE)
    if value >= 2**64:
        raise ValueError(ErrorMessages.SNOWFLAKE_TOO_LARGE)
    return value


def validate_sound_name(value: str, max_length: int = MAX_SOUND_NAME_LENGTH) -> str:
    """Normalise and validate a sound name.

    Surrounding whitespace is stripped and inner runs of whitespace collapse to a
    single space, so ``"  air   horn "`` is stored as ``"air horn"``.

    Raises:
        ValueError: If the name is empty or longer than *max_length*.
    """
    normalised = " ".join(value.split())
    if not normalised:
        raise ValueError(ErrorMessages.EMPTY_SOUND_NAME)
    if len(normalised) > max_length:
        raise ValueError(ErrorMessages.SOUND_NAME_TOO_LONG.format(max_length=max_length))
    return normalised


def file_extension(filename: str) -> str:
    """Lower-case extension of *filename* without the dot (``""`` if there is none)."""
    return PurePath(filename).suffix.lower().lstrip(".")


def sound_name_key(name: str) -> str:
    """Comparison key for sound names; two live sounds of a guild may not share one.

    Full Unicode case folding, so ``"Äpfel"`` and ``"äpfel"`` collide just like
    ``"Bears"`` and ``"bears"``.
    """
    return name.casefold()
