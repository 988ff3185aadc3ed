"""Base exception classes for domain-level errors."""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class ValidationError(DomainError):
    """Raised when a catalog mutation is rejected (bad name, duplicate, limit, file)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


class EntityNotFoundError(DomainError):
    """Raised when a requested entity does not exist."""

    def __init__(self, entity_type: str, identifier: str | int, message: str | None = None) -> None:
        msg = message or f"{entity_type} with id '{identifier}' not found"
        super().__init__(msg, code="ENTITY_NOT_FOUND")
        self.entity_type = entity_type
        self.identifier = identifier


class SoundNotFoundError(EntityNotFoundError):
    """Raised when a sound id/name is unknown, deleted, or its audio file is missing."""

    def __init__(self, identifier: str | int, message: str | None = None) -> None:
        super().__init__("Sound", identifier, message)
        self.code = "SOUND_NOT_FOUND"


class ChannelPermissionError(DomainError):
    """Raised when the bot may not delete or recreate the rendering channel."""

    def __init__(self, guild_id: int, channel_id: int | None = None, message: str | None = None) -> None:
        msg = message or f"Missing permission to manage the soundboard channel in guild {guild_id}"
        super().__init__(msg, code="CHANNEL_PERMISSION")
        self.guild_id = guild_id
        self.channel_id = channel_id


class VoiceConnectionError(DomainError):
    """Raised when joining a voice channel or attaching a player fails."""

    def __init__(self, guild_id: int, channel_id: int, reason: str) -> None:
        super().__init__(
            f"Voice connection to channel {channel_id} in guild {guild_id} failed: {reason}",
            code="VOICE_CONNECTION",
        )
        self.guild_id = guild_id
        self.channel_id = channel_id
        self.reason = reason
