#!/usr/bin/env python3
"""Start the Dwight soundboard: logging, storage checks, container and bot."""

from __future__ import annotations

import json
import logging
import logging.config
import shutil
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from dwight_soundboard.domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from dwight_soundboard.config.settings import Settings
    from dwight_soundboard.infrastructure.discord.bot import SoundboardBot

_LOGGING_CONFIG_PATH = Path(__file__).resolve().parents[2] / "logging_config.json"

logger = logging.getLogger(__name__)


def setup_logging(log_level: str = "INFO", config_path: Path = _LOGGING_CONFIG_PATH) -> None:
    resolved_level = getattr(logging, log_level.upper(), logging.INFO)

    try:
        with open(config_path) as f:
            config = json.load(f)
        logging.config.dictConfig(config)
    except (FileNotFoundError, json.JSONDecodeError, ValueError):
        logging.basicConfig(
            level=resolved_level,
            format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.warning("Could not load %s, falling back to basic config", config_path)

    logging.getLogger().setLevel(resolved_level)


def ffmpeg_available() -> bool:
    """Voice playback shells out to ffmpeg; catalog commands work without it."""
    return shutil.which("ffmpeg") is not None


def log_startup(settings: Settings) -> None:
    logger.info(LogTemplates.BOT_STARTING.format(environment=settings.environment))
    logger.info(
        LogTemplates.BOT_STORAGE,
        Path(settings.audio.sounds_path).resolve(),
        settings.database.url,
    )
    if not ffmpeg_available():
        logger.warning(LogTemplates.BOT_FFMPEG_MISSING)


def run_bot(bot: SoundboardBot, token: str) -> int:
    """Block until the bot stops; returns the process exit code."""
    try:
        logger.info(LogTemplates.BOT_STARTING_RUN)
        bot.run_with_graceful_shutdown(token)
    except KeyboardInterrupt:
        logger.info(LogTemplates.BOT_KEYBOARD_INTERRUPT)
    except Exception as e:
        logger.exception(LogTemplates.BOT_FATAL_ERROR, e)
        return 1
    else:
        logger.info(LogTemplates.BOT_STOPPED)
    return 0


def main() -> int:
    from dwight_soundboard.config.settings import get_settings

    settings = get_settings()
    setup_logging("DEBUG" if settings.debug else settings.log_level)

    token = settings.discord.token.get_secret_value()
    if not token:
        logger.error(ErrorMessages.DISCORD_TOKEN_REQUIRED)
        return 1

    log_startup(settings)

    from dwight_soundboard.config.container import create_container
    from dwight_soundboard.infrastructure.discord.bot import create_bot

    container = create_container(settings)
    return run_bot(create_bot(container, settings), token)


def cli() -> None:
    """Console script entry point (used by pyproject.toml [project.scripts])."""
    sys.exit(main())


if __name__ == "__main__":
    cli()  # pragma: no cover
