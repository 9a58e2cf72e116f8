#!/usr/bin/env python3
"""Entry point: load settings, configure logging, check external tools, run the bot."""

from __future__ import annotations

import json
import logging
import logging.config
import shutil
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

from discord_jukebox.domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from discord_jukebox.config.settings import Settings

_LOGGING_CONFIG_PATH = Path(__file__).resolve().parents[2] / "logging_config.json"
_FALLBACK_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_PACKAGE_LOGGER = "discord_jukebox"

logger = logging.getLogger(__name__)


def _read_logging_config(path: Path) -> dict[str, Any] | None:
    try:
        with open(path) as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError):
        return None


def setup_logging(log_level: str = "INFO", *, debug: bool = False) -> None:
    """Apply ``logging_config.json``, or a plain console format when it is unusable.

    *debug* lowers only this package's loggers to DEBUG so discord.py and the
    HTTP clients keep their configured verbosity.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    config = _read_logging_config(_LOGGING_CONFIG_PATH)
    if config is not None:
        try:
            logging.config.dictConfig(config)
        except ValueError:
            config = None
    if config is None:
        logging.basicConfig(level=level, format=_FALLBACK_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        logger.warning(LogTemplates.LOGGING_CONFIG_FALLBACK, _LOGGING_CONFIG_PATH)

    logging.getLogger().setLevel(level)
    if debug:
        logging.getLogger(_PACKAGE_LOGGER).setLevel(logging.DEBUG)


def check_external_tools(settings: Settings) -> list[str]:
    """Log and return the problems that would make playback or playlists fail."""
    problems: list[str] = []

    if shutil.which("ffmpeg") is None:
        problems.append(LogTemplates.PREFLIGHT_FFMPEG_MISSING)

    executable = settings.audio.ytdlp_command[0]
    if shutil.which(executable) is None and not Path(executable).is_file():
        problems.append(LogTemplates.PREFLIGHT_YTDLP_MISSING % executable)

    cookie_path = settings.audio.cookie_path
    if cookie_path is not None and not cookie_path.is_file():
        problems.append(LogTemplates.PREFLIGHT_COOKIES_MISSING % cookie_path)

    if not settings.catalog.is_configured:
        logger.info(LogTemplates.PREFLIGHT_CATALOG_DISABLED)

    for problem in problems:
        logger.warning(problem)
    return problems


def main() -> int:
    from discord_jukebox.config.settings import get_settings

    settings = get_settings()
    setup_logging(settings.log_level, debug=settings.debug)

    token = settings.discord.token.get_secret_value()
    if not token:
        logger.error(ErrorMessages.DISCORD_TOKEN_REQUIRED)
        return 1

    logger.info(LogTemplates.BOT_STARTING, settings.environment)
    check_external_tools(settings)

    from discord_jukebox.config.container import create_container
    from discord_jukebox.infrastructure.discord.bot import create_bot

    bot = create_bot(create_container(settings), settings)
    try:
        bot.serve(token)
    except KeyboardInterrupt:
        logger.info(LogTemplates.BOT_KEYBOARD_INTERRUPT)
    except Exception as e:
        logger.exception(LogTemplates.BOT_FATAL_ERROR, e)
        return 1

    logger.info(LogTemplates.BOT_STOPPED)
    return 0


def cli() -> None:
    """``discord-jukebox`` console script."""
    sys.exit(main())


if __name__ == "__main__":
    cli()  # pragma: no cover
