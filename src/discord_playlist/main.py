#!/usr/bin/env python3
"""Entry point: configure logging, wire the container and run the playlist bot."""

from __future__ import annotations

import json
import logging
import logging.config
import os
import sys
from pathlib import Path
from typing import Any

from discord_playlist.domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)

DEFAULT_LOGGING_CONFIG = Path(__file__).resolve().parents[2] / "logging_config.json"
LOGGING_CONFIG_ENV = "LOGGING_CONFIG"
BASIC_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def logging_config_path() -> Path:
    """``$LOGGING_CONFIG`` if set, else the JSON file shipped next to the sources."""
    override = os.environ.get(LOGGING_CONFIG_ENV)
    return Path(override) if override else DEFAULT_LOGGING_CONFIG


def load_logging_config(path: Path) -> dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def setup_logging(log_level: str = "INFO", config_path: Path | None = None) -> None:
    """Apply the dictConfig file, falling back to ``basicConfig`` if it is unusable.

    ``log_level`` always wins over the root level in the file.
    """
    path = config_path or logging_config_path()
    level = getattr(logging, log_level.upper(), logging.INFO)

    try:
        logging.config.dictConfig(load_logging_config(path))
    except (OSError, json.JSONDecodeError, ValueError) as e:
        logging.basicConfig(level=level, format=BASIC_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        logger.warning(LogTemplates.LOGGING_CONFIG_FALLBACK, path, e)

    logging.getLogger().setLevel(level)


def main() -> int:
    from discord_playlist.config.settings import get_settings

    settings = get_settings()
    setup_logging(settings.log_level)

    token = settings.discord.token.get_secret_value()
    if not token:
        logger.error(ErrorMessages.DISCORD_TOKEN_REQUIRED)
        return 1

    logger.info(LogTemplates.APP_STARTING.format(environment=settings.environment))

    from discord_playlist.config.container import create_container
    from discord_playlist.infrastructure.discord.bot import create_bot

    bot = create_bot(create_container(settings), settings)
    try:
        bot.run_with_graceful_shutdown(token)
    except KeyboardInterrupt:
        pass
    except Exception as e:
        logger.exception(LogTemplates.BOT_FATAL_ERROR, e)
        return 1

    logger.info(LogTemplates.BOT_STOPPED)
    return 0


def cli() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
