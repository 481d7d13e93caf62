"""
Configuration and environment variable validation.
"""
import os
from dataclasses import dataclass
from typing import Optional

from fmea_bot.constants import (
    DEFAULT_COLLECTION_NAME,
    DEFAULT_DB_NAME,
    DEFAULT_SEARCH_INDEX,
)
from fmea_bot.logger import logger


def _get(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


@dataclass(frozen=True)
class Settings:
    bot_token: Optional[str] = None
    database_url: Optional[str] = None
    bot_secret: Optional[str] = None
    bot_debug: bool = False
    db_name: str = DEFAULT_DB_NAME
    collection_name: str = DEFAULT_COLLECTION_NAME
    search_index: str = DEFAULT_SEARCH_INDEX


def load_settings() -> Settings:
    """Read settings from the environment. Missing values stay None."""
    return Settings(
        bot_token=_get("BOT_TOKEN"),
        database_url=_get("DATABASE_URL"),
        bot_secret=_get("BOT_SECRET"),
        bot_debug=(_get("BOT_DEBUG") or "").lower() == "true",
        db_name=_get("DB_NAME") or DEFAULT_DB_NAME,
        collection_name=_get("DB_COLLECTION") or DEFAULT_COLLECTION_NAME,
        search_index=_get("SEARCH_INDEX") or DEFAULT_SEARCH_INDEX,
    )


def validate_environment_variables() -> bool:
    """
    Log the status of every environment variable the bot reads.

    Unlike a classic startup check this never exits: a missing token or
    database URL only disables the matching resource, and the webhook keeps
    answering so Telegram does not pile up retries.

    Returns:
        True if all required variables are set, False otherwise.
    """
    required_vars = {
        "BOT_TOKEN": "Telegram bot token for the Bot API",
        "DATABASE_URL": "MongoDB connection URL",
    }

    optional_vars = {
        "BOT_SECRET": "Webhook secret token (header check disabled if not set)",
        "BOT_DEBUG": "Echo every received query back to the chat when 'true'",
        "DB_NAME": f"Database name (defaults to {DEFAULT_DB_NAME})",
        "DB_COLLECTION": f"Collection name (defaults to {DEFAULT_COLLECTION_NAME})",
        "SEARCH_INDEX": f"Atlas Search index (defaults to {DEFAULT_SEARCH_INDEX})",
        "PORT": "Server port (defaults to 3000 if not set)",
        "ENV": "Environment (prod/dev, defaults to dev if not set)",
    }

    all_set = True
    for var_name, description in required_vars.items():
        if _get(var_name) is None:
            all_set = False
            logger.error(f"Missing required environment variable: {var_name} - {description}")

    for var_name, description in optional_vars.items():
        if _get(var_name) is None:
            logger.info(f"Optional environment variable not set: {var_name} - {description}")
        else:
            logger.debug(f"Environment variable set: {var_name}")

    if all_set:
        logger.info("Environment variable validation completed successfully")
    else:
        logger.warning("Environment variable validation completed with missing variables")
    return all_set
