"""
Long-polling runner for local development.

Feeds updates from getUpdates into the same handler the webhook uses, so the
bot can be tried without a public HTTPS endpoint:

    python -m fmea_bot.polling

Telegram refuses getUpdates while a webhook is registered; delete it first.
"""
import time
from typing import Optional

from fmea_bot.config import validate_environment_variables
from fmea_bot.constants import POLLING_ERROR_BACKOFF_SECONDS, TELEGRAM_POLL_TIMEOUT_SECONDS
from fmea_bot.handler import AppContext, build_context, process_update
from fmea_bot.logger import logger


def poll_once(context: AppContext, offset: Optional[int], timeout: int = TELEGRAM_POLL_TIMEOUT_SECONDS) -> Optional[int]:
    """
    Fetch one batch of updates, handle them and return the next offset.

    Raises:
        RuntimeError: If the Telegram client is not available
    """
    channel = context.broker.get_channel()
    if channel is None:
        raise RuntimeError("Telegram client is not available (check BOT_TOKEN)")

    for update in channel.get_updates(offset=offset, timeout=timeout):
        update_id = update.get("update_id")
        if isinstance(update_id, int):
            offset = max(offset or 0, update_id + 1)
        process_update(context, update)
    return offset


def run_polling(context: AppContext, backoff: float = POLLING_ERROR_BACKOFF_SECONDS) -> None:
    offset = None
    logger.info("Polling for updates...")
    try:
        while True:
            try:
                offset = poll_once(context, offset)
            except Exception as e:
                logger.error("Polling error: %s", e)
                time.sleep(backoff)
    except KeyboardInterrupt:
        logger.info("Polling stopped")
    finally:
        context.close()


if __name__ == "__main__":
    validate_environment_variables()
    run_polling(build_context())
