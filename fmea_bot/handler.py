"""
Per-update request handling: broker -> cascade -> dispatch.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from fmea_bot.broker import ResourceBroker
from fmea_bot.cascade import ResolutionCascade
from fmea_bot.config import Settings, load_settings
from fmea_bot.constants import DB_NOT_READY_MESSAGE, DEBUG_ECHO_MESSAGE
from fmea_bot.dispatch import DispatchPipeline
from fmea_bot.logger import logger


@dataclass
class AppContext:
    """Long-lived state shared by every request in the process."""

    settings: Settings
    broker: ResourceBroker
    cascade: ResolutionCascade = field(default_factory=ResolutionCascade)
    pipeline: DispatchPipeline = field(default_factory=DispatchPipeline)

    def close(self) -> None:
        self.broker.close()


def build_context(settings: Optional[Settings] = None) -> AppContext:
    settings = settings or load_settings()
    return AppContext(settings=settings, broker=ResourceBroker(settings))


def extract_query(update: Optional[Dict[str, Any]]) -> Tuple[Optional[Any], str]:
    """
    Pull (chat_id, trimmed text) out of a Telegram update.

    Edited messages are handled like new ones. Anything missing comes back
    as None / "".
    """
    update = update if isinstance(update, dict) else {}
    message = update.get("message") or update.get("edited_message") or {}
    chat = message.get("chat") or {}
    text = message.get("text") or ""
    return chat.get("id"), text.strip() if isinstance(text, str) else ""


def process_update(context: AppContext, update: Optional[Dict[str, Any]]) -> None:
    """
    Answer one inbound update. Never raises.
    """
    try:
        _process_update(context, update)
    except Exception as e:
        logger.exception("Unhandled error while processing update: %s", e)


def _process_update(context: AppContext, update: Optional[Dict[str, Any]]) -> None:
    chat_id, query = extract_query(update)
    if not query:
        return

    resources = context.broker.acquire()
    if not resources.channel_ready:
        logger.error("Bot is not ready (token missing / init error); dropping query from chat_id=%s", chat_id)
        return

    pipeline = context.pipeline
    if context.settings.bot_debug and chat_id is not None:
        pipeline.send(resources.channel, chat_id, DEBUG_ECHO_MESSAGE.format(query=query))
        pipeline.pause()

    if not resources.store_ready:
        logger.warning("Database not ready; notifying chat_id=%s", chat_id)
        pipeline.send(resources.channel, chat_id, DB_NOT_READY_MESSAGE)
        return

    result = context.cascade.resolve(resources.store, query)
    pipeline.deliver(resources.channel, chat_id, result, query)
