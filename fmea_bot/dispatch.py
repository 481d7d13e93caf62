"""
Rendering of lookup results and paced delivery to a Telegram chat.
"""
import time
from typing import Any, Callable, List, Optional

from fmea_bot.constants import (
    MESSAGE_SPACING_SECONDS,
    NOT_FOUND_MESSAGE,
    PLACEHOLDER,
    SEND_MESSAGE_DEADLINE_SECONDS,
)
from fmea_bot.logger import logger
from fmea_bot.models import DispatchOutcome, Record, ResolutionResult
from fmea_bot.telegram_client import TelegramClient
from fmea_bot.utils import run_with_deadline

RECORD_TEMPLATE = (
    "📌 *Failure Mode:* {failure_mode}\n"
    "⚙️ *Blok Proses:* {process_block}\n"
    "🔩 *Part Mesin:* {part_name}\n"
    "🛠 *Function:* {function}\n"
    "\n"
    "❗️ *Possible Effect:* {effect}\n"
    "⚡️ *Possible Cause:* {cause}\n"
    "✅ *Recommendation:* {recommendation}"
)


def _show(value: Optional[str]) -> str:
    return PLACEHOLDER if value is None else value


def format_record(record: Record) -> str:
    return RECORD_TEMPLATE.format(
        failure_mode=_show(record.failure_mode),
        process_block=_show(record.process_block),
        part_name=_show(record.part_name),
        function=_show(record.function),
        effect=_show(record.effect),
        cause=_show(record.cause),
        recommendation=_show(record.recommendation),
    )


class DispatchPipeline:
    """
    Sends messages one at a time with a fixed gap between attempts.

    Nothing here raises: a failed send is logged and reported as an
    undelivered outcome, and the remaining messages are still attempted.
    """

    def __init__(
        self,
        spacing: float = MESSAGE_SPACING_SECONDS,
        send_deadline: float = SEND_MESSAGE_DEADLINE_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.spacing = spacing
        self.send_deadline = send_deadline
        self._sleep = sleep

    def pause(self) -> None:
        """Wait out the gap required before the next send to the same chat."""
        self._sleep(self.spacing)

    def send(
        self,
        channel: Optional[TelegramClient],
        destination_id: Any,
        text: str,
        parse_mode: Optional[str] = None,
        index: int = 0,
    ) -> DispatchOutcome:
        if channel is None or destination_id is None or not text:
            return DispatchOutcome(index, False, "nothing to send")
        try:
            run_with_deadline(
                channel.send_message,
                self.send_deadline,
                "sendMessage timeout",
                destination_id,
                text,
                parse_mode=parse_mode,
            )
        except Exception as e:
            logger.error("sendMessage error for chat_id=%s: %s", destination_id, e)
            return DispatchOutcome(index, False, str(e))
        return DispatchOutcome(index, True)

    def deliver(
        self,
        channel: Optional[TelegramClient],
        destination_id: Any,
        result: ResolutionResult,
        query: str,
    ) -> List[DispatchOutcome]:
        """
        Deliver lookup results to a chat.

        An empty result produces a single "not found" message naming the
        query. Otherwise every record is rendered and sent in order.

        Returns:
            One outcome per attempted message; empty if there was no
            channel or destination to send to.
        """
        if channel is None:
            logger.warning("Skipping delivery: Telegram client is not available")
            return []
        if destination_id is None:
            logger.warning("Skipping delivery: no chat id for query %r", query)
            return []

        if not result:
            return [self.send(channel, destination_id, NOT_FOUND_MESSAGE.format(query=query))]

        outcomes = []
        for index, record in enumerate(result.records):
            if index:
                self.pause()
            outcomes.append(
                self.send(channel, destination_id, format_record(record), parse_mode="Markdown", index=index)
            )

        failed = sum(1 for outcome in outcomes if not outcome.delivered)
        if failed:
            logger.warning("Delivered %d/%d records to chat_id=%s", len(outcomes) - failed, len(outcomes), destination_id)
        return outcomes
