"""
Lazy, process-wide acquisition of the Telegram client and the knowledge store.
"""
import threading
from typing import Callable, Optional

from fmea_bot.config import Settings
from fmea_bot.constants import STORE_CONNECT_DEADLINE_SECONDS
from fmea_bot.db import KnowledgeStore, connect_store
from fmea_bot.logger import logger
from fmea_bot.models import ResourceHandle
from fmea_bot.telegram_client import TelegramClient
from fmea_bot.utils import describe_store_error, run_with_deadline


class ResourceBroker:
    """
    Builds the channel client and the store handle on first use and caches them.

    acquire() never raises. A resource that could not be built comes back as
    None and is tried again on the next call; only successes are cached.
    Each resource has its own lock so concurrent first calls share a single
    initialization.
    """

    def __init__(
        self,
        settings: Settings,
        channel_factory: Callable[[str], TelegramClient] = TelegramClient,
        store_connector: Callable[[Settings], KnowledgeStore] = connect_store,
        connect_deadline: float = STORE_CONNECT_DEADLINE_SECONDS,
    ):
        self.settings = settings
        self._channel_factory = channel_factory
        self._store_connector = store_connector
        self._connect_deadline = connect_deadline
        self._channel: Optional[TelegramClient] = None
        self._store: Optional[KnowledgeStore] = None
        self._channel_lock = threading.Lock()
        self._store_lock = threading.Lock()

    def acquire(self) -> ResourceHandle:
        return ResourceHandle(channel=self.get_channel(), store=self.get_store())

    def get_channel(self) -> Optional[TelegramClient]:
        if self._channel is not None:
            return self._channel

        with self._channel_lock:
            if self._channel is not None:
                return self._channel

            if not self.settings.bot_token:
                logger.error("BOT_TOKEN is not set (env)")
                return None

            try:
                self._channel = self._channel_factory(self.settings.bot_token)
            except Exception as e:
                logger.exception("Bot init error: %s", e)
                return None

            logger.info("Telegram client initialized")
            return self._channel

    def get_store(self) -> Optional[KnowledgeStore]:
        if self._store is not None:
            return self._store

        with self._store_lock:
            if self._store is not None:
                return self._store

            try:
                self._store = run_with_deadline(
                    self._store_connector,
                    self._connect_deadline,
                    "DB connect timeout",
                    self.settings,
                    on_late=self._close_late_store,
                )
            except Exception as e:
                logger.error("DB connect error: %s", describe_store_error(e))
                return None

            return self._store

    @staticmethod
    def _close_late_store(store: KnowledgeStore) -> None:
        # Connected after the caller gave up; nobody holds a reference to it
        logger.info("Closing store connection that finished after the deadline")
        store.close()

    def close(self) -> None:
        """Release cached resources. Safe to call more than once."""
        with self._channel_lock:
            channel, self._channel = self._channel, None
        with self._store_lock:
            store, self._store = self._store, None

        for name, resource in (("channel", channel), ("store", store)):
            if resource is None:
                continue
            try:
                resource.close()
            except Exception as e:
                logger.warning("Error closing %s: %s", name, e)
