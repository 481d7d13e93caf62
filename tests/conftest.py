"""Pytest configuration and fixtures."""

import threading

import pytest

from fmea_bot.broker import ResourceBroker
from fmea_bot.config import Settings
from fmea_bot.dispatch import DispatchPipeline
from fmea_bot.handler import AppContext

from tests.fakes import FakeChannel


@pytest.fixture
def settings():
    return Settings(bot_token="123:test-token", database_url="mongodb://localhost:27017")


@pytest.fixture
def channel():
    return FakeChannel()


@pytest.fixture
def release():
    """Event that unblocks hanging fakes once the test is done."""
    event = threading.Event()
    yield event
    event.set()


@pytest.fixture
def make_context(settings, channel):
    """Build an AppContext wired to fakes instead of Telegram and MongoDB."""

    def _make(store=None, store_connector=None, **kwargs):
        if store_connector is None:
            def store_connector(_settings):
                if store is None:
                    raise RuntimeError("no store")
                return store

        broker = ResourceBroker(
            kwargs.pop("settings", settings),
            channel_factory=lambda token: channel,
            store_connector=store_connector,
            connect_deadline=kwargs.pop("connect_deadline", 1.0),
        )
        return AppContext(
            settings=broker.settings,
            broker=broker,
            pipeline=kwargs.pop("pipeline", DispatchPipeline(spacing=0)),
            **kwargs,
        )

    return _make
