"""Tests for the FastAPI webhook."""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from app import create_app
from fmea_bot.config import Settings
from fmea_bot.handler import AppContext


@pytest.fixture
def context():
    context = MagicMock(spec=AppContext)
    context.settings = Settings(bot_token="t", database_url="mongodb://x", bot_secret="s3cret")
    return context


@pytest.fixture
def processed(monkeypatch):
    calls = []
    monkeypatch.setattr("app.process_update", lambda context, update: calls.append(update))
    return calls


@pytest.fixture
def client(context):
    with TestClient(create_app(context=context)) as client:
        yield client


class TestHealth:
    def test_root(self, client):
        assert client.get("/").json() == {"status": "ok"}

    def test_webhook_get(self, client):
        assert client.get("/api/telegram").status_code == 200


class TestWebhook:
    def test_secret_mismatch_rejected(self, client, processed):
        response = client.post(
            "/api/telegram",
            json={"message": {"text": "x"}},
            headers={"X-Telegram-Bot-Api-Secret-Token": "wrong"},
        )

        assert response.status_code == 401
        assert processed == []

    def test_missing_secret_rejected(self, client, processed):
        assert client.post("/api/telegram", json={}).status_code == 401

    def test_valid_update_processed(self, client, processed):
        body = {"update_id": 7, "message": {"chat": {"id": 1}, "text": "pompa"}}

        response = client.post(
            "/api/telegram",
            json=body,
            headers={"X-Telegram-Bot-Api-Secret-Token": "s3cret"},
        )

        assert response.status_code == 200
        assert response.text == "OK"
        assert processed == [body]

    def test_invalid_json_still_acknowledged(self, client, processed):
        response = client.post(
            "/api/telegram",
            content=b"not json",
            headers={"X-Telegram-Bot-Api-Secret-Token": "s3cret", "Content-Type": "application/json"},
        )

        assert response.status_code == 200
        assert processed == [{}]

    def test_no_secret_configured_accepts_all(self, processed):
        context = MagicMock(spec=AppContext)
        context.settings = Settings(bot_token="t")
        with TestClient(create_app(context=context)) as client:
            response = client.post("/api/telegram", json={"update_id": 1})

        assert response.status_code == 200
        assert processed == [{"update_id": 1}]


def test_shutdown_closes_context(context):
    with TestClient(create_app(context=context)):
        pass

    context.close.assert_called_once()
