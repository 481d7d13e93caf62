"""
Minimal Telegram Bot API client over httpx.
"""
from typing import Any, Dict, List, Optional

import httpx

from fmea_bot.constants import TELEGRAM_API_BASE_URL, TELEGRAM_HTTP_TIMEOUT_SECONDS


class TelegramError(Exception):
    """The Bot API rejected a call or could not be reached."""

    def __init__(self, method: str, description: str, status_code: Optional[int] = None):
        super().__init__(f"{method} failed: {description}")
        self.method = method
        self.description = description
        self.status_code = status_code


class TelegramClient:
    def __init__(
        self,
        token: str,
        timeout: float = TELEGRAM_HTTP_TIMEOUT_SECONDS,
        base_url: str = TELEGRAM_API_BASE_URL,
        http_client: Optional[httpx.Client] = None,
    ):
        if not token:
            raise ValueError("Telegram bot token cannot be empty")
        self._http = http_client or httpx.Client(
            base_url=f"{base_url}/bot{token}/",
            timeout=timeout,
        )

    def _call(self, method: str, payload: Dict[str, Any], timeout: Optional[float] = None) -> Any:
        kwargs: Dict[str, Any] = {"json": payload}
        if timeout is not None:
            kwargs["timeout"] = timeout
        try:
            response = self._http.post(method, **kwargs)
        except httpx.HTTPError as e:
            raise TelegramError(method, str(e)) from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code >= 400 or not body.get("ok", False):
            description = body.get("description") or response.text or "no description"
            raise TelegramError(method, description, response.status_code)
        return body.get("result")

    def send_message(self, chat_id: Any, text: str, parse_mode: Optional[str] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"chat_id": chat_id, "text": text}
        if parse_mode:
            payload["parse_mode"] = parse_mode
        return self._call("sendMessage", payload)

    def get_updates(self, offset: Optional[int] = None, timeout: int = 0) -> List[Dict[str, Any]]:
        """Long-poll for new updates. Only used when running without a webhook."""
        payload: Dict[str, Any] = {"timeout": timeout, "allowed_updates": ["message", "edited_message"]}
        if offset is not None:
            payload["offset"] = offset
        # HTTP timeout must outlast the server-side long-poll
        return self._call("getUpdates", payload, timeout=timeout + TELEGRAM_HTTP_TIMEOUT_SECONDS) or []

    def close(self) -> None:
        self._http.close()
