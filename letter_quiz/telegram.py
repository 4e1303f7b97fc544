"""Minimal Telegram Bot API client: long-poll inbound, send replies."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import requests
from pubsub import pub

from .replies import PendingReply

RECEIVE_TOPIC = "letter_quiz.receive"


class TransportError(Exception):
    pass


@dataclass(frozen=True)
class InboundMessage:
    user_id: str
    chat_id: int
    text: Optional[str]
    message_id: Optional[int] = None

    @property
    def is_text(self) -> bool:
        return self.text is not None


def parse_update(update: Dict[str, Any]) -> Optional[InboundMessage]:
    """Extract the message of an update; None for non-message updates."""
    message = update.get("message")
    if not isinstance(message, dict):
        return None
    sender = message.get("from") or {}
    chat = message.get("chat") or {}
    if "id" not in sender or "id" not in chat:
        return None
    text = message.get("text")
    return InboundMessage(
        user_id=str(sender["id"]),
        chat_id=chat["id"],
        text=text if isinstance(text, str) else None,
        message_id=message.get("message_id"),
    )


def reply_markup(keyboard: List[List[str]]) -> Optional[Dict[str, Any]]:
    if not keyboard:
        return None
    return {
        "keyboard": [[{"text": label} for label in row] for row in keyboard],
        "resize_keyboard": True,
    }


class TelegramTransport:
    def __init__(
        self,
        *,
        token: str,
        clean_log: Callable[..., None],
        api_base_url: str = "https://api.telegram.org",
        poll_timeout: int = 30,
        request_timeout: int = 40,
        poll_retry_delay: float = 3.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.clean_log = clean_log
        self.base_url = f"{api_base_url.rstrip('/')}/bot{token}"
        self.poll_timeout = poll_timeout
        self.request_timeout = request_timeout
        self.poll_retry_delay = poll_retry_delay
        self.session = session or requests.Session()
        self.offset: Optional[int] = None
        self._stop_event = threading.Event()

    # Bot API ----------------------------------------------------------
    def _call(self, method: str, payload: Dict[str, Any], timeout: float) -> Any:
        url = f"{self.base_url}/{method}"
        try:
            response = self.session.post(url, json=payload, timeout=timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise TransportError(f"{method} failed: {exc}") from exc
        if not isinstance(data, dict) or not data.get("ok"):
            description = data.get("description") if isinstance(data, dict) else data
            raise TransportError(f"{method} rejected: {description}")
        return data.get("result")

    def get_updates(self) -> List[Dict[str, Any]]:
        payload: Dict[str, Any] = {"timeout": self.poll_timeout, "allowed_updates": ["message"]}
        if self.offset is not None:
            payload["offset"] = self.offset
        result = self._call("getUpdates", payload, timeout=self.poll_timeout + self.request_timeout)
        updates = [u for u in (result or []) if isinstance(u, dict)]
        for update in updates:
            update_id = update.get("update_id")
            if isinstance(update_id, int):
                self.offset = max(self.offset or 0, update_id + 1)
        return updates

    def send_reply(self, message: InboundMessage, reply: PendingReply) -> Any:
        payload: Dict[str, Any] = {"chat_id": message.chat_id, "text": reply.text}
        if message.message_id is not None:
            payload["reply_to_message_id"] = message.message_id
        if reply.parse_mode:
            payload["parse_mode"] = reply.parse_mode
        markup = reply_markup(reply.keyboard)
        if markup:
            payload["reply_markup"] = markup
        return self._call("sendMessage", payload, timeout=self.request_timeout)

    # Polling ----------------------------------------------------------
    def poll_once(self) -> int:
        """Fetch one batch of updates and publish each message. Returns the count."""
        published = 0
        for update in self.get_updates():
            message = parse_update(update)
            if message is None:
                continue
            pub.sendMessage(RECEIVE_TOPIC, message=message)
            published += 1
        return published

    def run_forever(self) -> None:
        self.clean_log("Polling Telegram for updates...", "🟢", show_always=True)
        while not self._stop_event.is_set():
            try:
                self.poll_once()
            except TransportError as exc:
                self.clean_log(f"Polling failed, retrying in {self.poll_retry_delay}s: {exc}", "⚠️")
                self._stop_event.wait(self.poll_retry_delay)

    def stop(self) -> None:
        self._stop_event.set()


__all__ = [
    "TelegramTransport",
    "TransportError",
    "InboundMessage",
    "parse_update",
    "reply_markup",
    "RECEIVE_TOPIC",
]
