from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import requests
from loguru import logger

from dca_alert_engine.config import AppSettings


class Notifier(Protocol):
    def send(self, text: str) -> bool: ...


@dataclass
class TelegramNotifier:
    bot_token: str
    chat_id: str
    parse_mode: str = "Markdown"
    base_url: str = "https://api.telegram.org"
    timeout: float = 10.0

    def send(self, text: str) -> bool:
        # Fire-and-forget: failures are logged, never retried
        url = f"{self.base_url}/bot{self.bot_token}/sendMessage"
        payload = {"chat_id": self.chat_id, "text": text, "parse_mode": self.parse_mode}
        try:
            r = requests.post(url, json=payload, timeout=self.timeout)
            data = r.json() or {}
        except Exception as e:
            logger.error("Error sending Telegram message: {}", e)
            return False
        if not r.ok or not data.get("ok"):
            logger.error("Error sending Telegram message: {}", data or r.text)
            return False
        return True


class LogNotifier:
    def send(self, text: str) -> bool:
        logger.info("Alert (notifications disabled):\n{}", text)
        return True


def make_notifier(settings: AppSettings) -> Notifier:
    if settings.notifications_enabled():
        return TelegramNotifier(
            bot_token=settings.telegram_bot_token,
            chat_id=settings.telegram_chat_id,
            parse_mode=settings.telegram_parse_mode,
            timeout=settings.http_timeout_sec,
        )
    logger.warning("Telegram disabled - bot token or chat id missing; alerts go to the log")
    return LogNotifier()
