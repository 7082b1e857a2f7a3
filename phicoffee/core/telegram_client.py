# phicoffee/core/telegram_client.py
"""
Telegram client utilities for the ordering backend.

Responsibilities:
  - Read bot configuration from settings.
  - Provide a single send_message(...) function for services to use.

Typical .env configuration:

    TELEGRAM_BOT_TOKEN=123456:ABC-DEF...
    TELEGRAM_CHAT_ID=-1001234567890
    TELEGRAM_TIMEOUT_SECONDS=10
"""
import requests

from phicoffee.core.config import get_settings

TELEGRAM_API_URL = "https://api.telegram.org/bot{token}/sendMessage"


def send_message(text: str, parse_mode: str = "Markdown") -> None:
    """
    Send a text message to the configured vendor chat.

    Parameters
    ----------
    text:
        Message body, already formatted for `parse_mode`.
    parse_mode:
        Telegram parse mode ("Markdown" by default).

    Raises
    ------
    RuntimeError:
        If TELEGRAM_BOT_TOKEN or TELEGRAM_CHAT_ID is missing, or Telegram
        answers with a non-2xx status.
    requests.RequestException:
        If the HTTP call itself fails (DNS, timeout, connection reset).
    """
    settings = get_settings()
    if not (settings.TELEGRAM_BOT_TOKEN and settings.TELEGRAM_CHAT_ID):
        raise RuntimeError("Telegram configuration missing")

    response = requests.post(
        TELEGRAM_API_URL.format(token=settings.TELEGRAM_BOT_TOKEN),
        json={
            "chat_id": settings.TELEGRAM_CHAT_ID,
            "text": text,
            "parse_mode": parse_mode,
        },
        timeout=settings.TELEGRAM_TIMEOUT_SECONDS,
    )
    if not response.ok:
        raise RuntimeError(f"Telegram API error: {response.status_code} {response.text}")


class TelegramNotifier:
    """Notifier used by OrderService in production."""

    def send(self, text: str) -> None:
        send_message(text)
