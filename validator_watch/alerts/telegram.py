"""
Telegram Alerts
===============

Delivers monitor alerts to their owners as Telegram direct messages.

The chat id of a private chat with the bot equals the user id, so the
account owner_id is used as chat_id.

Alert types:
- Not rewarded: validator balance unchanged since the last check
- Slashed: validator balance decreased
"""

import logging
import time
import requests
from dataclasses import dataclass
from typing import Optional

from ..config import Config
from ..models import Alert, Slashed

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"

MIN_MESSAGE_INTERVAL_SECONDS = 1  # Telegram limit: 30/sec overall, 1/sec per chat
DRY_RUN_MESSAGE_ID = 999999


@dataclass
class AlertConfig:
    """Configuration for alert sending."""
    bot_token: Optional[str]
    dry_run: bool = False
    max_message_length: int = 4000
    min_message_interval: float = MIN_MESSAGE_INTERVAL_SECONDS
    timeout: float = 10


def format_alert(alert: Alert) -> str:
    """Format an alert as Telegram HTML."""
    message = alert.message

    if isinstance(message, Slashed):
        header = "🔻 <b>Slashed</b>"
    else:
        header = "⚠️ <b>Missed rewards</b>"

    lines = [
        header,
        f"{message}",
    ]
    return "\n".join(lines)


class TelegramAlerts:
    """
    Telegram alert sender for validator monitoring.

    Sends one direct message per alert. Failures are logged and reported
    as a None message id; the caller decides whether to carry on.
    """

    def __init__(self, config: AlertConfig):
        """
        Initialize Telegram alerts.

        Args:
            config: AlertConfig with bot token and settings
        """
        self.config = config
        self._validate()
        self._last_message_time: float = 0

    @classmethod
    def from_config(cls, cfg: Config = None, dry_run: bool = False) -> Optional["TelegramAlerts"]:
        """
        Create TelegramAlerts from the configured TELEGRAM_BOT_TOKEN.

        Returns:
            TelegramAlerts instance if configured (or dry run), None otherwise
        """
        cfg = cfg or Config.from_env()

        bot_token = cfg.telegram_bot_token
        if not bot_token and not dry_run:
            logger.warning("Telegram not configured (set TELEGRAM_BOT_TOKEN)")
            return None

        return cls(AlertConfig(bot_token=bot_token, dry_run=dry_run))

    def _validate(self):
        """Validate configuration."""
        if not self.config.dry_run and not self.config.bot_token:
            raise ValueError("TELEGRAM_BOT_TOKEN is required (or use --dry-run)")

    def _enforce_message_interval(self):
        """Enforce minimum interval between messages."""
        elapsed = time.time() - self._last_message_time

        if elapsed < self.config.min_message_interval:
            time.sleep(self.config.min_message_interval - elapsed)

    def _truncate_message(self, text: str) -> str:
        """Truncate message to Telegram's character limit."""
        if len(text) > self.config.max_message_length:
            return text[:self.config.max_message_length - 20] + "\n... (truncated)"
        return text

    def _send_message(self, chat_id: int, text: str) -> Optional[int]:
        """
        Send a message via Telegram Bot API.

        Args:
            chat_id: Target chat (user id for direct messages)
            text: Message text (HTML formatted)

        Returns:
            message_id if successful, None otherwise
        """
        text = self._truncate_message(text)

        if self.config.dry_run:
            logger.info(f"[DRY RUN] Would send Telegram message to {chat_id}:\n{text}")
            print(f"\n{'='*60}")
            print(f"[DRY RUN] Telegram Alert -> {chat_id}:")
            print("="*60)
            print(text.replace("<b>", "").replace("</b>", ""))
            print("="*60 + "\n")
            return DRY_RUN_MESSAGE_ID

        self._enforce_message_interval()

        url = f"{TELEGRAM_API_URL}/bot{self.config.bot_token}/sendMessage"
        payload = {
            "chat_id": chat_id,
            "text": text,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }

        try:
            response = requests.post(url, json=payload, timeout=self.config.timeout)
            self._last_message_time = time.time()

            response.raise_for_status()

            result = response.json()
            if not isinstance(result, dict) or not isinstance(result.get("result"), dict):
                logger.error("Telegram returned an unexpected response")
                return None
            message_id = result["result"].get("message_id")

            logger.info(f"Telegram alert sent to {chat_id} (message_id: {message_id})")
            return message_id

        except requests.exceptions.Timeout:
            logger.error("Telegram request timed out")
            return None
        except requests.exceptions.HTTPError as e:
            # Log status code without exposing token in URL
            status_code = e.response.status_code if e.response is not None else "unknown"
            logger.error(f"Telegram HTTP error: {status_code}")
            if status_code == 403:
                logger.warning(f"User {chat_id} has not started a chat with the bot")
            return None
        except requests.exceptions.ConnectionError:
            logger.error("Telegram connection error - network issue")
            return None
        except requests.exceptions.RequestException:
            # Don't log exception details which may contain URL/token
            logger.error("Telegram request failed")
            return None
        except ValueError:
            logger.error("Telegram returned an undecodable response")
            return None

    def send_alert(self, alert: Alert) -> Optional[int]:
        """
        Send one alert to its owner.

        Returns:
            message_id if sent successfully, None otherwise
        """
        return self._send_message(alert.account.owner_id, format_alert(alert))
