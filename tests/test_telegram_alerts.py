"""Tests for Telegram alert delivery."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from validator_watch.alerts.telegram import (
    DRY_RUN_MESSAGE_ID,
    AlertConfig,
    TelegramAlerts,
    format_alert,
)
from validator_watch.config import Config
from validator_watch.models import Account, Alert, NotRewarded, Slashed

ALERT = Alert(Account(123456789, 42), Slashed(42, 1_000_000))


def _alerts(**kwargs) -> TelegramAlerts:
    cfg = AlertConfig(bot_token="TOKEN", min_message_interval=0, **kwargs)
    return TelegramAlerts(cfg)


class TestFormat:
    def test_slashed(self):
        text = format_alert(ALERT)
        assert "Slashed" in text
        assert "Validator 42 was slashed 1000000 nano-mGNO" in text

    def test_not_rewarded(self):
        text = format_alert(Alert(Account(1, 7), NotRewarded(7)))
        assert "Missed rewards" in text
        assert "Validator 7 missed rewards" in text


class TestConfig:
    def test_token_required_unless_dry_run(self):
        with pytest.raises(ValueError):
            TelegramAlerts(AlertConfig(bot_token=None))
        TelegramAlerts(AlertConfig(bot_token=None, dry_run=True))

    def test_from_config_without_token(self):
        cfg = Config(telegram_bot_token=None)
        assert TelegramAlerts.from_config(cfg) is None
        assert TelegramAlerts.from_config(cfg, dry_run=True) is not None

    def test_from_config_uses_configured_token(self):
        alerts = TelegramAlerts.from_config(Config(telegram_bot_token="abc"))
        assert alerts.config.bot_token == "abc"

    def test_from_config_reads_environment_by_default(self, monkeypatch):
        monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "from-env")
        assert TelegramAlerts.from_config().config.bot_token == "from-env"


class TestSend:
    def test_dry_run_does_not_post(self, capsys):
        alerts = TelegramAlerts(AlertConfig(bot_token=None, dry_run=True))
        with patch("validator_watch.alerts.telegram.requests.post") as post:
            assert alerts.send_alert(ALERT) == DRY_RUN_MESSAGE_ID
        post.assert_not_called()
        assert "123456789" in capsys.readouterr().out

    def test_sends_direct_message_to_owner(self):
        response = MagicMock()
        response.json.return_value = {"ok": True, "result": {"message_id": 77}}

        with patch("validator_watch.alerts.telegram.requests.post", return_value=response) as post:
            assert _alerts().send_alert(ALERT) == 77

        url = post.call_args.args[0]
        payload = post.call_args.kwargs["json"]
        assert url == "https://api.telegram.org/botTOKEN/sendMessage"
        assert payload["chat_id"] == 123456789
        assert payload["parse_mode"] == "HTML"
        assert "Validator 42" in payload["text"]

    @pytest.mark.parametrize(
        "error",
        [
            requests.exceptions.Timeout(),
            requests.exceptions.ConnectionError(),
            requests.exceptions.RequestException(),
        ],
    )
    def test_network_errors_return_none(self, error):
        with patch("validator_watch.alerts.telegram.requests.post", side_effect=error):
            assert _alerts().send_alert(ALERT) is None

    def test_http_error_returns_none(self):
        response = MagicMock()
        response.status_code = 403
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(response=response)

        with patch("validator_watch.alerts.telegram.requests.post", return_value=response):
            assert _alerts().send_alert(ALERT) is None

    @pytest.mark.parametrize("body", [[], "ok", {"ok": True, "result": True}, {"ok": False}])
    def test_unexpected_response_returns_none(self, body):
        response = MagicMock()
        response.json.return_value = body

        with patch("validator_watch.alerts.telegram.requests.post", return_value=response):
            assert _alerts().send_alert(ALERT) is None

    def test_long_messages_are_truncated(self):
        alerts = _alerts(max_message_length=50)
        text = alerts._truncate_message("x" * 100)
        assert len(text) <= 50
        assert text.endswith("(truncated)")
