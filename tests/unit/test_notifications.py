"""Unit tests for notification services."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from watcher.config import TelegramConfig
from watcher.notifications.telegram import TelegramNotifier


def _mock_session(status: int = 200) -> AsyncMock:
    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    mock_session = AsyncMock()
    mock_session.post = MagicMock(return_value=mock_response)
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=None)
    return mock_session


@pytest.fixture()
def telegram_notifier() -> TelegramNotifier:
    return TelegramNotifier(
        TelegramConfig(
            enabled=True,
            alert_bot_token="alert-tok",
            log_bot_token="log-tok",
            chat_id="12345",
        )
    )


@pytest.fixture()
def telegram_notifier_unconfigured() -> TelegramNotifier:
    return TelegramNotifier(
        TelegramConfig(enabled=True, alert_bot_token="", log_bot_token="", chat_id="")
    )


class TestTelegramNotifier:
    @pytest.mark.asyncio
    async def test_send_alert_success(self, telegram_notifier: TelegramNotifier) -> None:
        mock_session = _mock_session(200)

        with patch("watcher.notifications.telegram.aiohttp.ClientSession", return_value=mock_session):
            with patch("watcher.notifications.telegram.aiohttp.TCPConnector"):
                result = await telegram_notifier.send_alert("loan failed", subject="Liquidation failed")

        assert result is True
        url = mock_session.post.call_args[0][0]
        payload = mock_session.post.call_args.kwargs["json"]
        assert "botalert-tok" in url
        assert payload["text"] == "Liquidation failed\n\nloan failed"
        assert payload["disable_notification"] is False

    @pytest.mark.asyncio
    async def test_send_alert_failure(self, telegram_notifier: TelegramNotifier) -> None:
        mock_session = _mock_session(403)

        with patch("watcher.notifications.telegram.aiohttp.ClientSession", return_value=mock_session):
            with patch("watcher.notifications.telegram.aiohttp.TCPConnector"):
                result = await telegram_notifier.send_alert("test alert")

        assert result is False

    @pytest.mark.asyncio
    async def test_send_log_uses_log_bot(self, telegram_notifier: TelegramNotifier) -> None:
        mock_session = _mock_session(200)

        with patch("watcher.notifications.telegram.aiohttp.ClientSession", return_value=mock_session):
            with patch("watcher.notifications.telegram.aiohttp.TCPConnector"):
                result = await telegram_notifier.send_log("test log")

        assert result is True
        assert "botlog-tok" in mock_session.post.call_args[0][0]
        assert mock_session.post.call_args.kwargs["json"]["disable_notification"] is True

    @pytest.mark.asyncio
    async def test_send_log_falls_back_to_alert_bot(self) -> None:
        notifier = TelegramNotifier(
            TelegramConfig(enabled=True, alert_bot_token="alert-tok", chat_id="12345")
        )
        mock_session = _mock_session(200)

        with patch("watcher.notifications.telegram.aiohttp.ClientSession", return_value=mock_session):
            with patch("watcher.notifications.telegram.aiohttp.TCPConnector"):
                result = await notifier.send_log("test log")

        assert result is True
        assert "botalert-tok" in mock_session.post.call_args[0][0]

    @pytest.mark.asyncio
    async def test_client_error_returns_false(self, telegram_notifier: TelegramNotifier) -> None:
        mock_session = _mock_session(200)
        mock_session.post = MagicMock(side_effect=aiohttp.ClientError("boom"))

        with patch("watcher.notifications.telegram.aiohttp.ClientSession", return_value=mock_session):
            with patch("watcher.notifications.telegram.aiohttp.TCPConnector"):
                result = await telegram_notifier.send_alert("test alert")

        assert result is False

    @pytest.mark.asyncio
    async def test_unconfigured_returns_false(
        self, telegram_notifier_unconfigured: TelegramNotifier
    ) -> None:
        result = await telegram_notifier_unconfigured.send_alert("test")
        assert result is False

        result = await telegram_notifier_unconfigured.send_log("test")
        assert result is False
