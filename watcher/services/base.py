"""Shared plumbing for the long-running services."""
from __future__ import annotations

import logging
from collections.abc import Iterable

from ..interfaces.notifier import Notifier

logger = logging.getLogger(__name__)


class NotifyingService:
    """Fan operator messages out to every notifier without ever raising."""

    def __init__(self, notifiers: Iterable[Notifier] = ()) -> None:
        self._notifiers: list[Notifier] = list(notifiers)

    async def _send_log(self, message: str, silent: bool = True) -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_log(message, silent=silent)
            except Exception as e:
                logger.error("Notifier send_log failed: %s", e)

    async def _send_alert(self, message: str, subject: str = "") -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_alert(message, subject=subject)
            except Exception as e:
                logger.error("Notifier send_alert failed: %s", e)
