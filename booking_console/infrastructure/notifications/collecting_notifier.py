from __future__ import annotations

import logging
from typing import Any

from booking_console.application.ports.notifier import NotifierPort
from booking_console.domain.entities.notification import Notification

_LEVELS = {
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class CollectingNotifier(NotifierPort):
    """Keeps the toasts of one form until the client picks them up."""

    def __init__(self, limit: int = 20) -> None:
        self._items: list[Notification] = []
        self._limit = limit
        self._logger = logging.getLogger(__name__)

    def notify(self, level: str, message: str, **context: Any) -> None:
        self._items.append(Notification(level=level, message=message, context=dict(context)))
        if len(self._items) > self._limit:
            self._items = self._items[-self._limit :]
        self._logger.log(_LEVELS.get(level, logging.INFO), message, extra={"reason": context.get("error")})

    @property
    def items(self) -> list[Notification]:
        return list(self._items)

    def drain(self) -> list[Notification]:
        items, self._items = self._items, []
        return items
