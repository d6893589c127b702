"""
User-facing notices raised while serving a request or driving client state.
Every notice is also logged.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal, Optional

logger = logging.getLogger(__name__)

Level = Literal["info", "success", "error"]

_LOG_LEVELS = {"info": logging.INFO, "success": logging.INFO, "error": logging.WARNING}


@dataclass
class Notification:
    level: Level
    message: str
    description: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class Notifier:
    def __init__(self):
        self._items: list[Notification] = []

    def notify(self, level: Level, message: str, description: Optional[str] = None) -> Notification:
        note = Notification(level=level, message=message, description=description)
        self._items.append(note)
        logger.log(_LOG_LEVELS[level], f"[{level}] {message}" + (f": {description}" if description else ""))
        return note

    def success(self, message: str, description: Optional[str] = None) -> Notification:
        return self.notify("success", message, description)

    def error(self, message: str, description: Optional[str] = None) -> Notification:
        return self.notify("error", message, description)

    @property
    def items(self) -> list[Notification]:
        return list(self._items)

    @property
    def errors(self) -> list[Notification]:
        return [n for n in self._items if n.level == "error"]

    def drain(self) -> list[Notification]:
        items, self._items = self._items, []
        return items
