"""
Non-blocking notifications surfaced to the operator (toast messages).
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List

from core.logging import LoggerMixin


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    level: NotificationLevel
    message: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class NotificationCenter(LoggerMixin):
    """Queue of notifications a form view has not shown yet."""

    def __init__(self):
        self._pending: List[Notification] = []

    def push(self, level: NotificationLevel, message: str) -> Notification:
        notification = Notification(level=level, message=message)
        self._pending.append(notification)
        self.logger.info(f"Notify [{level.value}]: {message}")
        return notification

    def success(self, message: str) -> Notification:
        return self.push(NotificationLevel.SUCCESS, message)

    def warning(self, message: str) -> Notification:
        return self.push(NotificationLevel.WARNING, message)

    def error(self, message: str) -> Notification:
        return self.push(NotificationLevel.ERROR, message)

    def peek(self) -> List[Notification]:
        return list(self._pending)

    def drain(self) -> List[Notification]:
        """Hand over and forget everything pushed so far."""
        pending, self._pending = self._pending, []
        return pending
