"""Semantic notification events emitted by the core for a presentation layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
import logging

from PySide6.QtCore import QObject, Signal

logger = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


_LOG_LEVELS = {
    NotificationKind.INFO: logging.INFO,
    NotificationKind.SUCCESS: logging.INFO,
    NotificationKind.WARNING: logging.WARNING,
    NotificationKind.ERROR: logging.ERROR,
}


@dataclass(slots=True)
class Notification:
    kind: NotificationKind
    message: str
    emitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class Notifier(QObject):
    """Publishes notifications; subscribers connect to ``notified(kind, message)``."""

    notified = Signal(str, str)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._history: list[Notification] = []

    def notify(self, kind: NotificationKind, message: str) -> Notification:
        notification = Notification(kind=kind, message=message)
        self._history.append(notification)
        logger.log(_LOG_LEVELS[kind], "[%s] %s", kind.value, message)
        self.notified.emit(kind.value, message)
        return notification

    def info(self, message: str) -> Notification:
        return self.notify(NotificationKind.INFO, message)

    def success(self, message: str) -> Notification:
        return self.notify(NotificationKind.SUCCESS, message)

    def warning(self, message: str) -> Notification:
        return self.notify(NotificationKind.WARNING, message)

    def error(self, message: str) -> Notification:
        return self.notify(NotificationKind.ERROR, message)

    @property
    def history(self) -> list[Notification]:
        return list(self._history)

    def messages(self, kind: NotificationKind | None = None) -> list[str]:
        return [n.message for n in self._history if kind is None or n.kind is kind]

    def clear(self) -> None:
        self._history.clear()
