import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    level: str
    text: str


class Notifier:
    """Collects the toasts a board would show"""

    SUCCESS = "success"
    INFO = "info"
    ERROR = "error"

    def __init__(self, sink: Optional[Callable[[Notification], None]] = None):
        self.notifications: List[Notification] = []
        self._sink = sink

    def _emit(self, level: str, text: str) -> Notification:
        notification = Notification(level=level, text=text)
        self.notifications.append(notification)
        if self._sink is not None:
            self._sink(notification)
        return notification

    def success(self, text: str) -> Notification:
        logger.info(text)
        return self._emit(self.SUCCESS, text)

    def info(self, text: str) -> Notification:
        logger.info(text)
        return self._emit(self.INFO, text)

    def error(self, text: str) -> Notification:
        logger.warning(text)
        return self._emit(self.ERROR, text)

    @property
    def last(self) -> Optional[Notification]:
        return self.notifications[-1] if self.notifications else None

    def clear(self) -> None:
        self.notifications.clear()
