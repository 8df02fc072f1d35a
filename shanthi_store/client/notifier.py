import time
from dataclasses import dataclass
from typing import Callable, List, Optional

import structlog

logger = structlog.get_logger()


@dataclass(frozen=True)
class Notification:
    message: str
    level: str
    at: float


class Notifier:
    """User-visible toasts with a debounce window.

    A notification arriving within `debounce_ms` of the last one that was
    shown is dropped, so concurrent store calls produce a single toast.
    """

    def __init__(
        self,
        debounce_ms: int = 500,
        sink: Optional[Callable[[Notification], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.debounce_seconds = debounce_ms / 1000
        self._sink = sink
        self._clock = clock
        self._last_shown_at: Optional[float] = None
        self.shown: List[Notification] = []

    def notify(self, message: str, level: str = "info") -> bool:
        now = self._clock()
        if self._last_shown_at is not None and now - self._last_shown_at < self.debounce_seconds:
            logger.debug("toast_suppressed", message=message, level=level)
            return False

        notification = Notification(message=message, level=level, at=now)
        self._last_shown_at = now
        self.shown.append(notification)
        if self._sink is not None:
            self._sink(notification)
        return True

    def success(self, message: str) -> bool:
        return self.notify(message, "success")

    def error(self, message: str) -> bool:
        return self.notify(message, "error")

    def info(self, message: str) -> bool:
        return self.notify(message, "info")

    @property
    def last(self) -> Optional[Notification]:
        return self.shown[-1] if self.shown else None
