"""User-facing notices raised by workflow actions.

Every action outcome the user should see (success, validation problem,
per-file upload failure, backend error) becomes a ``Notice``. The board keeps
a bounded buffer of recent notices for front ends that poll, and forwards
each notice to subscribers as it is posted.
"""

from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


class NoticeLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    """A message for the user about one action."""

    level: NoticeLevel
    message: str
    action: str = ""
    period_id: int | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level.value,
            "message": self.message,
            "action": self.action,
            "period_id": self.period_id,
            "created_at": self.created_at.isoformat(),
        }


NoticeHandler = Callable[[Notice], None]


class NoticeBoard:
    """Collects notices and fans them out to subscribers."""

    def __init__(self, buffer_size: int = 200):
        self._buffer: deque[Notice] = deque(maxlen=buffer_size)
        self._handlers: list[NoticeHandler] = []
        self._logger = logger.bind(component="notice_board")

    def subscribe(self, handler: NoticeHandler) -> None:
        self._handlers.append(handler)

    def unsubscribe(self, handler: NoticeHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def post(
        self,
        level: NoticeLevel,
        message: str,
        action: str = "",
        period_id: int | None = None,
    ) -> Notice:
        notice = Notice(level=level, message=message, action=action, period_id=period_id)
        self._buffer.append(notice)

        log = self._logger.error if level is NoticeLevel.ERROR else self._logger.info
        log("notice", level=level.value, action=action, period_id=period_id, message=message)

        for handler in list(self._handlers):
            try:
                handler(notice)
            except Exception as e:
                self._logger.warning("notice_handler_failed", error=str(e))
        return notice

    def info(self, message: str, action: str = "", period_id: int | None = None) -> Notice:
        return self.post(NoticeLevel.INFO, message, action, period_id)

    def success(self, message: str, action: str = "", period_id: int | None = None) -> Notice:
        return self.post(NoticeLevel.SUCCESS, message, action, period_id)

    def error(self, message: str, action: str = "", period_id: int | None = None) -> Notice:
        return self.post(NoticeLevel.ERROR, message, action, period_id)

    @property
    def recent(self) -> list[Notice]:
        return list(self._buffer)

    def errors(self) -> list[Notice]:
        return [n for n in self._buffer if n.level is NoticeLevel.ERROR]

    def drain(self) -> list[Notice]:
        """Return and forget all buffered notices."""
        notices = list(self._buffer)
        self._buffer.clear()
        return notices
