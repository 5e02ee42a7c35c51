from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from ..core.enums import NoticeLevel


@dataclass(frozen=True)
class Notice:
    """Ephemeral user-facing message; never persisted."""

    message: str
    level: NoticeLevel = NoticeLevel.SUCCESS


NoticeListener = Callable[[Notice], None]


class NoticeBoard:
    def __init__(self):
        self._pending: list[Notice] = []
        self._listeners: list[NoticeListener] = []

    def subscribe(self, listener: NoticeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def success(self, message: str) -> Notice:
        return self.post(Notice(message, NoticeLevel.SUCCESS))

    def error(self, message: str) -> Notice:
        return self.post(Notice(message, NoticeLevel.ERROR))

    def post(self, notice: Notice) -> Notice:
        self._pending.append(notice)
        for listener in list(self._listeners):
            listener(notice)
        return notice

    def drain(self) -> list[Notice]:
        pending, self._pending = self._pending, []
        return pending
