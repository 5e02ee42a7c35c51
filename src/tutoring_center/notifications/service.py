from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Protocol

from ..students.model import Student

logger = logging.getLogger(__name__)


class NotificationService(Protocol):
    """Fire-and-forget messages to a student's parent."""

    def send_welcome(self, student: Student) -> None:
        raise NotImplementedError

    def send_payment_reminder(self, student: Student, *, amount: float, due_date: date) -> None:
        raise NotImplementedError

    def send_schedule_change(
        self,
        student: Student,
        *,
        title: str,
        new_start: datetime,
        old_start: Optional[datetime] = None,
    ) -> None:
        raise NotImplementedError


class LoggingNotificationService:
    """Renders the messages and writes them to the log instead of a mail server."""

    def _send(self, student: Student, subject: str, body: str) -> None:
        recipient = student.parent_email or "<no email>"
        logger.info(f"[email] to={recipient} subject={subject!r}\n{body}")

    def send_welcome(self, student: Student) -> None:
        self._send(
            student,
            f"Welcome to our classes, {student.name}!",
            f"Dear {student.parent_name or 'parent'},\n\n"
            f"We are glad that {student.name} has joined our classes.",
        )

    def send_payment_reminder(self, student: Student, *, amount: float, due_date: date) -> None:
        self._send(
            student,
            "Upcoming payment reminder",
            f"Dear {student.parent_name or 'parent'},\n\n"
            f"A payment of {amount:.2f} is due by {due_date.strftime('%d.%m.%Y')}.",
        )

    def send_schedule_change(
        self,
        student: Student,
        *,
        title: str,
        new_start: datetime,
        old_start: Optional[datetime] = None,
    ) -> None:
        moved_from = f" from {old_start.strftime('%d.%m.%Y %H:%M')}" if old_start else ""
        self._send(
            student,
            "Schedule change",
            f"Dear {student.parent_name or 'parent'},\n\n"
            f'The lesson "{title}" of {student.name} was moved{moved_from} '
            f"to {new_start.strftime('%d.%m.%Y %H:%M')}.",
        )


def notify_safely(send, *args, **kwargs) -> None:
    """Delivery problems are logged, never raised into the caller's workflow."""
    try:
        send(*args, **kwargs)
    except Exception:
        logger.exception("Notification delivery failed")
