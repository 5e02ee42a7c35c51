from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from ..core.enums import StudentStatus


@dataclass(frozen=True)
class Student:
    """Domain entity: a student and the cached credit balance of their ledger.

    ``balance`` is negative when the student owes money. It is only ever changed by
    the ledger, never by profile edits.
    """

    student_id: str
    name: str
    balance: float = 0.0
    status: StudentStatus = StudentStatus.ACTIVE
    group_ids: tuple[str, ...] = field(default_factory=tuple)
    birth_date: Optional[date] = None
    parent_name: str = ""
    parent_phone1: str = ""
    parent_phone2: str = ""
    parent_email: str = ""
    archived_date: Optional[date] = None

    @property
    def is_active(self) -> bool:
        return self.status == StudentStatus.ACTIVE


@dataclass(frozen=True)
class NewStudent:
    """Input for creating a student (identity and balance are assigned by the system)."""

    name: str
    group_ids: tuple[str, ...] = ()
    birth_date: Optional[date] = None
    parent_name: str = ""
    parent_phone1: str = ""
    parent_phone2: str = ""
    parent_email: str = ""
