from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Group:
    group_id: str
    name: str
