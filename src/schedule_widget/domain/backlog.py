"""Backlog item: an undated task waiting to be scheduled."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from ..utils.datetime import now_utc, parse_iso_datetime, timestamp_now, to_iso_string


@dataclass
class BacklogItem:
    id: int
    title: str
    description: Optional[str] = None
    completed: bool = False
    created_at: datetime = field(default_factory=timestamp_now)

    def toggle(self) -> bool:
        self.completed = not self.completed
        return self.completed

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "completed": self.completed,
            "createdAt": to_iso_string(self.created_at),
        }
        if self.description:
            data["description"] = self.description
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BacklogItem":
        if "id" not in data:
            raise ValueError("backlog entry has no id")
        title = str(data.get("title") or "").strip()
        if not title:
            raise ValueError(f"backlog item {data['id']} has an empty title")
        return cls(
            id=int(data["id"]),
            title=title,
            description=data.get("description") or None,
            completed=bool(data.get("completed", False)),
            created_at=parse_iso_datetime(data.get("createdAt")) or now_utc(),
        )
