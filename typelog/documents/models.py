"""
Document model.

A document is a note together with the two record mappings logged while it
was edited.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class Document:
    """A note and its text/cursor logs."""
    id: str
    title: str = ""
    body: str = ""
    text_records: Dict[Any, Any] = field(default_factory=dict)
    cursor_records: Dict[Any, Any] = field(default_factory=dict)

    @property
    def display_title(self) -> str:
        return (self.title or "").strip() or "Untitled"

    def clear_logs(self):
        self.text_records = {}
        self.cursor_records = {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "body": self.body,
            "logs": {
                "text_records": {str(k): v for k, v in self.text_records.items()},
                "cursor_records": {str(k): v for k, v in self.cursor_records.items()},
            },
        }

    def summary(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.display_title,
            "text_records": len(self.text_records),
            "cursor_records": len(self.cursor_records),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Document":
        """
        Create from dictionary.

        Logs may sit under a "logs" key or at the top level.
        """
        logs: Optional[Dict[str, Any]] = data.get("logs") or {}
        return cls(
            id=str(data["id"]),
            title=data.get("title") or "",
            body=data.get("body") or "",
            text_records=dict(logs.get("text_records") or data.get("text_records") or {}),
            cursor_records=dict(logs.get("cursor_records") or data.get("cursor_records") or {}),
        )
