from dataclasses import dataclass, field
from typing import Optional, Tuple

SCHEMA_VERSION = 1
NO_CURSOR = -1


@dataclass(frozen=True)
class Item:
    """
    A reference to a playable unit.

    Items are compared and deduplicated by ``id`` only.
    """

    id: str
    url: str
    title: str = "Untitled"
    cover: Optional[str] = None
    author: Optional[str] = None
    sub_resource_id: Optional[str] = None
    duration: Optional[float] = None
    duration_text: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "url": self.url,
            "title": self.title,
            "cover": self.cover,
            "author": self.author,
            "subResourceId": self.sub_resource_id,
            "duration": self.duration,
            "durationText": self.duration_text,
        }

    @classmethod
    def from_dict(cls, data) -> Optional["Item"]:
        if isinstance(data, Item):
            return data
        if not isinstance(data, dict):
            return None

        item_id = data.get("id")
        if not item_id:
            return None

        duration = data.get("duration")
        if isinstance(duration, bool) or not isinstance(duration, (int, float)):
            duration = None

        return cls(
            id=str(item_id),
            url=str(data.get("url") or ""),
            title=data.get("title") or "Untitled",
            cover=data.get("cover"),
            author=data.get("author"),
            sub_resource_id=data.get("subResourceId"),
            duration=duration,
            duration_text=data.get("durationText"),
        )


@dataclass(frozen=True)
class Queue:
    """
    The ordered playlist of one browsing context.

    Invariants (held by every store operation + normalize):
        cursor == -1  <=>  items is empty
        0 <= cursor < len(items) otherwise
        item ids are unique
    """

    context_id: str
    items: Tuple[Item, ...] = field(default_factory=tuple)
    cursor: int = NO_CURSOR
    updated_at: int = 0
    schema_version: int = SCHEMA_VERSION

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def current_item(self) -> Optional[Item]:
        if 0 <= self.cursor < len(self.items):
            return self.items[self.cursor]
        return None

    def index_of(self, item_id: Optional[str]) -> int:
        if item_id is None:
            return -1
        for idx, item in enumerate(self.items):
            if item.id == item_id:
                return idx
        return -1

    def __contains__(self, item_id) -> bool:
        return self.index_of(item_id) != -1

    def __len__(self) -> int:
        return len(self.items)

    def to_dict(self) -> dict:
        return {
            "schemaVersion": self.schema_version,
            "contextId": self.context_id,
            "items": [item.to_dict() for item in self.items],
            "cursor": self.cursor,
            "updatedAt": self.updated_at,
        }


__all__ = ("Item", "Queue", "SCHEMA_VERSION", "NO_CURSOR")
