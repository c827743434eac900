"""
Queue store: pure transformations over immutable Queue values.

Nothing here performs I/O. Every function returns a new Queue (or None)
and never mutates its input. Functions receiving ``None`` return ``None``
instead of raising; ``create`` is the only one that insists on a context id.
"""

import math
from dataclasses import replace
from typing import Optional, Sequence, Union

from TabQueue.helpers.ext_utils import MissingContextId, now_ms
from .models import Item, Queue, SCHEMA_VERSION, NO_CURSOR

RawQueue = Union[Queue, dict, None]


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def find_item_index(items: Sequence[Item], item_id: Optional[str]) -> int:
    for idx, item in enumerate(items):
        if item and item.id == item_id:
            return idx
    return -1


def create(context_id) -> Queue:
    if context_id is None or context_id == "":
        raise MissingContextId()

    return Queue(
        context_id=str(context_id),
        items=(),
        cursor=NO_CURSOR,
        updated_at=now_ms(),
        schema_version=SCHEMA_VERSION,
    )


def normalize(raw: RawQueue, context_id) -> Optional[Queue]:
    """
    Sanitises a possibly corrupt stored value.

    - None stays None
    - falsy / id-less entries are dropped, duplicate ids keep the first
    - non-integer cursor -> 0 (or -1 when empty), out of range -> nearest bound
    - a missing or non-finite updatedAt is stamped with now
    """
    if raw is None:
        return None

    if isinstance(raw, Queue):
        raw = raw.to_dict()
    if not isinstance(raw, dict):
        return None

    raw_items = raw.get("items")
    if not isinstance(raw_items, (list, tuple)):
        raw_items = []

    items = []
    seen = set()
    for entry in raw_items:
        if not entry:
            continue
        item = Item.from_dict(entry)
        if item is None or item.id in seen:
            continue
        seen.add(item.id)
        items.append(item)

    cursor = raw.get("cursor")
    if not _is_int(cursor):
        cursor = 0 if items else NO_CURSOR

    if not items:
        cursor = NO_CURSOR
    elif cursor < 0:
        cursor = 0
    elif cursor >= len(items):
        cursor = len(items) - 1

    updated_at = raw.get("updatedAt")
    if (
        isinstance(updated_at, bool)
        or not isinstance(updated_at, (int, float))
        or not math.isfinite(updated_at)
    ):
        updated_at = now_ms()

    return Queue(
        context_id=str(context_id),
        items=tuple(items),
        cursor=cursor,
        updated_at=int(updated_at),
        schema_version=SCHEMA_VERSION,
    )


def touch(queue: Optional[Queue], previous: Optional[Queue] = None) -> Optional[Queue]:
    """Stamps updatedAt so it strictly increases over ``previous``."""
    if queue is None:
        return None

    stamp = now_ms()
    if previous is not None and stamp <= previous.updated_at:
        stamp = previous.updated_at + 1
    return replace(queue, updated_at=stamp)


def upsert(queue: Optional[Queue], item, insert_index: Optional[int] = None) -> Optional[Queue]:
    """
    Inserts ``item`` at ``insert_index`` (clamped, defaults to the end).

    An existing item with the same id is removed first; when it sat before
    the target the target shifts left by one, so upserting an existing id
    behaves like a move to that position.
    """
    if queue is None:
        return None

    item = Item.from_dict(item)
    if item is None:
        return queue

    items = list(queue.items)
    cursor = queue.cursor
    existing = find_item_index(items, item.id)

    if not _is_int(insert_index):
        target = len(items)
    elif insert_index < 0:
        target = 0
    elif insert_index > len(items):
        target = len(items)
    else:
        target = insert_index

    if existing != -1:
        items.pop(existing)
        if existing < target:
            target -= 1

    items.insert(target, item)

    if cursor == NO_CURSOR:
        cursor = 0
    elif existing != -1 and existing == cursor:
        cursor = target
    else:
        # removal shift first, then the insertion shift against the adjusted cursor
        if existing != -1 and existing < cursor:
            cursor -= 1
        if target <= cursor:
            cursor += 1

    return replace(queue, items=tuple(items), cursor=cursor)


def remove(queue: Optional[Queue], item_id: Optional[str]) -> Optional[Queue]:
    if queue is None:
        return None

    index = find_item_index(queue.items, item_id)
    if index == -1:
        return replace(queue)

    items = list(queue.items)
    items.pop(index)
    cursor = queue.cursor

    if not items:
        cursor = NO_CURSOR
    elif index < cursor:
        cursor -= 1
    elif index == cursor:
        # the item sliding into the vacated slot becomes current
        cursor = min(cursor, len(items) - 1)

    return replace(queue, items=tuple(items), cursor=cursor)


def move(queue: Optional[Queue], from_index: int, to_index: int) -> Optional[Queue]:
    if queue is None:
        return None

    size = len(queue.items)
    if (
        not _is_int(from_index)
        or not _is_int(to_index)
        or from_index == to_index
        or not 0 <= from_index < size
        or not 0 <= to_index < size
    ):
        return replace(queue)

    items = list(queue.items)
    items.insert(to_index, items.pop(from_index))
    cursor = queue.cursor

    if from_index == cursor:
        cursor = to_index
    elif from_index < cursor <= to_index:
        cursor -= 1
    elif to_index <= cursor < from_index:
        cursor += 1

    return replace(queue, items=tuple(items), cursor=cursor)


def set_cursor(queue: Optional[Queue], index: int) -> Optional[Queue]:
    """Sets the cursor verbatim; bounds are restored by ``normalize`` before a write."""
    if queue is None:
        return None
    return replace(queue, cursor=index)
