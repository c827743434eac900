import asyncio
import copy
from typing import Dict, Optional

from TabQueue import get_logger
from .base import queue_key

log = get_logger(__name__)


class MemoryQueueStore:
    """Session-scoped store; lives exactly as long as the process."""

    def __init__(self):
        self._data: Dict[str, dict] = {}
        self._lock = asyncio.Lock()

    async def load(self, context_id: str) -> Optional[dict]:
        key = queue_key(context_id)
        async with self._lock:
            entry = self._data.get(key)
            log.debug("load: context=%s found=%s", context_id, bool(entry))
            return copy.deepcopy(entry) if entry is not None else None

    async def save(self, context_id: str, record: dict) -> dict:
        key = queue_key(context_id)
        async with self._lock:
            self._data[key] = copy.deepcopy(record)

        log.debug(
            "save: context=%s items=%s cursor=%s",
            context_id,
            len(record.get("items", [])),
            record.get("cursor"),
        )
        return record

    async def delete(self, context_id: str):
        key = queue_key(context_id)
        async with self._lock:
            removed = self._data.pop(key, None)

        if removed is not None:
            log.info("delete: context=%s", context_id)
