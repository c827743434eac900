import os
import json
import asyncio
from typing import Optional

from TabQueue import get_logger
from TabQueue.helpers.ext_utils import PersistenceError
from .base import queue_key

log = get_logger(__name__)


class JsonQueueStore:
    def __init__(self, file_path: str = "queues.json", ephemeral: bool = True):
        self.file_path = file_path
        self._lock = asyncio.Lock()

        if ephemeral or not os.path.exists(self.file_path):
            with open(self.file_path, "w", encoding="utf-8") as f:
                json.dump({}, f)
            log.info("created queue file: %s", self.file_path)

    async def _load_all(self) -> dict:
        try:
            if os.path.getsize(self.file_path) == 0:
                return {}
            with open(self.file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except ValueError as e:
            log.warning("corrupt queue file, starting empty: %s", e)
            return {}
        except OSError as e:
            # unreadable is not empty, a save must not rewrite other contexts
            raise PersistenceError(f"read failed: {e}") from e

        return data if isinstance(data, dict) else {}

    async def _save_all(self, data: dict):
        tmp = self.file_path + ".tmp"

        try:
            with open(tmp, "w", encoding="utf-8") as f:
                f.write("{\n")
                keys = list(data.keys())

                for i, key in enumerate(keys):
                    comma = "," if i < len(keys) - 1 else ""
                    entry = json.dumps(data[key], ensure_ascii=False)
                    f.write(f'  {json.dumps(key)}: {entry}{comma}\n')

                f.write("}")

            os.replace(tmp, self.file_path)
        except OSError as e:
            raise PersistenceError(f"write failed: {e}") from e

        log.debug("saved queue file")

    async def load(self, context_id: str) -> Optional[dict]:
        key = queue_key(context_id)
        async with self._lock:
            data = await self._load_all()
            entry = data.get(key)
            log.debug("load: context=%s found=%s", context_id, bool(entry))
            return entry

    async def save(self, context_id: str, record: dict) -> dict:
        key = queue_key(context_id)
        async with self._lock:
            data = await self._load_all()
            data[key] = record
            await self._save_all(data)

        log.info(
            "save: context=%s items=%s cursor=%s",
            context_id,
            len(record.get("items", [])),
            record.get("cursor"),
        )
        return record

    async def delete(self, context_id: str):
        key = queue_key(context_id)
        async with self._lock:
            data = await self._load_all()
            if key not in data:
                return

            del data[key]
            await self._save_all(data)

        log.info("delete: context=%s", context_id)
