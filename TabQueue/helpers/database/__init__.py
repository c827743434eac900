from .base import QueueStore, queue_key, KEY_PREFIX
from .json_db import JsonQueueStore
from .memory_db import MemoryQueueStore


def get_store(backend: str = "memory", **kwargs) -> QueueStore:
    if backend == "memory":
        return MemoryQueueStore()
    if backend == "json":
        return JsonQueueStore(**kwargs)
    raise ValueError(f"Unknown store backend: {backend}")


__all__ = (
    "QueueStore",
    "queue_key",
    "KEY_PREFIX",
    "JsonQueueStore",
    "MemoryQueueStore",
    "get_store",
)
