from .exception import QueueError, MissingContextId, UnknownRequest, PersistenceError
from .utils import extract_video_id, get_readable_time, now_ms

__all__ = [
    "QueueError",
    "MissingContextId",
    "UnknownRequest",
    "PersistenceError",
    "extract_video_id",
    "get_readable_time",
    "now_ms",
]
