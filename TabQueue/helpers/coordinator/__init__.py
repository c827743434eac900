from .manager import QueueCoordinator
from .protocol import MessageType, resolve_context_id

__all__ = (
    "QueueCoordinator",
    "MessageType",
    "resolve_context_id",
)
