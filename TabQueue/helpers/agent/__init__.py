from .client import QueueClient
from .manager import PageAgent
from .page import PageHandle, PlayerHandle, NavigationWatcher, build_item
from .playback import PlaybackAdvancer, PlaybackState
from .transport import Transport, LocalTransport, HttpTransport

__all__ = (
    "QueueClient",
    "PageAgent",
    "PageHandle",
    "PlayerHandle",
    "NavigationWatcher",
    "build_item",
    "PlaybackAdvancer",
    "PlaybackState",
    "Transport",
    "LocalTransport",
    "HttpTransport",
)
