import inspect
from typing import Awaitable, Callable, Optional, Protocol, Union

from TabQueue import get_logger
from TabQueue.helpers.ext_utils import get_readable_time
from TabQueue.helpers.queue import Item

log = get_logger(__name__)

# player events the advancer listens to
ENDED = "ended"
ERROR = "error"
STALLED = "stalled"


class PageHandle(Protocol):
    """
    Capabilities of the page hosting the agent.

    Implementations wrap whatever the host offers (a browser page, a
    headless driver, a test double). All DOM heuristics live behind
    ``extract_item_metadata`` and ``has_next_part``.
    """

    @property
    def location(self) -> str:
        ...

    def navigate(self, url: str) -> None:
        ...

    def is_playable_page(self) -> bool:
        ...

    def current_item_id(self) -> Optional[str]:
        ...

    def extract_item_metadata(self) -> dict:
        """
        Partial item for the current page:
        title, author, cover, subResourceId, duration, durationText
        """
        ...

    def has_next_part(self) -> bool:
        """True when the host page will continue with its own next part."""
        ...


class PlayerHandle(Protocol):
    def add_listener(self, event: str, callback: Callable[[], None]) -> None:
        ...

    def remove_listener(self, event: str, callback: Callable[[], None]) -> None:
        ...


def build_item(item_id: str, url: str, metadata: Optional[dict] = None) -> Item:
    """Synthesises an Item from whatever the page could tell us."""
    metadata = metadata or {}

    duration = metadata.get("duration")
    if isinstance(duration, bool) or not isinstance(duration, (int, float)):
        duration = None

    duration_text = metadata.get("durationText")
    if not duration_text and duration:
        duration_text = get_readable_time(duration)

    return Item(
        id=item_id,
        url=url,
        title=(metadata.get("title") or "").strip() or "Untitled",
        cover=metadata.get("cover"),
        author=metadata.get("author"),
        sub_resource_id=metadata.get("subResourceId"),
        duration=duration,
        duration_text=duration_text,
    )


NavigationCallback = Callable[[str], Union[None, Awaitable[None]]]


class NavigationWatcher:
    """
    Funnel for "navigation occurred" signals.

    Hosts usually report the same navigation twice (history push and
    popstate); consecutive notifications for one destination collapse
    into a single callback.
    """

    def __init__(self, callback: NavigationCallback):
        self.callback = callback
        self.last_url: Optional[str] = None

    async def notify(self, url: Optional[str]) -> bool:
        if not url or url == self.last_url:
            log.debug("navigation ignored (duplicate): %s", url)
            return False

        self.last_url = url
        result = self.callback(url)
        if inspect.isawaitable(result):
            await result
        return True

    def reset(self):
        self.last_url = None
