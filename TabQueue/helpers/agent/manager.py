from typing import Optional

from TabQueue import get_logger, Config
from TabQueue.helpers.queue import Item, Queue
from .client import QueueClient, QueueListener
from .page import PageHandle, PlayerHandle
from .playback import PlaybackAdvancer
from .transport import Transport

log = get_logger(__name__)


class PageAgent:
    """
    Everything that runs inside one page: the cached queue, the playback
    advancer and the public operations the presentation layer calls.
    """

    def __init__(
        self,
        transport: Transport,
        page: PageHandle,
        error_delay: float = Config.ERROR_ADVANCE_DELAY,
    ):
        self.page = page
        self.client = QueueClient(transport)
        self.advancer = PlaybackAdvancer(self.client, page, error_delay=error_delay)

    @property
    def queue(self) -> Optional[Queue]:
        return self.client.queue

    async def start(self):
        response = await self.client.connect()
        if not response.get("ok"):
            log.warning("failed to load queue: %s", response.get("error"))

        await self.advancer.start()
        log.info(
            "page agent ready | context=%s | items=%s",
            self.client.context_id,
            len(self.queue) if self.queue is not None else 0,
        )

    async def stop(self):
        await self.advancer.close()
        await self.client.close()
        log.info("page agent stopped | context=%s", self.client.context_id)

    # --------------------------------------------------
    # HOST EVENTS
    # --------------------------------------------------
    def player_attached(self, player: PlayerHandle):
        self.advancer.attach_player(player)

    async def navigated(self, url: str) -> bool:
        return await self.advancer.watcher.notify(url)

    # --------------------------------------------------
    # PRESENTATION API
    # --------------------------------------------------
    def on_change(self, listener: QueueListener):
        return self.client.on_change(listener)

    async def refresh(self) -> dict:
        return await self.client.get_queue()

    async def add_item(self, item: Item, insert_index: Optional[int] = None) -> dict:
        return await self.client.add_item(item, insert_index)

    async def remove_item(self, item_id: str) -> dict:
        return await self.advancer.remove_item(item_id)

    async def reorder(self, from_index: int, to_index: int) -> dict:
        return await self.client.reorder(from_index, to_index)

    async def move_to_end(self, from_index: int) -> Optional[dict]:
        """Drop onto the list background: the item goes last."""
        if self.queue is None or self.queue.is_empty:
            return None

        to_index = len(self.queue) - 1
        if from_index == to_index:
            return None
        return await self.client.reorder(from_index, to_index)

    async def play(self, index: int) -> bool:
        return await self.advancer.play_index(index)

    async def clear(self) -> dict:
        return await self.client.clear_queue()
