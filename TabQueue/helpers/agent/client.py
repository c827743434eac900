import inspect
from typing import Awaitable, Callable, List, Optional, Union

from TabQueue import get_logger
from TabQueue.helpers.coordinator import MessageType
from TabQueue.helpers.ext_utils import extract_video_id
from TabQueue.helpers.queue import Item, Queue, store as qs
from .page import build_item
from .transport import Transport

log = get_logger(__name__)

QueueListener = Callable[[Optional[Queue]], Union[None, Awaitable[None]]]


class QueueClient:
    """
    Page-side mirror of the coordinator's queue.

    The cache is only replaced by a successful response or a SYNC push;
    failed requests leave it untouched. The last response to arrive wins.
    """

    def __init__(self, transport: Transport):
        self.transport = transport
        self.queue: Optional[Queue] = None
        self._listeners: List[QueueListener] = []

    @property
    def context_id(self) -> str:
        return self.transport.context_id

    # --------------------------------------------------
    # LISTENERS
    # --------------------------------------------------
    def on_change(self, listener: QueueListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _set_state(self, queue: Optional[Queue]):
        self.queue = queue
        for listener in list(self._listeners):
            try:
                result = listener(queue)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                # a broken listener must not break the queue flow
                log.exception("queue listener error")

    # --------------------------------------------------
    # REQUESTS
    # --------------------------------------------------
    async def _send(self, kind: MessageType, **fields) -> dict:
        message = {"type": kind.value, "contextId": self.context_id, **fields}
        response = await self.transport.request(message)

        if not isinstance(response, dict):
            response = {"ok": False, "error": "Invalid response"}

        if not response.get("ok"):
            log.warning("%s failed: %s", kind.value, response.get("error"))
            return response

        if "queue" in response:
            await self._set_state(qs.normalize(response["queue"], self.context_id))
        return response

    async def get_queue(self) -> dict:
        return await self._send(MessageType.GET)

    async def set_queue(self, queue: Union[Queue, dict, None]) -> dict:
        if isinstance(queue, Queue):
            queue = queue.to_dict()
        return await self._send(MessageType.SET, queue=queue)

    async def clear_queue(self) -> dict:
        response = await self._send(MessageType.CLEAR)
        if response.get("ok"):
            await self._set_state(None)
        return response

    async def add_item(self, item: Union[Item, dict], insert_index: Optional[int] = None) -> dict:
        if isinstance(item, Item):
            item = item.to_dict()
        return await self._send(MessageType.ADD_ITEM, item=item, insertIndex=insert_index)

    async def remove_item(self, item_id: str) -> dict:
        return await self._send(MessageType.REMOVE_ITEM, itemId=item_id)

    async def reorder(self, from_index: int, to_index: int) -> dict:
        return await self._send(MessageType.REORDER, fromIndex=from_index, toIndex=to_index)

    async def set_current(self, index: int) -> dict:
        return await self._send(MessageType.SET_CURRENT, cursor=index)

    # --------------------------------------------------
    # PUSH
    # --------------------------------------------------
    async def handle_push(self, message: dict):
        kind = message.get("type") if isinstance(message, dict) else None
        context_id = message.get("contextId") if kind else None

        if context_id is not None and str(context_id) != self.context_id:
            log.debug("push for another context ignored: %s", context_id)
            return

        if kind == MessageType.SYNC.value:
            await self._set_state(qs.normalize(message.get("queue"), self.context_id))
        elif kind == MessageType.CONTEXT_ADD.value:
            payload = message.get("payload") or {}
            await self.context_add(payload.get("url"), payload.get("title"))
        else:
            log.debug("unhandled push: %s", kind)

    async def context_add(self, url: Optional[str], title: Optional[str] = None) -> Optional[dict]:
        """Queues the video behind ``url`` at the end."""
        item_id = extract_video_id(url)
        if not item_id:
            log.info("context add ignored, no video id in %s", url)
            return None

        return await self.add_item(build_item(item_id, url, {"title": title}))

    # --------------------------------------------------
    # LIFECYCLE
    # --------------------------------------------------
    async def connect(self) -> dict:
        await self.transport.listen(self.handle_push)
        return await self.get_queue()

    async def close(self):
        await self.transport.close()
