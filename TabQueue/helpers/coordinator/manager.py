import asyncio
import inspect
import itertools
from typing import Awaitable, Callable, Dict, Optional, Tuple, Union

from TabQueue import get_logger
from TabQueue.helpers.database import QueueStore
from TabQueue.helpers.ext_utils import MissingContextId, UnknownRequest
from TabQueue.helpers.queue import Queue, store as qs
from .protocol import (
    MessageType,
    REQUEST_TYPES,
    MUTATING_TYPES,
    resolve_context_id,
    parse_type,
    ok_response,
    error_response,
    sync_message,
    context_add_message,
)

log = get_logger(__name__)

PushCallback = Callable[[dict], Union[None, Awaitable[None]]]


class QueueCoordinator:
    """
    Single authoritative owner of every context's queue.

    Request flow (per context, serialized by a lock):
        load -> normalize -> transform -> normalize -> stamp -> save -> respond

    Successful mutations are pushed to the context's other subscribers
    as a SYNC snapshot.
    """

    def __init__(self, store: QueueStore):
        self.store = store

        self._locks: Dict[str, asyncio.Lock] = {}
        self._subscribers: Dict[str, Dict[str, PushCallback]] = {}
        self._ids = itertools.count(1)

    # --------------------------------------------------
    # SUBSCRIPTIONS
    # --------------------------------------------------
    def subscribe(
        self,
        context_id,
        callback: PushCallback,
        subscriber_id: Optional[str] = None,
    ) -> Callable[[], None]:
        context_id = resolve_context_id(None, context_id)
        if context_id is None:
            raise MissingContextId()

        subscriber_id = subscriber_id or f"sub-{next(self._ids)}"
        self._subscribers.setdefault(context_id, {})[subscriber_id] = callback
        log.debug("subscribe: context=%s subscriber=%s", context_id, subscriber_id)

        def unsubscribe():
            subs = self._subscribers.get(context_id)
            if not subs:
                return
            subs.pop(subscriber_id, None)
            if not subs:
                self._subscribers.pop(context_id, None)
            log.debug("unsubscribe: context=%s subscriber=%s", context_id, subscriber_id)

        return unsubscribe

    def subscriber_count(self, context_id) -> int:
        return len(self._subscribers.get(str(context_id), {}))

    async def push(self, context_id: str, message: dict, exclude: Optional[str] = None) -> int:
        delivered = 0
        for subscriber_id, callback in list(self._subscribers.get(context_id, {}).items()):
            if subscriber_id == exclude:
                continue
            try:
                result = callback(message)
                if inspect.isawaitable(result):
                    await result
                delivered += 1
            except Exception as e:
                log.warning(
                    "push failed: context=%s subscriber=%s type=%s error=%s",
                    context_id,
                    subscriber_id,
                    message.get("type"),
                    e,
                )
        return delivered

    # --------------------------------------------------
    # REQUEST BOUNDARY
    # --------------------------------------------------
    def _lock_for(self, context_id: str) -> asyncio.Lock:
        lock = self._locks.get(context_id)
        if lock is None:
            lock = self._locks[context_id] = asyncio.Lock()
        return lock

    async def handle(
        self,
        message: dict,
        sender_context_id=None,
        origin: Optional[str] = None,
    ) -> dict:
        """
        Apply one protocol request. Never raises; failures come back as
        ``{"ok": False, "error": ...}``.
        """
        context_id = resolve_context_id(message, sender_context_id)
        if context_id is None:
            log.warning("rejected request without context id: %s", _type_of(message))
            return error_response(MissingContextId())

        kind = parse_type(message)
        if kind not in REQUEST_TYPES:
            log.warning("unknown request: context=%s type=%s", context_id, _type_of(message))
            return error_response(UnknownRequest(_type_of(message)))

        try:
            async with self._lock_for(context_id):
                response, snapshot = await self._dispatch(kind, context_id, message)
        except Exception as e:
            log.error("request failed: context=%s type=%s error=%s", context_id, kind.value, e)
            return error_response(e)

        if kind in MUTATING_TYPES:
            await self.push(context_id, sync_message(context_id, snapshot), exclude=origin)

        return response

    async def _dispatch(
        self, kind: MessageType, context_id: str, message: dict
    ) -> Tuple[dict, Optional[Queue]]:
        if kind is MessageType.GET:
            queue = await self._load(context_id)
            return ok_response(queue), queue

        if kind is MessageType.SET:
            previous = await self._load(context_id)
            queue = qs.normalize(message.get("queue"), context_id)
            if queue is None:
                await self.store.delete(context_id)
                log.info("set: context=%s cleared (empty payload)", context_id)
                return ok_response(None), None
            queue = await self._save(context_id, queue, previous)
            return ok_response(queue), queue

        if kind is MessageType.CLEAR:
            await self.store.delete(context_id)
            log.info("clear: context=%s", context_id)
            return ok_response(with_queue=False), None

        if kind is MessageType.ADD_ITEM:
            item = message.get("item")
            insert_index = message.get("insertIndex")
            queue = await self._mutate(
                context_id, lambda q: qs.upsert(q, item, insert_index)
            )
        elif kind is MessageType.REMOVE_ITEM:
            item_id = message.get("itemId")
            queue = await self._mutate(context_id, lambda q: qs.remove(q, item_id))
        elif kind is MessageType.REORDER:
            from_index = message.get("fromIndex")
            to_index = message.get("toIndex")
            queue = await self._mutate(
                context_id, lambda q: qs.move(q, from_index, to_index)
            )
        else:
            cursor = message.get("cursor")
            queue = await self._mutate(context_id, lambda q: qs.set_cursor(q, cursor))

        log.debug(
            "%s: context=%s items=%s cursor=%s",
            kind.value,
            context_id,
            len(queue) if queue is not None else 0,
            queue.cursor if queue is not None else None,
        )
        return ok_response(queue), queue

    # --------------------------------------------------
    # PERSISTENCE HELPERS
    # --------------------------------------------------
    async def _load(self, context_id: str) -> Optional[Queue]:
        return qs.normalize(await self.store.load(context_id), context_id)

    async def _save(self, context_id: str, queue: Queue, previous: Optional[Queue]) -> Queue:
        queue = qs.touch(queue, previous)
        await self.store.save(context_id, queue.to_dict())
        return queue

    async def _mutate(self, context_id: str, transform: Callable[[Queue], Queue]) -> Queue:
        previous = await self._load(context_id)
        current = previous if previous is not None else qs.create(context_id)
        queue = qs.normalize(transform(current), context_id)
        return await self._save(context_id, queue, previous)

    # --------------------------------------------------
    # LIFECYCLE
    # --------------------------------------------------
    async def context_closed(self, context_id) -> dict:
        response = await self.handle({"type": MessageType.CLEAR.value, "contextId": context_id})

        context_id = resolve_context_id(None, context_id)
        if context_id is not None:
            self._subscribers.pop(context_id, None)
            lock = self._locks.get(context_id)
            if lock is not None and not lock.locked():
                self._locks.pop(context_id, None)

        log.info("context closed: %s ok=%s", context_id, response.get("ok"))
        return response

    async def context_add(self, context_id, url: str, title: Optional[str] = None) -> int:
        """Forward an "add to queue" action from another context to its page agents."""
        context_id = resolve_context_id(None, context_id)
        if context_id is None:
            raise MissingContextId()

        delivered = await self.push(context_id, context_add_message(context_id, url, title))
        if not delivered:
            log.warning("context add: no agent listening for context=%s", context_id)
        return delivered


def _type_of(message) -> Optional[str]:
    return message.get("type") if isinstance(message, dict) else None
