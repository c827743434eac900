import asyncio
from contextlib import contextmanager
from enum import Enum
from typing import Optional, Set

from TabQueue import get_logger, Config
from TabQueue.helpers.queue import Queue
from .client import QueueClient
from .page import (
    PageHandle,
    PlayerHandle,
    NavigationWatcher,
    build_item,
    ENDED,
    ERROR,
    STALLED,
)

log = get_logger(__name__)


class PlaybackState(str, Enum):
    IDLE = "idle"
    ATTACHED = "attached"
    ADVANCING = "advancing"


class PlaybackAdvancer:
    """
    Keeps "what is on screen" and "what the queue calls current" aligned.

    States:
        IDLE       no player bound
        ATTACHED   player bound, listening for ended / error / stalled
        ADVANCING  cursor update + navigation in flight (re-entry refused)

    ADVANCING ends when the next page is observed (``on_navigation``),
    a new player attaches, or the advance turns out to be a no-op.
    """

    def __init__(
        self,
        client: QueueClient,
        page: PageHandle,
        error_delay: float = Config.ERROR_ADVANCE_DELAY,
    ):
        self.client = client
        self.page = page
        self.error_delay = error_delay

        self.state = PlaybackState.IDLE
        self.player: Optional[PlayerHandle] = None
        self.last_seen_item_id: Optional[str] = None
        self.pending_removal_id: Optional[str] = None

        self.watcher = NavigationWatcher(self.on_navigation)

        self._rehydrating = False
        self._error_task: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()
        self._unsubscribe = None
        self._advance_seq = 0

    # --------------------------------------------------
    # LIFECYCLE
    # --------------------------------------------------
    async def start(self):
        if self._unsubscribe is None:
            self._unsubscribe = self.client.on_change(self._on_queue_changed)
        await self.watcher.notify(self.page.location)

    async def close(self):
        self.detach_player()

        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

    def _settle(self):
        self.state = PlaybackState.ATTACHED if self.player is not None else PlaybackState.IDLE

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task):
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            log.error("playback handler failed: %s", task.exception())

    # --------------------------------------------------
    # PLAYER BINDING
    # --------------------------------------------------
    def attach_player(self, player: PlayerHandle):
        if player is self.player:
            return

        self._unbind_player()
        self.player = player

        player.add_listener(ENDED, self._handle_ended)
        player.add_listener(ERROR, self._handle_error)
        player.add_listener(STALLED, self._handle_error)

        self.state = PlaybackState.ATTACHED
        log.debug("player attached")

    def detach_player(self):
        self._cancel_error_timer()
        self._unbind_player()
        if self.state is not PlaybackState.ADVANCING:
            self.state = PlaybackState.IDLE

    def _unbind_player(self):
        if self.player is None:
            return

        self.player.remove_listener(ENDED, self._handle_ended)
        self.player.remove_listener(ERROR, self._handle_error)
        self.player.remove_listener(STALLED, self._handle_error)
        self.player = None
        log.debug("player detached")

    def _handle_ended(self):
        self._spawn(self.on_playback_completed())

    def _handle_error(self):
        self.on_playback_error()

    # --------------------------------------------------
    # ADVANCE
    # --------------------------------------------------
    async def on_playback_completed(self) -> bool:
        """Moves the queue to the next item. Returns True when an advance was issued."""
        self._cancel_error_timer()

        if self.state is PlaybackState.ADVANCING:
            log.debug("advance already in flight, ignoring")
            return False

        queue = self.client.queue
        if queue is None or queue.is_empty:
            log.debug("playback ended with an empty queue")
            return False

        index = queue.index_of(self.last_seen_item_id)
        if index == -1:
            index = queue.cursor

        next_index = index + 1

        if next_index >= len(queue.items):
            if self.page.has_next_part():
                log.info("end of queue, host page continues with its next part")
            else:
                log.info("queue exhausted (%s items)", len(queue.items))
            return False

        return await self._advance_to(queue, next_index)

    async def play_index(self, index: int) -> bool:
        """Makes ``index`` current and opens it."""
        if self.state is PlaybackState.ADVANCING:
            return False

        queue = self.client.queue
        if queue is None or not 0 <= index < len(queue.items):
            return False

        return await self._advance_to(queue, index)

    async def _advance_to(self, queue: Queue, index: int) -> bool:
        target = queue.items[index]
        self.state = PlaybackState.ADVANCING
        self._advance_seq += 1
        seq = self._advance_seq
        navigated = False

        try:
            response = await self.client.set_current(index)

            # the user navigated (or another advance began) during the round trip
            if self.state is not PlaybackState.ADVANCING or seq != self._advance_seq:
                log.info("advance to %s superseded, not navigating", target.id)
                return False

            if not response.get("ok"):
                log.warning("advance aborted, cursor update failed")
                return False

            log.info("advancing to %s (%s/%s)", target.id, index + 1, len(queue.items))
            navigated = self._navigate(target.url)
            return True

        finally:
            if not navigated and seq == self._advance_seq:
                self._settle()

    def on_playback_error(self) -> asyncio.Task:
        """
        (Re)starts the error debounce; the advance only happens once the
        player stays quiet for ``error_delay`` seconds.
        """
        self._cancel_error_timer()
        self._error_task = self._spawn(self._advance_after_error())
        log.debug("playback error, advancing in %ss unless cancelled", self.error_delay)
        return self._error_task

    async def _advance_after_error(self):
        await asyncio.sleep(self.error_delay)
        self._error_task = None
        await self.on_playback_completed()

    def _cancel_error_timer(self):
        if self._error_task is not None and not self._error_task.done():
            self._error_task.cancel()
        self._error_task = None

    def _navigate(self, url: Optional[str]) -> bool:
        if not url or url == self.page.location:
            log.debug("navigation skipped, already at %s", url)
            return False

        self.page.navigate(url)
        return True

    # --------------------------------------------------
    # NAVIGATION
    # --------------------------------------------------
    async def on_navigation(self, url: str):
        if self.state is PlaybackState.ADVANCING:
            self._settle()

        if not self.page.is_playable_page():
            return

        item_id = self.page.current_item_id()
        if not item_id or item_id == self.last_seen_item_id:
            return

        self.last_seen_item_id = item_id
        log.debug("now watching %s", item_id)

        queue = self.client.queue
        if queue is None or item_id not in queue:
            try:
                metadata = self.page.extract_item_metadata()
            except Exception as e:
                log.warning("metadata extraction failed: %s", e)
                metadata = {}

            insert_index = None
            if queue is not None and queue.cursor >= 0:
                insert_index = queue.cursor + 1

            response = await self.client.add_item(build_item(item_id, url, metadata), insert_index)
            if not response.get("ok"):
                return

        await self.rehydrate()

    # --------------------------------------------------
    # QUEUE UPDATES
    # --------------------------------------------------
    async def _on_queue_changed(self, queue: Optional[Queue]):
        if self._follow_removal(queue):
            return
        await self.rehydrate(queue)

    @contextmanager
    def _rehydration(self):
        self._rehydrating = True
        try:
            yield
        finally:
            self._rehydrating = False

    @property
    def can_rehydrate(self) -> bool:
        return not self._rehydrating and self.state is not PlaybackState.ADVANCING

    async def rehydrate(self, queue: Optional[Queue] = None) -> bool:
        """Points the queue's cursor at the item actually on screen."""
        if not self.can_rehydrate:
            return False

        queue = queue if queue is not None else self.client.queue
        if queue is None or queue.is_empty or not self.page.is_playable_page():
            return False

        index = queue.index_of(self.page.current_item_id())
        if index == -1 or index == queue.cursor:
            return False

        with self._rehydration():
            response = await self.client.set_current(index)

        return bool(response.get("ok"))

    async def remove_item(self, item_id: str) -> dict:
        """Removes ``item_id``; removing what is on screen follows the queue afterwards."""
        self.pending_removal_id = item_id
        response = await self.client.remove_item(item_id)

        if not response.get("ok"):
            self.pending_removal_id = None
        return response

    def _follow_removal(self, queue: Optional[Queue]) -> bool:
        removed_id = self.pending_removal_id
        if removed_id is None:
            return False

        self.pending_removal_id = None

        if removed_id != self.page.current_item_id():
            return False
        if queue is not None and removed_id in queue:
            return False

        target = queue.current_item if queue is not None else None
        if target is None:
            log.info("removed the playing item, queue is now empty")
            return False

        log.info("removed the playing item, following queue to %s", target.id)
        return self._navigate(target.url)
