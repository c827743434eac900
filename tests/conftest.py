"""
Shared fakes for the page side (page + player handles) and the store.
"""

import pytest

from TabQueue.helpers.coordinator import QueueCoordinator
from TabQueue.helpers.database import MemoryQueueStore
from TabQueue.helpers.ext_utils import PersistenceError, extract_video_id
from TabQueue.helpers.queue import Item

HOME_URL = "https://www.bilibili.com/"


def video_url(item_id: str) -> str:
    return f"https://www.bilibili.com/video/{item_id}"


def make_item(item_id: str, **fields) -> Item:
    return Item(id=item_id, url=video_url(item_id), title=fields.pop("title", item_id), **fields)


class FakePage:
    def __init__(self, url: str = HOME_URL, metadata=None, next_part: bool = False):
        self.url = url
        self.metadata = metadata or {}
        self.next_part = next_part
        self.navigations = []

    @property
    def location(self) -> str:
        return self.url

    def navigate(self, url: str) -> None:
        self.navigations.append(url)
        self.url = url

    def is_playable_page(self) -> bool:
        return extract_video_id(self.url) is not None

    def current_item_id(self):
        return extract_video_id(self.url)

    def extract_item_metadata(self) -> dict:
        return dict(self.metadata)

    def has_next_part(self) -> bool:
        return self.next_part


class FakePlayer:
    def __init__(self):
        self.listeners = {}

    def add_listener(self, event, callback):
        self.listeners.setdefault(event, []).append(callback)

    def remove_listener(self, event, callback):
        callbacks = self.listeners.get(event, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def emit(self, event):
        for callback in list(self.listeners.get(event, [])):
            callback()

    def listener_count(self) -> int:
        return sum(len(callbacks) for callbacks in self.listeners.values())


class FailingStore(MemoryQueueStore):
    """Reads work, writes blow up while ``failing`` is set."""

    def __init__(self, failing: bool = True):
        super().__init__()
        self.failing = failing

    async def save(self, context_id, record):
        if self.failing:
            raise PersistenceError("disk full")
        return await super().save(context_id, record)


@pytest.fixture
def store():
    return MemoryQueueStore()


@pytest.fixture
def coordinator(store):
    return QueueCoordinator(store)
