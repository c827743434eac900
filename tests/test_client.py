import asyncio

from TabQueue.helpers.agent import LocalTransport, QueueClient
from TabQueue.helpers.coordinator import QueueCoordinator
from TabQueue.helpers.queue import Queue
from tests.conftest import FailingStore, make_item, video_url


def ids(queue):
    return [item.id for item in queue.items] if queue else None


def test_connect_loads_and_notifies(coordinator):
    seen = []

    async def scenario():
        await coordinator.handle({"type": "ADD_ITEM", "contextId": 1, "item": make_item("BV1").to_dict()})
        client = QueueClient(LocalTransport(coordinator, 1))
        client.on_change(seen.append)
        response = await client.connect()
        await client.close()
        return client, response

    client, response = asyncio.run(scenario())

    assert response["ok"] is True
    assert ids(client.queue) == ["BV1"]
    assert ids(seen[-1]) == ["BV1"]


def test_mutations_replace_cache(coordinator):
    async def scenario():
        client = QueueClient(LocalTransport(coordinator, 1))
        await client.add_item(make_item("BV1"))
        await client.add_item(make_item("BV2"), 0)
        await client.reorder(0, 1)
        await client.set_current(0)
        await client.remove_item("BV2")
        return client.queue

    queue = asyncio.run(scenario())

    assert ids(queue) == ["BV1"]
    assert queue.cursor == 0


def test_failed_request_keeps_cache():
    coordinator = QueueCoordinator(FailingStore())
    seen = []

    async def scenario():
        client = QueueClient(LocalTransport(coordinator, 1))
        client.on_change(seen.append)
        return client, await client.add_item(make_item("BV1"))

    client, response = asyncio.run(scenario())

    assert response["ok"] is False
    assert client.queue is None
    assert seen == []


def test_transport_exception_becomes_negative_ack():
    class BrokenCoordinator:
        async def handle(self, message, sender_context_id=None, origin=None):
            raise ConnectionError("port closed")

    async def scenario():
        client = QueueClient(LocalTransport(BrokenCoordinator(), 1))
        return await client.get_queue()

    assert asyncio.run(scenario()) == {"ok": False, "error": "port closed"}


def test_sync_from_other_agent(coordinator):
    async def scenario():
        watcher = QueueClient(LocalTransport(coordinator, 1))
        editor = QueueClient(LocalTransport(coordinator, 1))
        other_context = QueueClient(LocalTransport(coordinator, 2))
        for client in (watcher, editor, other_context):
            await client.connect()

        await editor.add_item(make_item("BV1"))
        return watcher.queue, other_context.queue

    watcher_queue, other_queue = asyncio.run(scenario())

    assert ids(watcher_queue) == ["BV1"]
    assert other_queue is None


def test_sync_for_other_context_is_ignored(coordinator):
    async def scenario():
        client = QueueClient(LocalTransport(coordinator, 1))
        await client.handle_push(
            {"type": "SYNC", "contextId": "2", "queue": {"items": [make_item("BV1").to_dict()]}}
        )
        return client.queue

    assert asyncio.run(scenario()) is None


def test_context_add_appends_item(coordinator):
    async def scenario():
        client = QueueClient(LocalTransport(coordinator, 1))
        await client.connect()
        await client.add_item(make_item("BV1"))

        await coordinator.context_add(1, video_url("BV2") + "?p=1", "Second")
        await coordinator.context_add(1, "https://www.bilibili.com/bangumi/play/ss1")
        return client.queue

    queue = asyncio.run(scenario())

    assert ids(queue) == ["BV1", "BV2"]
    assert queue.items[1].title == "Second"
    assert queue.items[1].url.endswith("?p=1")


def test_listener_errors_are_swallowed(coordinator):
    seen = []

    def broken(queue):
        raise RuntimeError("render failed")

    async def scenario():
        client = QueueClient(LocalTransport(coordinator, 1))
        client.on_change(broken)
        unsubscribe = client.on_change(seen.append)
        await client.add_item(make_item("BV1"))
        unsubscribe()
        await client.add_item(make_item("BV2"))
        return client.queue

    queue = asyncio.run(scenario())

    assert ids(queue) == ["BV1", "BV2"]
    assert len(seen) == 1


def test_clear_resets_cache(coordinator):
    async def scenario():
        client = QueueClient(LocalTransport(coordinator, 1))
        await client.add_item(make_item("BV1"))
        response = await client.clear_queue()
        return client.queue, response

    queue, response = asyncio.run(scenario())

    assert response == {"ok": True}
    assert queue is None


def test_set_queue_accepts_queue_value(coordinator):
    async def scenario():
        client = QueueClient(LocalTransport(coordinator, 1))
        await client.add_item(make_item("BV1"))
        await client.add_item(make_item("BV2"))
        reordered = Queue(
            context_id="1",
            items=tuple(reversed(client.queue.items)),
            cursor=1,
        )
        await client.set_queue(reordered)
        return client.queue

    queue = asyncio.run(scenario())

    assert ids(queue) == ["BV2", "BV1"]
    assert queue.cursor == 1
