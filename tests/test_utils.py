import asyncio

import pytest

from TabQueue.helpers.agent import NavigationWatcher, build_item
from TabQueue.helpers.ext_utils import extract_video_id, get_readable_time
from TabQueue.helpers.queue import Item


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://www.bilibili.com/video/BV1xx411c7mD", "BV1xx411c7mD"),
        ("https://www.bilibili.com/video/BV1xx411c7mD/?p=2&t=30", "BV1xx411c7mD"),
        ("https://www.bilibili.com/video/bv1abc", "bv1abc"),
        ("https://www.bilibili.com/", None),
        ("https://www.bilibili.com/video/av170001", None),
        ("", None),
        (None, None),
    ],
)
def test_extract_video_id(url, expected):
    assert extract_video_id(url) == expected


@pytest.mark.parametrize(
    "seconds, expected",
    [
        (5, "5s"),
        (65, "1m: 5s"),
        (3725, "1h: 2m: 5s"),
        (90000, "1 days, 1h: 0m: 0s"),
        (65.9, "1m: 5s"),
    ],
)
def test_get_readable_time(seconds, expected):
    assert get_readable_time(seconds) == expected


def test_build_item_from_metadata():
    item = build_item(
        "BV1",
        "https://www.bilibili.com/video/BV1",
        {"title": "  Hello  ", "author": "someone", "duration": 65, "subResourceId": "42"},
    )

    assert item == Item(
        id="BV1",
        url="https://www.bilibili.com/video/BV1",
        title="Hello",
        author="someone",
        sub_resource_id="42",
        duration=65,
        duration_text="1m: 5s",
    )


def test_build_item_falls_back_to_untitled():
    item = build_item("BV1", "u", {"title": "   ", "duration": "long"})

    assert item.title == "Untitled"
    assert item.duration is None
    assert item.duration_text is None


def test_build_item_keeps_page_duration_text():
    item = build_item("BV1", "u", {"duration": 65, "durationText": "01:05"})
    assert item.duration_text == "01:05"


def test_navigation_watcher_collapses_repeats():
    seen = []

    async def on_navigation(url):
        seen.append(url)

    async def scenario():
        watcher = NavigationWatcher(on_navigation)
        results = [
            await watcher.notify("a"),
            await watcher.notify("a"),
            await watcher.notify(None),
            await watcher.notify("b"),
            await watcher.notify("a"),
        ]
        watcher.reset()
        results.append(await watcher.notify("a"))
        return results

    results = asyncio.run(scenario())

    assert results == [True, False, False, True, True, True]
    assert seen == ["a", "b", "a", "a"]


def test_navigation_watcher_accepts_plain_callbacks():
    seen = []
    watcher = NavigationWatcher(seen.append)

    asyncio.run(watcher.notify("a"))

    assert seen == ["a"]
