from __future__ import annotations

import pytest

from learnhub.models.ids import UserId
from learnhub.services.activity_feed import ActivityFeed

U1 = UserId("u1")
U2 = UserId("u2")


def _fill(feed: ActivityFeed, count: int, user: UserId = U1) -> None:
    for ts in range(count):
        feed.record(user_id=user, type="lesson_completed", timestamp=ts)


def test_feed_drops_oldest_beyond_limit() -> None:
    feed = ActivityFeed(limit=100)
    _fill(feed, 150)

    assert len(feed) == 100
    entries = feed.entries()
    assert entries[0].timestamp == 149
    assert entries[-1].timestamp == 50


def test_recent_filters_by_user_and_limit() -> None:
    feed = ActivityFeed()
    _fill(feed, 3, U1)
    _fill(feed, 2, U2)

    assert len(feed.recent(U1)) == 3
    assert [e.timestamp for e in feed.recent(U2, 1)] == [1]
    assert len(feed.recent()) == 5


def test_replace_keeps_most_recent_entries() -> None:
    source = ActivityFeed(limit=10)
    _fill(source, 10)

    feed = ActivityFeed(limit=4)
    feed.replace(source.entries())

    assert [e.timestamp for e in feed.entries()] == [9, 8, 7, 6]


def test_limit_must_be_positive() -> None:
    with pytest.raises(ValueError):
        ActivityFeed(limit=0)
