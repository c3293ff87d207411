"""Tests for the dedup + announce pipeline."""

from typing import Dict, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from herald.models.config import PublisherConfig
from herald.models.dedup import DedupRecord
from herald.models.package import NormalizedPackage
from herald.observability.metrics import REGISTRY
from herald.services.feeds.dry_run import DryRunPoster
from herald.services.publisher_service import Publisher, render_message
from herald.utils.exceptions import FeedPostError, FormatError, StoreError


class InMemoryStore:
    """Dict-backed dedup store."""

    def __init__(self):
        self.records: Dict[str, DedupRecord] = {}
        self.find_calls = 0

    async def find_by_key(self, key: str) -> Optional[DedupRecord]:
        self.find_calls += 1
        return self.records.get(key)

    async def insert(self, record: DedupRecord) -> bool:
        if record.key in self.records:
            return False
        self.records[record.key] = record
        return True


def _pkg(name="foo", version="1.0.0", url="http://x.com", description=""):
    return NormalizedPackage(
        name=name, version=version, url=url, description=description
    )


def _announcements(status):
    return (
        REGISTRY.get_sample_value("herald_announcements_total", {"status": status})
        or 0.0
    )


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def poster():
    return DryRunPoster()


@pytest.fixture
def publisher(store, poster):
    return Publisher(PublisherConfig(), store, poster)


class TestCreate:
    """Tests for message rendering."""

    def test_default_template(self, publisher):
        message = publisher.create(_pkg(description="Does foo"))
        assert message == "foo (1.0.0): http://x.com Does foo"

    def test_empty_description_trimmed(self, publisher):
        assert publisher.create(_pkg()) == "foo (1.0.0): http://x.com"

    def test_short_message_unchanged(self, publisher):
        message = publisher.create(_pkg(description="short"))
        assert not message.endswith("...")

    def test_long_message_truncated_with_marker(self, publisher):
        description = "x" * 300
        message = publisher.create(_pkg(description=description))

        assert len(message) == 140
        assert message.endswith("...")
        assert message.startswith("foo (1.0.0): http://x.com xxx")

    def test_custom_truncation_text(self, publisher):
        message = publisher.create(_pkg(description="y" * 300), truncation_text="…")

        assert len(message) == 140
        assert message.endswith("…")

    def test_oversized_marker_never_exceeds_limit(self):
        pkg = _pkg(name="a" * 200)

        message = render_message(PublisherConfig(), pkg, truncation_text="~" * 150)

        assert len(message) <= 140
        assert message == "~" * 140

    def test_marker_as_long_as_limit(self):
        config = PublisherConfig(max_length=20)

        message = render_message(config, _pkg(description="z" * 50), "!" * 20)

        assert message == "!" * 20

    def test_whitespace_at_cut_is_trimmed(self):
        config = PublisherConfig(template="${description}", max_length=20)
        pkg = _pkg(description="a" * 16 + "     " + "b" * 20)

        message = render_message(config, pkg)

        assert message == "a" * 16 + "..."
        assert len(message) <= 20

    def test_custom_template(self):
        config = PublisherConfig(template="New: ${key} <${url}> [${keywords}]")
        pkg = NormalizedPackage(
            name="gulp-a", version="2.0.0", url="http://a.test", keywords=["x", "y"]
        )

        assert render_message(config, pkg) == "New: gulp-a@2.0.0 <http://a.test> [x, y]"

    def test_unknown_placeholder_raises_format_error(self, store, poster):
        config = PublisherConfig(template="${name} ${stars}")
        publisher = Publisher(config, store, poster)

        with pytest.raises(FormatError):
            publisher.create(_pkg())


class TestTweet:
    """Tests for Publisher.tweet."""

    @pytest.mark.asyncio
    async def test_first_publish_posts_and_records(self, publisher, store, poster):
        before = _announcements("posted")

        result = await publisher.tweet(_pkg())

        assert result == "foo (1.0.0): http://x.com"
        assert poster.posted == [result]
        assert "foo@1.0.0" in store.records
        assert store.records["foo@1.0.0"].message == result
        assert publisher.stats.posted == 1
        assert _announcements("posted") == before + 1

    @pytest.mark.asyncio
    async def test_second_publish_is_duplicate(self, publisher, store, poster):
        """Same version twice: one post, one record."""
        first = await publisher.tweet(_pkg())
        second = await publisher.tweet(_pkg())

        assert first
        assert second is False
        assert len(poster.posted) == 1
        assert list(store.records) == ["foo@1.0.0"]
        assert publisher.stats.duplicates == 1
        assert publisher.stats.duplicate_rate == 0.5

    @pytest.mark.asyncio
    async def test_new_version_is_announced(self, publisher, poster):
        await publisher.tweet(_pkg(version="1.0.0"))
        await publisher.tweet(_pkg(version="1.0.1"))

        assert len(poster.posted) == 2

    @pytest.mark.asyncio
    async def test_lookup_failure_rejects_without_posting(self, poster):
        store = MagicMock()
        store.find_by_key = AsyncMock(side_effect=StoreError("down"))
        store.insert = AsyncMock()
        publisher = Publisher(None, store, poster)

        with pytest.raises(StoreError):
            await publisher.tweet(_pkg())

        store.insert.assert_not_called()
        assert poster.posted == []
        assert publisher.stats.errors == 1

    @pytest.mark.asyncio
    async def test_insert_failure_rejects_without_posting(self, poster):
        store = MagicMock()
        store.find_by_key = AsyncMock(return_value=None)
        store.insert = AsyncMock(side_effect=StoreError("read-only"))
        publisher = Publisher(None, store, poster)

        with pytest.raises(StoreError):
            await publisher.tweet(_pkg())

        assert poster.posted == []

    @pytest.mark.asyncio
    async def test_lost_insert_race_is_duplicate(self, poster):
        store = MagicMock()
        store.find_by_key = AsyncMock(return_value=None)
        store.insert = AsyncMock(return_value=False)
        publisher = Publisher(None, store, poster)

        assert await publisher.tweet(_pkg()) is False
        assert poster.posted == []

    @pytest.mark.asyncio
    async def test_format_failure_records_nothing(self, store, poster):
        publisher = Publisher(PublisherConfig(template="${nope}"), store, poster)

        with pytest.raises(FormatError):
            await publisher.tweet(_pkg())

        assert store.records == {}
        assert poster.posted == []

    @pytest.mark.asyncio
    async def test_post_failure_keeps_record_and_returns_message(self, store):
        poster = MagicMock()
        poster.name = "broken"
        poster.post = AsyncMock(side_effect=FeedPostError("rejected", status=400))
        publisher = Publisher(None, store, poster)
        before = _announcements("post_failed")

        result = await publisher.tweet(_pkg())

        assert result == "foo (1.0.0): http://x.com"
        assert "foo@1.0.0" in store.records
        assert publisher.stats.post_failures == 1
        assert _announcements("post_failed") == before + 1

        # Never retried: the version is already recorded
        assert await publisher.tweet(_pkg()) is False
        assert poster.post.await_count == 1

    @pytest.mark.asyncio
    async def test_message_recorded_before_post(self, store):
        seen_at_post = {}

        async def post(message):
            seen_at_post["recorded"] = "foo@1.0.0" in store.records
            return {}

        poster = MagicMock()
        poster.name = "recording"
        poster.post = post
        publisher = Publisher(None, store, poster)

        await publisher.tweet(_pkg())

        assert seen_at_post == {"recorded": True}
