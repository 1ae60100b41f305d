"""
Unit tests for the media grid.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from src.core.dashboard.errors import MediaError
from src.core.dashboard.media import MediaGridBuilder, is_video, newest_first
from src.core.dashboard.models import ObjectDescriptor
from src.infrastructure.storage.client import MockStorageClient, StorageError


NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)
BUCKET = "jestr-meme-uploads"


def _seed(store: MockStorageClient, count: int) -> None:
    for i in range(count):
        store.put_object(
            BUCKET,
            f"Memes/{i:03d}.png",
            size=100,
            last_modified=NOW - timedelta(minutes=count - i),
        )


class TestMediaGridBuilder:
    """Tests for building the grid of recent uploads."""

    def test_keeps_newest_32(self):
        store = MockStorageClient()
        _seed(store, 40)

        items = asyncio.run(MediaGridBuilder(store, BUCKET, "Memes/").build())

        assert len(items) == 32
        assert items[0].key == "Memes/039.png"
        assert items[-1].key == "Memes/008.png"

    def test_newest_first_ordering(self):
        store = MockStorageClient()
        _seed(store, 5)

        items = asyncio.run(MediaGridBuilder(store, BUCKET, "Memes/").build())

        stamps = [item.last_modified for item in items]
        assert stamps == sorted(stamps, reverse=True)

    def test_skips_directory_markers(self):
        store = MockStorageClient()
        store.put_object(BUCKET, "Memes/", last_modified=NOW)
        store.put_object(BUCKET, "Memes/a.png", last_modified=NOW - timedelta(hours=1))

        items = asyncio.run(MediaGridBuilder(store, BUCKET, "Memes/").build())

        assert [item.key for item in items] == ["Memes/a.png"]

    def test_urls_are_signed_with_expiry(self):
        store = MockStorageClient()
        store.put_object(BUCKET, "Memes/a.png", last_modified=NOW)

        items = asyncio.run(
            MediaGridBuilder(store, BUCKET, "Memes/", expiry_seconds=3600).build()
        )

        assert items[0].url == f"mock://{BUCKET}/Memes/a.png?expires=3600"

    def test_flags_mp4_as_video(self):
        store = MockStorageClient()
        store.put_object(BUCKET, "Memes/clip.MP4", last_modified=NOW)
        store.put_object(BUCKET, "Memes/pic.gif", last_modified=NOW - timedelta(minutes=1))

        items = asyncio.run(MediaGridBuilder(store, BUCKET, "Memes/").build())

        assert [(item.key, item.is_video) for item in items] == [
            ("Memes/clip.MP4", True),
            ("Memes/pic.gif", False),
        ]

    def test_signing_failure_fails_grid(self):
        class UnsignableStore(MockStorageClient):
            async def get_presigned_url(self, bucket, key, expiry_seconds=3600):
                raise StorageError("credentials expired")

        store = UnsignableStore()
        store.put_object(BUCKET, "Memes/a.png", last_modified=NOW)

        with pytest.raises(MediaError, match="credentials expired"):
            asyncio.run(MediaGridBuilder(store, BUCKET, "Memes/").build())

    def test_rejects_non_positive_limit(self):
        with pytest.raises(ValueError):
            MediaGridBuilder(MockStorageClient(), BUCKET, "Memes/", limit=0)


class TestHelpers:
    def test_is_video(self):
        assert is_video("Memes/a.mp4")
        assert not is_video("Memes/a.mp4.png")
        assert not is_video("Memes/a.mov")

    def test_newest_first_limits(self):
        objects = [
            ObjectDescriptor(f"k{i}", 1, NOW + timedelta(seconds=i)) for i in range(5)
        ]

        assert [o.key for o in newest_first(objects, 2)] == ["k4", "k3"]
