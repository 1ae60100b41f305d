"""
Unit tests for the metric snapshot and the metric cards.

Both DynamoDB and S3 are replaced by the in-memory mock clients.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from src.core.dashboard.cards import CARD_COLORS, build_cards, card_color
from src.core.dashboard.errors import MetricsError
from src.core.dashboard.metrics import (
    DashboardTables,
    MetricSnapshotBuilder,
    default_count_queries,
    iso_timestamp,
    summarize_objects,
)
from src.core.dashboard.models import CountFilter, MetricSnapshot, ObjectDescriptor
from src.infrastructure.dynamo.client import CountQueryError, MockCountClient
from src.infrastructure.storage.client import MockStorageClient


NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
BUCKET = "jestr-meme-uploads"
PREFIX = "Memes/"


@pytest.fixture
def counts() -> MockCountClient:
    """Platform tables with a few rows each."""
    return MockCountClient({
        "Profiles": [
            {"id": "u1", "created_at": iso_timestamp(NOW - timedelta(days=3))},
            {"id": "u2", "created_at": iso_timestamp(NOW - timedelta(hours=2))},
            {"id": "u3", "created_at": iso_timestamp(NOW - timedelta(hours=5))},
        ],
        "Memes": [{"id": i} for i in range(7)],
        "UserFeedback": [
            {"status": "open"},
            {"status": "closed"},
            {"status": "in_progress"},
            {"note": "no status yet"},
        ],
        "UserInteractions": [{}] * 11,
        "UserNotifications": [{}] * 4,
        "UserLikes": [{}] * 9,
        "Comments": [{}] * 2,
        "UserConversations_v2": [{}] * 5,
    })


@pytest.fixture
def storage() -> MockStorageClient:
    store = MockStorageClient()
    store.put_object(BUCKET, "Memes/", size=0, last_modified=NOW - timedelta(days=10))
    store.put_object(BUCKET, "Memes/old.png", size=3 * 1024 * 1024, last_modified=NOW - timedelta(days=2))
    store.put_object(BUCKET, "Memes/new.png", size=1024 * 1024, last_modified=NOW - timedelta(hours=1))
    store.put_object(BUCKET, "Memes/clip.mp4", size=2 * 1024 * 1024, last_modified=NOW - timedelta(hours=23))
    store.put_object(BUCKET, "Avatars/me.png", size=50 * 1024 * 1024, last_modified=NOW)
    return store


def _builder(counts, storage, **kwargs) -> MetricSnapshotBuilder:
    return MetricSnapshotBuilder(
        counts,
        storage,
        bucket=BUCKET,
        prefix=PREFIX,
        clock=lambda: NOW,
        **kwargs,
    )


class FailingCounts:
    async def count(self, table, count_filter=None):
        raise CountQueryError(f"Count on {table} failed: throttled")


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------

class TestMetricSnapshotBuilder:
    """Tests for assembling the snapshot."""

    def test_counts_pass_through(self, counts, storage):
        snapshot = asyncio.run(_builder(counts, storage).build())

        assert snapshot.user_count == 3
        assert snapshot.meme_dynamo_count == 7
        assert snapshot.interaction_count == 11
        assert snapshot.notification_count == 4
        assert snapshot.like_count == 9
        assert snapshot.comment_count == 2
        assert snapshot.conversation_count == 5

    def test_filtered_counts(self, counts, storage):
        """Open feedback excludes closed; new users are from the last day."""
        snapshot = asyncio.run(_builder(counts, storage).build())

        assert snapshot.open_feedback_count == 3
        assert snapshot.new_users_count == 2

    def test_storage_totals_exclude_markers_and_other_prefixes(self, counts, storage):
        snapshot = asyncio.run(_builder(counts, storage).build())

        assert snapshot.meme_count == 3
        assert snapshot.storage_bytes == 6 * 1024 * 1024
        assert snapshot.storage_label == "6MB"

    def test_recent_count_covers_last_24_hours(self, counts, storage):
        snapshot = asyncio.run(_builder(counts, storage).build())

        assert snapshot.recent_count == 2

    def test_snapshot_is_stamped_with_clock(self, counts, storage):
        snapshot = asyncio.run(_builder(counts, storage).build())

        assert snapshot.generated_at == NOW

    def test_custom_table_names(self, storage):
        counts = MockCountClient({"prod-Profiles": [{}, {}]})
        tables = DashboardTables(profiles="prod-Profiles")

        snapshot = asyncio.run(_builder(counts, storage, tables=tables).build())

        assert snapshot.user_count == 2
        assert snapshot.meme_dynamo_count == 0

    def test_any_count_failure_fails_snapshot(self, storage):
        with pytest.raises(MetricsError, match="throttled"):
            asyncio.run(_builder(FailingCounts(), storage).build())

    def test_listing_failure_fails_snapshot(self, counts):
        class BrokenStorage(MockStorageClient):
            async def list_objects_page(self, *args, **kwargs):
                raise RuntimeError("no route to host")

        with pytest.raises(MetricsError):
            asyncio.run(_builder(counts, BrokenStorage()).build())


class TestCountQueries:
    """Tests for the fixed set of count queries."""

    def test_query_names_are_unique(self):
        queries = default_count_queries(DashboardTables(), NOW)
        names = [q.name for q in queries]

        assert len(names) == len(set(names)) == 9

    def test_new_users_cutoff_is_one_day_back(self):
        queries = {q.name: q for q in default_count_queries(DashboardTables(), NOW)}

        assert queries["new_users_count"].filter == CountFilter(
            "created_at", ">", "2024-05-31T12:00:00.000Z"
        )

    def test_feedback_filter(self):
        queries = {q.name: q for q in default_count_queries(DashboardTables(), NOW)}

        assert queries["open_feedback_count"].filter == CountFilter("status", "<>", "closed")

    def test_filter_rejects_unknown_operator(self):
        with pytest.raises(ValueError, match="operator"):
            CountFilter("status", "LIKE", "x")


class TestIsoTimestamp:
    """Cutoffs use the millisecond, Z-suffixed layout stored on profiles."""

    def test_whole_seconds_keep_milliseconds(self):
        assert iso_timestamp(NOW) == "2024-06-01T12:00:00.000Z"

    def test_truncates_microseconds(self):
        assert iso_timestamp(NOW.replace(microsecond=123987)) == "2024-06-01T12:00:00.123Z"

    def test_converts_offsets_to_utc(self):
        eastern = timezone(timedelta(hours=-5))

        assert iso_timestamp(datetime(2024, 6, 1, 7, 30, tzinfo=eastern)) == "2024-06-01T12:30:00.000Z"

    def test_naive_is_taken_as_utc(self):
        assert iso_timestamp(datetime(2024, 6, 1, 12)) == "2024-06-01T12:00:00.000Z"


class TestSummarizeObjects:
    def test_empty(self):
        assert summarize_objects([], NOW) == (0, 0, 0)

    def test_exactly_24_hours_old_is_not_recent(self):
        objects = [
            ObjectDescriptor("a", 1, NOW - timedelta(seconds=86400)),
            ObjectDescriptor("b", 2, NOW - timedelta(seconds=86399)),
        ]

        assert summarize_objects(objects, NOW) == (2, 3, 1)


# ---------------------------------------------------------------------------
# Cards
# ---------------------------------------------------------------------------

class TestMetricCards:
    """Tests for the card grid."""

    @pytest.fixture
    def snapshot(self) -> MetricSnapshot:
        return MetricSnapshot(
            user_count=120,
            meme_count=45,
            meme_dynamo_count=44,
            recent_count=6,
            storage_bytes=int(12.6 * 1024 * 1024),
            interaction_count=900,
            new_users_count=3,
            open_feedback_count=2,
            notification_count=80,
            like_count=400,
            comment_count=33,
            conversation_count=12,
            generated_at=NOW,
        )

    def test_twelve_cards_in_display_order(self, snapshot):
        titles = [card.title for card in build_cards(snapshot)]

        assert titles == [
            "Total Users",
            "Total Memes",
            "Dynamo Memes",
            "Memes Posted Last 24h",
            "Storage Used",
            "Total Interactions",
            "New Users Today",
            "Open Feedback",
            "Notifications",
            "UserLikes",
            "Comments",
            "Conversations",
        ]

    def test_each_card_has_its_own_color(self, snapshot):
        colors = [card.color for card in build_cards(snapshot)]

        assert colors == list(CARD_COLORS)

    def test_formatted_values(self, snapshot):
        cards = {card.title: card.value for card in build_cards(snapshot)}

        assert cards["Storage Used"] == "13MB"
        assert cards["New Users Today"] == "+3"
        assert cards["Total Users"] == "120"

    def test_unknown_color_falls_back_to_white(self):
        assert card_color("chartreuse") == "white"
        assert card_color("teal") == "teal"
