"""
Unit tests for refresh coordination.

Focus: panels fail independently, and the published state only moves
forward when refreshes overlap.
"""

import asyncio
from datetime import date, datetime, timezone
from uuid import uuid4

import pytest

from src.core.dashboard.errors import HistoryError
from src.core.dashboard.history import HistoryAggregator
from src.core.dashboard.media import MediaGridBuilder
from src.core.dashboard.metrics import MetricSnapshotBuilder
from src.core.dashboard.models import HistoryPoint, MetricSnapshot, PanelStatus, RefreshCommand
from src.core.dashboard.refresh import (
    HISTORY_FAILED,
    MEDIA_FAILED,
    METRICS_FAILED,
    MemeHistoryRecorder,
    RefreshCoordinator,
)
from src.infrastructure.dynamo.client import CountQueryError, MockCountClient
from src.infrastructure.history.store import HistoryStoreError, MockHistoryStore
from src.infrastructure.storage.client import MockStorageClient, StorageError


NOW = datetime(2024, 6, 1, 12, tzinfo=timezone.utc)
BUCKET = "bucket"
PREFIX = "Memes/"


class FailingCounts:
    async def count(self, table, count_filter=None):
        raise CountQueryError("DynamoDB unreachable")


class FailingStorage(MockStorageClient):
    async def list_objects_page(self, *args, **kwargs):
        raise StorageError("S3 unreachable")


class FailingHistoryStore(MockHistoryStore):
    async def save(self, payload):
        raise HistoryStoreError("read-only filesystem")


def _coordinator(counts=None, storage=None, history_store=None) -> RefreshCoordinator:
    counts = counts or MockCountClient({"Memes": [{}, {}, {}]})
    if storage is None:
        storage = MockStorageClient()
        storage.put_object(BUCKET, "Memes/a.png", size=10, last_modified=NOW)
    history_store = history_store or MockHistoryStore()
    clock = lambda: NOW

    return RefreshCoordinator(
        metrics=MetricSnapshotBuilder(counts, storage, BUCKET, PREFIX, clock=clock),
        history=MemeHistoryRecorder(counts, HistoryAggregator(history_store)),
        media=MediaGridBuilder(storage, BUCKET, PREFIX),
        clock=clock,
    )


class TestRefreshCoordinator:
    """Tests for refreshing all panels."""

    def test_all_panels_ok(self):
        state = asyncio.run(_coordinator().refresh())

        assert state.metrics.status is PanelStatus.OK
        assert state.metrics.data.meme_count == 1
        assert state.history.data == [HistoryPoint(date(2024, 6, 1), 3)]
        assert [item.key for item in state.media.data] == ["Memes/a.png"]

    def test_echoes_operation_id(self):
        command = RefreshCommand(operation_id=uuid4())

        state = asyncio.run(_coordinator().refresh(command))

        assert state.operation_id == command.operation_id
        assert state.completed_at == NOW

    def test_database_outage_spares_media(self):
        """Counts failing breaks metrics and history but not the media grid."""
        state = asyncio.run(_coordinator(counts=FailingCounts()).refresh())

        assert state.metrics.status is PanelStatus.ERROR
        assert state.metrics.error == METRICS_FAILED
        assert state.history.error == HISTORY_FAILED
        assert state.media.status is PanelStatus.OK

    def test_storage_outage_spares_history(self):
        state = asyncio.run(_coordinator(storage=FailingStorage()).refresh())

        assert state.metrics.error == METRICS_FAILED
        assert state.media.error == MEDIA_FAILED
        assert state.history.status is PanelStatus.OK

    def test_history_write_failure_only_affects_history(self):
        state = asyncio.run(_coordinator(history_store=FailingHistoryStore()).refresh())

        assert state.history.error == HISTORY_FAILED
        assert state.history.data is None
        assert state.metrics.is_ok
        assert state.media.is_ok

    def test_lists_bucket_once_per_refresh(self):
        """Metrics and media are computed from one shared listing."""
        storage = MockStorageClient()
        storage.put_object(BUCKET, "Memes/a.png", size=10, last_modified=NOW)
        coordinator = _coordinator(storage=storage)

        state = asyncio.run(coordinator.refresh())

        assert len(storage.list_calls) == 1
        assert state.metrics.data.meme_count == 1
        assert [item.key for item in state.media.data] == ["Memes/a.png"]

    def test_single_panel_refresh_lists_on_its_own(self):
        storage = MockStorageClient()
        storage.put_object(BUCKET, "Memes/a.png", size=10, last_modified=NOW)
        coordinator = _coordinator(storage=storage)

        asyncio.run(coordinator.refresh_media())

        assert len(storage.list_calls) == 1

    def test_latest_is_published(self):
        coordinator = _coordinator()
        assert coordinator.latest is None

        state = asyncio.run(coordinator.refresh())

        assert coordinator.latest is state

    def test_stale_refresh_is_not_published(self):
        """A refresh that finishes after a newer one does not replace it."""

        class GatedMetrics:
            """Blocks the first build until released."""

            def __init__(self):
                self.calls = 0
                self.release = None

            async def build(self, listing=None):
                self.calls += 1
                if self.calls == 1:
                    await self.release.wait()
                return MetricSnapshot(generated_at=NOW)

        metrics = GatedMetrics()
        base = _coordinator()
        coordinator = RefreshCoordinator(
            metrics=metrics,
            history=base._history,
            media=base._media,
            clock=lambda: NOW,
            lister=base._metrics.lister,
        )

        first = RefreshCommand(operation_id=uuid4())
        second = RefreshCommand(operation_id=uuid4())

        async def scenario():
            metrics.release = asyncio.Event()
            first_task = asyncio.create_task(coordinator.refresh(first))
            while metrics.calls < 1:
                await asyncio.sleep(0)
            second_state = await coordinator.refresh(second)
            published_before_release = coordinator.latest
            metrics.release.set()
            first_state = await first_task
            return first_state, second_state, published_before_release

        first_state, second_state, published = asyncio.run(scenario())

        assert published is second_state
        assert first_state.operation_id == first.operation_id
        assert first_state.metrics.is_ok
        assert coordinator.latest is second_state


class TestMemeHistoryRecorder:
    def test_records_memes_table_count(self):
        store = MockHistoryStore()
        recorder = MemeHistoryRecorder(
            MockCountClient({"Memes": [{}] * 4}),
            HistoryAggregator(store),
        )

        points = asyncio.run(recorder.record(NOW))

        assert points == [HistoryPoint(date(2024, 6, 1), 4)]
        assert store.save_count == 1

    def test_count_failure_leaves_history_untouched(self):
        store = MockHistoryStore('[{"date": "2024-05-31", "count": 1}]')
        recorder = MemeHistoryRecorder(FailingCounts(), HistoryAggregator(store))

        with pytest.raises(HistoryError):
            asyncio.run(recorder.record(NOW))

        assert store.save_count == 0
