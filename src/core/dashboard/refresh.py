"""
Refresh coordination.

A refresh is an explicit command with an operation id. The three
panels (metrics, history, media) are refreshed together and each one
succeeds or fails on its own: a DynamoDB outage blanks the metric
cards but leaves the media grid intact.

The media prefix is listed once per refresh; the same listing feeds
the storage metrics and the media grid.

In-flight refreshes are never cancelled. When triggers overlap, every
caller still gets the state its own command produced, but the shared
"latest" view only moves forward: a refresh that finishes after a
newer one has already been published is not published.
"""

import asyncio
import itertools
import logging
from datetime import datetime
from typing import Awaitable, Callable, Optional, TypeVar

from .errors import HistoryError
from .history import HistoryAggregator
from .media import MediaGridBuilder
from .metrics import MetricSnapshotBuilder
from .models import (
    DashboardState,
    HistoryPoint,
    MediaItem,
    MetricSnapshot,
    ObjectDescriptor,
    PanelResult,
    RefreshCommand,
    utcnow,
)
from .pager import ObjectLister
from .ports import CountSource

logger = logging.getLogger(__name__)

T = TypeVar("T")

METRICS_FAILED = "Failed to load metrics."
HISTORY_FAILED = "Failed to load meme history."
MEDIA_FAILED = "Failed to fetch images."


class MemeHistoryRecorder:
    """Counts the memes table and records the result in the history."""

    def __init__(
        self,
        counts: CountSource,
        aggregator: HistoryAggregator,
        table: str = "Memes",
    ) -> None:
        self._counts = counts
        self._aggregator = aggregator
        self._table = table

    @property
    def aggregator(self) -> HistoryAggregator:
        return self._aggregator

    async def record(self, now: datetime) -> list[HistoryPoint]:
        try:
            count = await self._counts.count(self._table)
        except Exception as e:
            raise HistoryError(f"Could not count {self._table}: {e}") from e

        return await self._aggregator.record(count, now)


class RefreshCoordinator:
    """Runs refresh commands and keeps the most recent dashboard state."""

    def __init__(
        self,
        metrics: MetricSnapshotBuilder,
        history: MemeHistoryRecorder,
        media: MediaGridBuilder,
        clock: Callable[[], datetime] = utcnow,
        lister: Optional[ObjectLister] = None,
    ) -> None:
        self._metrics = metrics
        self._lister = lister if lister is not None else metrics.lister
        self._history = history
        self._media = media
        self._clock = clock

        self._sequence = itertools.count(1)
        self._published_sequence = 0
        self._latest: Optional[DashboardState] = None

    @property
    def latest(self) -> Optional[DashboardState]:
        return self._latest

    async def refresh(self, command: Optional[RefreshCommand] = None) -> DashboardState:
        """
        Refresh every panel for one command.

        Never raises for a panel failure; the failure is reported in
        that panel's result.
        """
        command = command or RefreshCommand()
        sequence = next(self._sequence)

        logger.info(
            "Refresh started",
            extra={"operation_id": str(command.operation_id)}
        )

        listing = asyncio.ensure_future(self._lister.list())
        metrics, history, media = await asyncio.gather(
            self.refresh_metrics(listing),
            self.refresh_history(),
            self.refresh_media(listing),
        )

        state = DashboardState(
            operation_id=command.operation_id,
            completed_at=self._clock(),
            metrics=metrics,
            history=history,
            media=media,
        )

        if sequence > self._published_sequence:
            self._published_sequence = sequence
            self._latest = state
        else:
            logger.info(
                "Discarded stale refresh",
                extra={"operation_id": str(command.operation_id)}
            )

        logger.info(
            "Refresh finished",
            extra={
                "operation_id": str(command.operation_id),
                "metrics": metrics.status.value,
                "history": history.status.value,
                "media": media.status.value,
            }
        )

        return state

    async def refresh_metrics(
        self,
        listing: Optional[Awaitable[list[ObjectDescriptor]]] = None,
    ) -> PanelResult[MetricSnapshot]:
        return await self._run_panel(
            "metrics",
            lambda: self._metrics.build(listing),
            METRICS_FAILED,
        )

    async def refresh_history(self) -> PanelResult[list[HistoryPoint]]:
        return await self._run_panel(
            "history",
            lambda: self._history.record(self._clock()),
            HISTORY_FAILED,
        )

    async def refresh_media(
        self,
        listing: Optional[Awaitable[list[ObjectDescriptor]]] = None,
    ) -> PanelResult[list[MediaItem]]:
        return await self._run_panel(
            "media",
            lambda: self._media.build(listing),
            MEDIA_FAILED,
        )

    async def _run_panel(
        self,
        name: str,
        build: Callable[[], Awaitable[T]],
        message: str,
    ) -> PanelResult[T]:
        try:
            return PanelResult.ok(await build())
        except Exception as e:
            logger.error(
                "Panel refresh failed",
                extra={"panel": name, "error": str(e)}
            )
            return PanelResult.failed(message)
