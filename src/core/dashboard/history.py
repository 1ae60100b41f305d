"""
Day-bucketed history of the meme count.

The trend chart needs a count per day, but DynamoDB only knows the
current count. Each aggregation records today's count into a small
series kept in local storage, one point per calendar day, trimmed to
the retention window.

Dates are UTC calendar days. A point survives while its date is
strictly after (today - retention_days).
"""

import json
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional

from .errors import HistoryError
from .models import HistoryPoint
from .ports import HistorySlot

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 30


def day_key(now: datetime) -> date:
    """Calendar day of now, in UTC. Naive datetimes are taken as UTC."""
    if now.tzinfo is None:
        return now.date()
    return now.astimezone(timezone.utc).date()


def prune_and_upsert(
    points: Iterable[HistoryPoint],
    today: date,
    count: int,
    retention_days: int = DEFAULT_RETENTION_DAYS,
) -> list[HistoryPoint]:
    """
    Merge today's count into a series.

    Points on or before the cutoff are dropped, today's point is
    overwritten or appended, and the result is sorted by date. Duplicate
    dates collapse to the last one seen, so a series written out of
    order or by a racing writer is normalized here.
    """
    cutoff = today - timedelta(days=retention_days)

    by_date: dict[date, HistoryPoint] = {}
    for point in points:
        if point.date > cutoff:
            by_date[point.date] = point

    by_date[today] = HistoryPoint(date=today, count=count)

    return [by_date[key] for key in sorted(by_date)]


def parse_series(payload: Optional[str]) -> list[HistoryPoint]:
    """
    Decode a stored series.

    Missing or unparseable payloads are treated as an empty history.
    Individual malformed rows are skipped.
    """
    if not payload:
        return []

    try:
        rows = json.loads(payload)
    except ValueError:
        logger.warning("Stored history is not valid JSON, starting fresh")
        return []

    if not isinstance(rows, list):
        logger.warning("Stored history is not a list, starting fresh")
        return []

    points = []
    skipped = 0
    for row in rows:
        try:
            points.append(HistoryPoint(
                date=date.fromisoformat(str(row["date"])[:10]),
                count=int(row["count"]),
            ))
        except (KeyError, TypeError, ValueError):
            skipped += 1

    if skipped:
        logger.warning(
            "Skipped malformed history rows",
            extra={"skipped": skipped, "kept": len(points)}
        )

    return points


def serialize_series(points: Iterable[HistoryPoint]) -> str:
    return json.dumps([point.to_dict() for point in points])


class HistoryAggregator:
    """
    Records the daily count into a persisted series.

    There is no locking around the read-modify-write: two aggregations
    racing each other can lose one write. The next call heals any
    duplicate or out-of-order rows that leaves behind.
    """

    def __init__(
        self,
        store: HistorySlot,
        retention_days: int = DEFAULT_RETENTION_DAYS,
    ) -> None:
        if retention_days <= 0:
            raise ValueError("retention_days must be positive")

        self._store = store
        self._retention_days = retention_days

    @property
    def retention_days(self) -> int:
        return self._retention_days

    async def record(self, count: int, now: datetime) -> list[HistoryPoint]:
        """
        Upsert today's count, prune old points, persist and return the series.

        Raises:
            HistoryError: if the slot could not be read or written
        """
        if count < 0:
            raise ValueError("count cannot be negative")

        today = day_key(now)
        existing = await self._load_points()
        series = prune_and_upsert(existing, today, count, self._retention_days)

        try:
            await self._store.save(serialize_series(series))
        except Exception as e:
            raise HistoryError(f"Could not save history: {e}") from e

        logger.info(
            "Recorded history point",
            extra={
                "date": today.isoformat(),
                "count": count,
                "points": len(series),
            }
        )

        return series

    async def load(self, now: datetime) -> list[HistoryPoint]:
        """Return the persisted series, pruned and sorted, without writing."""
        cutoff = day_key(now) - timedelta(days=self._retention_days)
        by_date = {
            point.date: point
            for point in await self._load_points()
            if point.date > cutoff
        }
        return [by_date[key] for key in sorted(by_date)]

    async def _load_points(self) -> list[HistoryPoint]:
        try:
            payload = await self._store.load()
        except Exception as e:
            raise HistoryError(f"Could not load history: {e}") from e
        return parse_series(payload)
