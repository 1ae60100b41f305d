"""
Metric snapshot assembly.

A snapshot is a handful of independent DynamoDB counts plus a full
listing of the media prefix, reduced to totals. The counts do not
depend on each other or on the listing, so they are all awaited
together; only the listing pages themselves are sequential.
"""

import asyncio
import dataclasses
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Iterable, Optional

from .errors import MetricsError
from .models import CountFilter, CountQuery, MetricSnapshot, ObjectDescriptor, utcnow
from .pager import DEFAULT_PAGE_SIZE, ObjectLister, ObjectPredicate, exclude, is_directory_marker
from .ports import CountSource, ObjectStore

logger = logging.getLogger(__name__)

RECENT_WINDOW = timedelta(seconds=86400)
NEW_USER_WINDOW = timedelta(days=1)


def iso_timestamp(moment: datetime) -> str:
    """
    UTC timestamp with millisecond precision and a Z suffix.

    Profiles are written by the app with this exact layout
    (e.g. 2024-06-01T12:00:00.000Z) and compared as strings, so the
    cutoff must use it too. Naive datetimes are taken as UTC.
    """
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


@dataclass(frozen=True)
class DashboardTables:
    """DynamoDB table names the metric cards are drawn from."""
    profiles: str = "Profiles"
    memes: str = "Memes"
    feedback: str = "UserFeedback"
    interactions: str = "UserInteractions"
    notifications: str = "UserNotifications"
    likes: str = "UserLikes"
    comments: str = "Comments"
    conversations: str = "UserConversations_v2"


def default_count_queries(tables: DashboardTables, now: datetime) -> list[CountQuery]:
    """
    The counts behind the metric cards.

    Query names match MetricSnapshot fields. created_at is stored as an
    ISO-8601 string, so the new-user cutoff is compared as a string.
    """
    since = iso_timestamp(now - NEW_USER_WINDOW)
    return [
        CountQuery("user_count", tables.profiles),
        CountQuery("meme_dynamo_count", tables.memes),
        CountQuery(
            "open_feedback_count",
            tables.feedback,
            CountFilter("status", "<>", "closed"),
        ),
        CountQuery("interaction_count", tables.interactions),
        CountQuery(
            "new_users_count",
            tables.profiles,
            CountFilter("created_at", ">", since),
        ),
        CountQuery("notification_count", tables.notifications),
        CountQuery("like_count", tables.likes),
        CountQuery("comment_count", tables.comments),
        CountQuery("conversation_count", tables.conversations),
    ]


def summarize_objects(
    objects: Iterable[ObjectDescriptor],
    now: datetime,
) -> tuple[int, int, int]:
    """Return (object count, total bytes, objects modified in the last 24h)."""
    cutoff = now - RECENT_WINDOW
    count = 0
    total_bytes = 0
    recent = 0
    for obj in objects:
        count += 1
        total_bytes += obj.size
        if obj.last_modified > cutoff:
            recent += 1
    return count, total_bytes, recent


_SNAPSHOT_FIELDS = {f.name for f in dataclasses.fields(MetricSnapshot)}
_DERIVED_FIELDS = {"meme_count", "recent_count", "storage_bytes", "generated_at"}


class MetricSnapshotBuilder:
    """
    Builds a MetricSnapshot from the count source and the object store.

    The clients are passed in, never looked up globally, so each
    dashboard instance owns its own handles.
    """

    def __init__(
        self,
        counts: CountSource,
        store: ObjectStore,
        bucket: str,
        prefix: str,
        tables: Optional[DashboardTables] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        exclude_object: ObjectPredicate = is_directory_marker,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._counts = counts
        self._lister = ObjectLister(store, bucket, prefix, page_size=page_size)
        self._tables = tables or DashboardTables()
        self._exclude_object = exclude_object
        self._clock = clock

    @property
    def lister(self) -> ObjectLister:
        """The listing the snapshot is computed from."""
        return self._lister

    def queries(self, now: datetime) -> list[CountQuery]:
        queries = default_count_queries(self._tables, now)
        for query in queries:
            if query.name not in _SNAPSHOT_FIELDS or query.name in _DERIVED_FIELDS:
                raise ValueError(f"Count query {query.name!r} has no snapshot field")
        return queries

    async def build(
        self,
        listing: Optional[Awaitable[list[ObjectDescriptor]]] = None,
    ) -> MetricSnapshot:
        """
        Run every count and the listing, then reduce them.

        Args:
            listing: A listing already in flight (shared with the media
                grid during a refresh); the prefix is listed here when
                omitted

        Raises:
            MetricsError: if any count or listing page fails; no partial
                snapshot is returned
        """
        now = self._clock()
        queries = self.queries(now)

        if listing is None:
            listing = self._lister.list()

        try:
            results = await asyncio.gather(
                listing,
                *(self._counts.count(q.table, q.filter) for q in queries),
            )
        except Exception as e:
            logger.error(
                "Failed to build metric snapshot",
                extra={"error": str(e)}
            )
            raise MetricsError(f"Metrics unavailable: {e}") from e

        objects, counts = results[0], results[1:]
        meme_count, storage_bytes, recent_count = summarize_objects(
            exclude(objects, self._exclude_object), now
        )

        snapshot = MetricSnapshot(
            meme_count=meme_count,
            recent_count=recent_count,
            storage_bytes=storage_bytes,
            generated_at=now,
            **{query.name: value for query, value in zip(queries, counts)},
        )

        logger.info(
            "Built metric snapshot",
            extra={
                "meme_count": snapshot.meme_count,
                "storage_mb": snapshot.storage_mb,
                "recent_count": snapshot.recent_count,
            }
        )

        return snapshot
