"""
Domain models for the meme platform dashboard.

These models represent what the dashboard shows. They have no dependencies
on boto3, FastAPI or the filesystem, so the aggregation logic can be tested
with plain values.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Generic, Optional, TypeVar
from uuid import UUID, uuid4


T = TypeVar("T")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ObjectDescriptor:
    """
    Metadata for one stored object, without its content.

    Frozen because a listing is a snapshot: nothing downstream may
    edit what the store reported.
    """
    key: str
    size: int
    last_modified: datetime


@dataclass(frozen=True)
class ListPage:
    """One response of a paginated list call."""
    objects: list[ObjectDescriptor]
    next_token: Optional[str] = None


@dataclass(frozen=True)
class HistoryPoint:
    """One day's meme count in the trend series."""
    date: date
    count: int

    def __post_init__(self) -> None:
        if self.count < 0:
            raise ValueError("History count cannot be negative")

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date.isoformat(), "count": self.count}


@dataclass(frozen=True)
class CountFilter:
    """
    A single comparison applied to a count query.

    Kept as data rather than a boto3 condition so the core never
    imports the AWS SDK. The DynamoDB adapter translates it.
    """
    field: str
    operator: str  # one of "=", "<>", ">", ">=", "<", "<="
    value: Any

    ALLOWED_OPERATORS = ("=", "<>", ">", ">=", "<", "<=")

    def __post_init__(self) -> None:
        if self.operator not in self.ALLOWED_OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.operator}")


@dataclass(frozen=True)
class CountQuery:
    """A named row count against one table, optionally filtered."""
    name: str
    table: str
    filter: Optional[CountFilter] = None


@dataclass
class MetricSnapshot:
    """
    The latest aggregate shown in the metric cards.

    Always rebuilt in full on refresh, never patched field by field.
    """
    user_count: int = 0
    meme_count: int = 0
    meme_dynamo_count: int = 0
    recent_count: int = 0
    storage_bytes: int = 0
    interaction_count: int = 0
    new_users_count: int = 0
    open_feedback_count: int = 0
    notification_count: int = 0
    like_count: int = 0
    comment_count: int = 0
    conversation_count: int = 0
    generated_at: datetime = field(default_factory=utcnow)

    @property
    def storage_mb(self) -> int:
        return round(self.storage_bytes / 1024 / 1024)

    @property
    def storage_label(self) -> str:
        return f"{self.storage_mb}MB"


@dataclass(frozen=True)
class MediaItem:
    """A grid entry: a signed URL plus what the viewer needs to render it."""
    key: str
    url: str
    last_modified: datetime
    is_video: bool


@dataclass(frozen=True)
class MetricCard:
    """A titled, color-tagged value for the card grid."""
    title: str
    value: str
    color: str


class PanelStatus(Enum):
    OK = "ok"
    ERROR = "error"


@dataclass
class PanelResult(Generic[T]):
    """
    Outcome of refreshing one dashboard panel.

    Panels fail in isolation, so every panel carries its own status
    and either data or a short message for display.
    """
    status: PanelStatus
    data: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: T) -> "PanelResult[T]":
        return cls(status=PanelStatus.OK, data=data)

    @classmethod
    def failed(cls, message: str) -> "PanelResult[T]":
        return cls(status=PanelStatus.ERROR, error=message)

    @property
    def is_ok(self) -> bool:
        return self.status is PanelStatus.OK


@dataclass(frozen=True)
class RefreshCommand:
    """
    An explicit request to refresh the dashboard.

    The operation id lets callers correlate a response with the
    trigger that caused it.
    """
    operation_id: UUID = field(default_factory=uuid4)
    requested_at: datetime = field(default_factory=utcnow)


@dataclass
class DashboardState:
    """Everything one refresh produced."""
    operation_id: UUID
    completed_at: datetime
    metrics: PanelResult[MetricSnapshot]
    history: PanelResult[list[HistoryPoint]]
    media: PanelResult[list[MediaItem]]
