"""
Dashboard logic.

Contains the pager, the trend history, the metric and media panels and
the refresh coordinator.
"""

from .cards import build_cards
from .errors import DashboardError, HistoryError, MediaError, MetricsError
from .history import HistoryAggregator
from .media import MediaGridBuilder
from .metrics import DashboardTables, MetricSnapshotBuilder
from .models import (
    CountFilter,
    CountQuery,
    DashboardState,
    HistoryPoint,
    ListPage,
    MediaItem,
    MetricCard,
    MetricSnapshot,
    ObjectDescriptor,
    PanelResult,
    PanelStatus,
    RefreshCommand,
)
from .pager import ObjectLister, is_directory_marker, list_all_objects
from .refresh import MemeHistoryRecorder, RefreshCoordinator

__all__ = [
    "build_cards",
    "DashboardError",
    "HistoryError",
    "MediaError",
    "MetricsError",
    "HistoryAggregator",
    "MediaGridBuilder",
    "DashboardTables",
    "MetricSnapshotBuilder",
    "CountFilter",
    "CountQuery",
    "DashboardState",
    "HistoryPoint",
    "ListPage",
    "MediaItem",
    "MetricCard",
    "MetricSnapshot",
    "ObjectDescriptor",
    "PanelResult",
    "PanelStatus",
    "RefreshCommand",
    "is_directory_marker",
    "list_all_objects",
    "ObjectLister",
    "MemeHistoryRecorder",
    "RefreshCoordinator",
]
