"""
FastAPI dependency injection.

Dependencies provide instances of services, clients, and configuration
to route handlers. Using dependency injection means:
- Routes don't instantiate their own dependencies (easier to test)
- Dependencies can be replaced with mocks for testing
- Configuration is centralized

The AWS clients and the history store are built once per application
by build_services() and kept on app.state, so every request of one app
shares the same handles and two apps (e.g. in tests) never do.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

from fastapi import Depends, Request

from ..config.settings import Settings
from ..core.dashboard.history import HistoryAggregator
from ..core.dashboard.media import MediaGridBuilder
from ..core.dashboard.metrics import DashboardTables, MetricSnapshotBuilder
from ..core.dashboard.refresh import MemeHistoryRecorder, RefreshCoordinator
from ..infrastructure.dynamo.client import CountClient, DynamoConfig, create_count_client
from ..infrastructure.history.store import HistoryStore, create_history_store
from ..infrastructure.storage.client import StorageClient, StorageConfig, create_storage_client

logger = logging.getLogger(__name__)


@dataclass
class DashboardServices:
    """Everything the routes need, owned by one application instance."""
    settings: Settings
    storage: StorageClient
    counts: CountClient
    history_store: HistoryStore
    aggregator: HistoryAggregator
    coordinator: RefreshCoordinator


def tables_from_settings(settings: Settings) -> DashboardTables:
    return DashboardTables(
        profiles=settings.profiles_table,
        memes=settings.memes_table,
        feedback=settings.feedback_table,
        interactions=settings.interactions_table,
        notifications=settings.notifications_table,
        likes=settings.likes_table,
        comments=settings.comments_table,
        conversations=settings.conversations_table,
    )


def build_services(
    settings: Settings,
    storage: StorageClient | None = None,
    counts: CountClient | None = None,
    history_store: HistoryStore | None = None,
) -> DashboardServices:
    """
    Wire clients and dashboard services from settings.

    Any client passed in is used as-is; the rest are created from
    settings (real AWS clients, or mocks when the mock flags are set).
    """
    if storage is None:
        storage = create_storage_client(
            config=StorageConfig(
                region=settings.aws_region,
                access_key_id=settings.aws_access_key_id,
                secret_access_key=settings.aws_secret_access_key,
            ),
            mock_mode=settings.storage_mock_mode,
        )

    if counts is None:
        counts = create_count_client(
            config=DynamoConfig(
                region=settings.aws_region,
                access_key_id=settings.aws_access_key_id,
                secret_access_key=settings.aws_secret_access_key,
            ),
            mock_mode=settings.dynamo_mock_mode,
        )

    if history_store is None:
        history_store = create_history_store(
            directory=Path(settings.history_dir),
            slot=settings.history_slot,
            mock_mode=settings.history_mock_mode,
        )

    tables = tables_from_settings(settings)
    aggregator = HistoryAggregator(
        history_store,
        retention_days=settings.history_retention_days,
    )

    coordinator = RefreshCoordinator(
        metrics=MetricSnapshotBuilder(
            counts,
            storage,
            bucket=settings.media_bucket,
            prefix=settings.media_prefix,
            tables=tables,
            page_size=settings.list_page_size,
        ),
        history=MemeHistoryRecorder(counts, aggregator, table=tables.memes),
        media=MediaGridBuilder(
            storage,
            bucket=settings.media_bucket,
            prefix=settings.media_prefix,
            limit=settings.grid_limit,
            expiry_seconds=settings.presign_expiry_seconds,
            page_size=settings.list_page_size,
        ),
    )

    logger.info(
        "Built dashboard services",
        extra={
            "mock_mode": {
                "storage": settings.storage_mock_mode,
                "dynamo": settings.dynamo_mock_mode,
                "history": settings.history_mock_mode,
            }
        }
    )

    return DashboardServices(
        settings=settings,
        storage=storage,
        counts=counts,
        history_store=history_store,
        aggregator=aggregator,
        coordinator=coordinator,
    )


# ---------------------------------------------------------------------------
# Service Dependencies
# ---------------------------------------------------------------------------

def get_services(request: Request) -> DashboardServices:
    """Return the services attached to the running application."""
    return request.app.state.services


def get_coordinator(
    services: Annotated[DashboardServices, Depends(get_services)],
) -> RefreshCoordinator:
    return services.coordinator


def get_history_aggregator(
    services: Annotated[DashboardServices, Depends(get_services)],
) -> HistoryAggregator:
    return services.aggregator


def get_app_settings(
    services: Annotated[DashboardServices, Depends(get_services)],
) -> Settings:
    """Settings the app was built with (may differ from get_settings() in tests)."""
    return services.settings


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

# These type aliases make route signatures cleaner
ServicesDep = Annotated[DashboardServices, Depends(get_services)]
CoordinatorDep = Annotated[RefreshCoordinator, Depends(get_coordinator)]
HistoryAggregatorDep = Annotated[HistoryAggregator, Depends(get_history_aggregator)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]

