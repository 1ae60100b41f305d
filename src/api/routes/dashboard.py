"""
Dashboard API endpoints.

The page calls POST /refresh whenever the user presses the refresh
button. Each refresh carries an operation id so the page can tell
which response belongs to which click.

The per-panel GET endpoints refresh a single panel and are handy for
scripting and debugging; a failed panel answers 502 with the same short
message the page would show.
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from ...core.dashboard.cards import build_cards, card_color
from ...core.dashboard.errors import HistoryError
from ...core.dashboard.models import (
    DashboardState,
    HistoryPoint,
    MediaItem,
    MetricSnapshot,
    PanelResult,
    RefreshCommand,
    utcnow,
)
from ...core.dashboard.refresh import HISTORY_FAILED
from ..dependencies import CoordinatorDep, HistoryAggregatorDep

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class RefreshRequest(BaseModel):
    """Request to refresh every panel."""
    operation_id: Optional[UUID] = Field(
        None,
        description="Caller-chosen id echoed back in the response. Generated if omitted.",
    )


class MetricCardItem(BaseModel):
    title: str
    value: str
    color: str


class MetricsResponse(BaseModel):
    """Metric cards plus the raw totals behind them."""
    generated_at: datetime = Field(description="When the snapshot was taken")
    storage_bytes: int = Field(description="Total size of all media objects")
    cards: list[MetricCardItem] = Field(description="Cards in display order")


class HistoryPointItem(BaseModel):
    date: str = Field(description="Calendar day (YYYY-MM-DD, UTC)")
    count: int


class HistoryResponse(BaseModel):
    retention_days: int
    points: list[HistoryPointItem]


class MediaItemResponse(BaseModel):
    key: str
    url: str = Field(description="Signed, time-limited read URL")
    last_modified: datetime
    is_video: bool


class MediaResponse(BaseModel):
    items: list[MediaItemResponse]


class MetricsPanel(BaseModel):
    status: str
    error: Optional[str] = None
    data: Optional[MetricsResponse] = None


class HistoryPanel(BaseModel):
    status: str
    error: Optional[str] = None
    data: Optional[list[HistoryPointItem]] = None


class MediaPanel(BaseModel):
    status: str
    error: Optional[str] = None
    data: Optional[list[MediaItemResponse]] = None


class DashboardResponse(BaseModel):
    """Result of one refresh."""
    operation_id: UUID
    completed_at: datetime
    metrics: MetricsPanel
    history: HistoryPanel
    media: MediaPanel


# ---------------------------------------------------------------------------
# Translation
# ---------------------------------------------------------------------------

def _metrics_response(snapshot: MetricSnapshot) -> MetricsResponse:
    return MetricsResponse(
        generated_at=snapshot.generated_at,
        storage_bytes=snapshot.storage_bytes,
        cards=[
            MetricCardItem(title=card.title, value=card.value, color=card_color(card.color))
            for card in build_cards(snapshot)
        ],
    )


def _history_items(points: list[HistoryPoint]) -> list[HistoryPointItem]:
    return [HistoryPointItem(**point.to_dict()) for point in points]


def _media_items(items: list[MediaItem]) -> list[MediaItemResponse]:
    return [
        MediaItemResponse(
            key=item.key,
            url=item.url,
            last_modified=item.last_modified,
            is_video=item.is_video,
        )
        for item in items
    ]


def _dashboard_response(state: DashboardState) -> DashboardResponse:
    return DashboardResponse(
        operation_id=state.operation_id,
        completed_at=state.completed_at,
        metrics=MetricsPanel(
            status=state.metrics.status.value,
            error=state.metrics.error,
            data=_metrics_response(state.metrics.data) if state.metrics.is_ok else None,
        ),
        history=HistoryPanel(
            status=state.history.status.value,
            error=state.history.error,
            data=_history_items(state.history.data) if state.history.is_ok else None,
        ),
        media=MediaPanel(
            status=state.media.status.value,
            error=state.media.error,
            data=_media_items(state.media.data) if state.media.is_ok else None,
        ),
    )


def _unwrap(panel: PanelResult):
    if not panel.is_ok:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=panel.error,
        )
    return panel.data


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "/refresh",
    response_model=DashboardResponse,
    status_code=status.HTTP_200_OK,
    summary="Refresh the dashboard",
    description="Refresh metrics, history and media. Panels fail independently.",
)
async def refresh_dashboard(
    coordinator: CoordinatorDep,
    request: Optional[RefreshRequest] = None,
) -> DashboardResponse:
    """
    Run one refresh command.

    Always answers 200: a panel that could not be refreshed reports
    status "error" with a display message instead of data.
    """
    command = RefreshCommand()
    if request is not None and request.operation_id is not None:
        command = RefreshCommand(operation_id=request.operation_id)

    state = await coordinator.refresh(command)
    return _dashboard_response(state)


@router.get(
    "/dashboard",
    response_model=DashboardResponse,
    status_code=status.HTTP_200_OK,
    summary="Latest dashboard state",
    description="Most recently published refresh result, without refreshing",
)
async def get_dashboard(coordinator: CoordinatorDep) -> DashboardResponse:
    state = coordinator.latest
    if state is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Dashboard has not been refreshed yet",
        )
    return _dashboard_response(state)


@router.get(
    "/metrics",
    response_model=MetricsResponse,
    status_code=status.HTTP_200_OK,
    summary="Refresh metric cards",
)
async def get_metrics(coordinator: CoordinatorDep) -> MetricsResponse:
    snapshot = _unwrap(await coordinator.refresh_metrics())
    return _metrics_response(snapshot)


@router.get(
    "/history",
    response_model=HistoryResponse,
    status_code=status.HTTP_200_OK,
    summary="Stored meme count history",
    description="Reads the persisted series without recording a new point",
)
async def get_history(aggregator: HistoryAggregatorDep) -> HistoryResponse:
    try:
        points = await aggregator.load(utcnow())
    except HistoryError as e:
        logger.error("History read failed", extra={"error": str(e)})
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=HISTORY_FAILED,
        )

    return HistoryResponse(
        retention_days=aggregator.retention_days,
        points=_history_items(points),
    )


@router.get(
    "/media",
    response_model=MediaResponse,
    status_code=status.HTTP_200_OK,
    summary="Refresh media grid",
)
async def get_media(coordinator: CoordinatorDep) -> MediaResponse:
    items = _unwrap(await coordinator.refresh_media())
    return MediaResponse(items=_media_items(items))
