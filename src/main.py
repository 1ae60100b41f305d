"""
MemeDash application.

create_app() wires settings, the AWS clients and the history store
into one FastAPI app that serves the dashboard page and its JSON API.
Tests build apps around mock clients; uvicorn imports the module-level
`app` built from the environment.

Run locally and open http://127.0.0.1:8000/ in a browser:
    uvicorn src.main:app --reload

With no AWS access at all:
    STORAGE_MOCK_MODE=true DYNAMO_MOCK_MODE=true uvicorn src.main:app
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse

from . import __version__
from .api.dependencies import DashboardServices, build_services
from .api.page import DASHBOARD_HTML
from .api.routes import dashboard, health
from .config.settings import Settings, get_settings

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Log what the dashboard points at, and any configuration gaps.

    Gaps are logged rather than raised: the panels that depend on the
    missing setting report the failure on the next refresh.
    """
    settings: Settings = app.state.services.settings

    logger.info(
        "MemeDash starting",
        extra={
            "version": __version__,
            "bucket": settings.media_bucket,
            "prefix": settings.media_prefix,
            "history_slot": settings.history_slot,
        }
    )

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        logger.error(
            "Dashboard configuration incomplete",
            extra={"missing_fields": missing_fields}
        )

    yield

    logger.info("MemeDash stopped")


async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    # Details stay in the server log
    logger.error(
        "Unhandled exception",
        extra={"path": request.url.path, "method": request.method, "error": str(exc)},
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error."})


def create_app(
    settings: Optional[Settings] = None,
    services: Optional[DashboardServices] = None,
) -> FastAPI:
    """
    Build a dashboard application.

    Args:
        settings: Settings to use; defaults to get_settings()
        services: Prebuilt services (tests pass mock-backed ones);
            built from settings when omitted
    """
    settings = settings or get_settings()
    services = services or build_services(settings)

    logging.getLogger().setLevel(settings.log_level.upper())

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        description=(
            "Operations dashboard for the meme platform. "
            "`POST /api/v1/refresh` reloads the metric cards, the 30-day meme "
            "count history and the recent uploads grid; each panel fails on its own."
        ),
        lifespan=lifespan,
    )
    app.state.services = services

    app.include_router(health.router, prefix="/health", tags=["Health"])
    app.include_router(dashboard.router, prefix="/api/v1", tags=["Dashboard"])
    app.add_exception_handler(Exception, _unhandled_error)

    @app.get("/", include_in_schema=False, response_class=HTMLResponse)
    async def dashboard_page() -> HTMLResponse:
        return HTMLResponse(DASHBOARD_HTML)

    logger.info(
        "Dashboard app created",
        extra={"title": settings.app_title, "version": settings.app_version}
    )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
        log_level=get_settings().log_level.lower(),
    )
