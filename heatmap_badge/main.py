import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from heatmap_badge.api.routes.heatmap import router as heatmap_router
from heatmap_badge.clients.github_client import ContributionPageFetcher
from heatmap_badge.core.middleware import ChartRateLimitMiddleware
from heatmap_badge.core.observability import configure_logging
from heatmap_badge.core.observability import init_sentry
from heatmap_badge.db import create_engine_from_settings
from heatmap_badge.services.page_cache import DatabasePageCache
from heatmap_badge.services.page_cache import MemoryPageCache
from heatmap_badge.services.page_cache import PageCache
from heatmap_badge.settings import Settings


logger = logging.getLogger(__name__)


def build_page_cache(settings: Settings) -> PageCache:
    if settings.cache_backend == "database":
        return DatabasePageCache.from_engine(create_engine_from_settings(settings))
    return MemoryPageCache()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI application with its process-wide page fetcher."""

    app_settings = settings or Settings()
    configure_logging(app_settings)
    init_sentry(app_settings)

    fetcher = ContributionPageFetcher.from_settings(
        app_settings, cache=build_page_cache(app_settings)
    )

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        fetcher.close()

    app = FastAPI(title="GitHub contribution heatmap", lifespan=lifespan)
    app.state.settings = app_settings
    app.state.page_fetcher = fetcher
    app.add_middleware(
        ChartRateLimitMiddleware,
        requests_per_window=app_settings.rate_limit_per_minute,
        window_seconds=app_settings.rate_limit_window_seconds,
    )
    app.include_router(heatmap_router)

    logger.info(
        "Application created with %s page cache", app_settings.cache_backend
    )
    return app


app = create_app()
