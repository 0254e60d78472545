import logging
from typing import NamedTuple

import httpx
from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException
from fastapi import Request
from fastapi.responses import PlainTextResponse
from fastapi.responses import Response

from heatmap_badge.api.schemas.heatmap import HeatmapResponse
from heatmap_badge.clients.github_client import ContributionPageFetcher
from heatmap_badge.errors import CacheConsistencyError
from heatmap_badge.errors import ColorFormatError
from heatmap_badge.errors import OriginError
from heatmap_badge.services.heatmap_service import get_contribution_summary
from heatmap_badge.services.heatmap_service import render_contribution_chart
from heatmap_badge.settings import Settings


logger = logging.getLogger(__name__)

router = APIRouter()

USAGE = (
    "Use /<user> or /<base>/<bg>/<user> to render a chart.\n"
    "Example: /409ba5/222222/octocat"
)
NO_DATA_MESSAGE = "No contribution data found for that user."


class ChartRequest(NamedTuple):
    username: str
    base_color: str | None = None
    background_color: str | None = None


def parse_chart_path(path: str) -> ChartRequest | None:
    """Split ``/<user>``, ``/<base>/<user>`` or ``/<base>/<bg>/<user...>``.

    Everything after the background segment is the username, slashes
    included. Returns ``None`` for an empty path.
    """

    parts = [part for part in path.strip("/").split("/") if part]
    if not parts:
        return None
    if len(parts) == 1:
        return ChartRequest(username=parts[0])
    if len(parts) == 2:
        return ChartRequest(username=parts[1], base_color=parts[0])
    return ChartRequest(
        username="/".join(parts[2:]),
        base_color=parts[0],
        background_color=parts[1],
    )


def get_page_fetcher(request: Request) -> ContributionPageFetcher:
    return request.app.state.page_fetcher


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _error_response(exc: Exception) -> PlainTextResponse:
    if isinstance(exc, ColorFormatError):
        return PlainTextResponse(str(exc), status_code=400)
    if isinstance(exc, OriginError):
        return PlainTextResponse(str(exc), status_code=502)
    if isinstance(exc, httpx.HTTPError):
        return PlainTextResponse("GitHub request failed", status_code=502)
    return PlainTextResponse(str(exc), status_code=500)


@router.get("/", response_class=PlainTextResponse)
def usage() -> str:
    """Explain the chart URL scheme."""

    return USAGE


@router.get("/health/live")
def health_live() -> dict[str, str]:
    """Return liveness response for health checks."""

    return {"status": "ok"}


@router.get("/favicon.ico", include_in_schema=False)
def favicon() -> Response:
    return Response(status_code=404)


@router.get("/api/{username}", response_model=HeatmapResponse)
def get_contribution_calendar(
    username: str,
    fetcher: ContributionPageFetcher = Depends(get_page_fetcher),
) -> dict[str, object]:
    """Return the scraped contribution calendar of a user as JSON."""

    try:
        summary = get_contribution_summary(fetcher, username)
    except OriginError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except httpx.HTTPError as exc:
        raise HTTPException(status_code=502, detail="GitHub request failed") from exc
    except CacheConsistencyError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    if summary is None:
        raise HTTPException(status_code=404, detail=NO_DATA_MESSAGE)
    return summary


@router.get("/{chart_path:path}")
def get_contribution_chart(
    chart_path: str,
    fetcher: ContributionPageFetcher = Depends(get_page_fetcher),
    settings: Settings = Depends(get_settings),
) -> Response:
    """Render a user's contribution calendar as SVG."""

    chart_request = parse_chart_path(chart_path)
    if chart_request is None:
        return PlainTextResponse(USAGE)

    try:
        svg = render_contribution_chart(
            fetcher,
            username=chart_request.username,
            base_color=chart_request.base_color,
            background_color=chart_request.background_color,
            show_subject=settings.show_username_in_header,
        )
    except (
        ColorFormatError,
        OriginError,
        CacheConsistencyError,
        httpx.HTTPError,
    ) as exc:
        logger.warning("Chart for %s failed: %s", chart_request.username, exc)
        return _error_response(exc)

    if svg is None:
        return PlainTextResponse(NO_DATA_MESSAGE, status_code=404)

    return Response(
        content=svg,
        media_type="image/svg+xml; charset=utf-8",
        headers={"Cache-Control": f"public, max-age={settings.cache_max_age_seconds}"},
    )
