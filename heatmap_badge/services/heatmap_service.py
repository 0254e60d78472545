import logging

from heatmap_badge.clients.github_client import ContributionPageFetcher
from heatmap_badge.domain import ChartSpec
from heatmap_badge.domain import Week
from heatmap_badge.services.calendar_grid import build_weeks
from heatmap_badge.services.calendar_grid import sunday_weekday
from heatmap_badge.services.chart_composer import render_svg
from heatmap_badge.services.color_scheme import build_scheme
from heatmap_badge.services.page_extractor import extract_contributions


logger = logging.getLogger(__name__)


def build_chart_spec(
    fetcher: ContributionPageFetcher,
    username: str,
    base_color: str | None = None,
    background_color: str | None = None,
) -> ChartSpec | None:
    """Fetch and lay out a user's contributions.

    Colors are validated before GitHub is contacted. Returns ``None`` when the
    page holds no contribution cells, which callers report as "not found".
    """

    scheme = build_scheme(base_color, background_color)
    page = extract_contributions(fetcher.fetch(username))
    weeks = build_weeks(page.records)
    if not weeks:
        logger.info("No contribution data found for %s", username)
        return None

    return ChartSpec(weeks=weeks, scheme=scheme, subject=username, total=page.total)


def render_contribution_chart(
    fetcher: ContributionPageFetcher,
    username: str,
    base_color: str | None = None,
    background_color: str | None = None,
    show_subject: bool = False,
) -> str | None:
    spec = build_chart_spec(fetcher, username, base_color, background_color)
    if spec is None:
        return None
    return render_svg(spec, show_subject=show_subject)


def build_weeks_payload(weeks: list[Week]) -> list[dict[str, object]]:
    """Convert week tuples into the JSON shape served by the API."""

    return [
        {
            "week_start": week[0].date.isoformat(),
            "days": [
                {
                    "date": day.date.isoformat(),
                    "weekday": sunday_weekday(day.date),
                    "count": day.count,
                    "level": day.level,
                }
                for day in week
            ],
        }
        for week in weeks
    ]


def get_contribution_summary(
    fetcher: ContributionPageFetcher, username: str
) -> dict[str, object] | None:
    spec = build_chart_spec(fetcher, username)
    if spec is None:
        return None
    return {
        "username": username,
        "total": spec.total,
        "weeks": build_weeks_payload(spec.weeks),
    }
