import logging
import re
from collections.abc import Callable
from collections.abc import Sequence
from datetime import date

from bs4 import BeautifulSoup

from heatmap_badge.domain import ContributionPage
from heatmap_badge.domain import DailyRecord


logger = logging.getLogger(__name__)

DESCRIPTION_ID = "js-contribution-activity-description"

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_LEVEL_PATTERN = re.compile(r"^[0-4]$")
_NUMBER_PATTERN = re.compile(r"^\d[\d,]*$")
_COUNT_PHRASE_PATTERN = re.compile(r"(\d[\d,]*)\s+contributions?\b", re.IGNORECASE)
_NO_CONTRIBUTIONS_PATTERN = re.compile(r"\bno\s+contributions\b", re.IGNORECASE)
_LAST_YEAR_PATTERN = re.compile(
    r"(\d[\d,]*)\s+contributions?\s+in\s+the\s+last\s+year", re.IGNORECASE
)


def parse_count(raw_value: str) -> int | None:
    """Parse a non-negative integer, ignoring thousands separators."""

    value = raw_value.strip()
    if not _NUMBER_PATTERN.match(value):
        return None
    return int(value.replace(",", ""))


def count_from_phrase(text: str) -> int | None:
    """Read "<n> contribution(s)" or "No contributions" from plain text."""

    match = _COUNT_PHRASE_PATTERN.search(text)
    if match:
        return parse_count(match.group(1))
    if _NO_CONTRIBUTIONS_PATTERN.search(text):
        return 0
    return None


def _attribute(tag, name: str) -> str:
    value = tag.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    return (value or "").strip()


def _tooltip_counts(soup: BeautifulSoup) -> dict[str, int]:
    counts: dict[str, int] = {}
    for tooltip in soup.find_all("tool-tip", attrs={"for": True}):
        count = count_from_phrase(tooltip.get_text(" ", strip=True))
        if count is not None:
            counts.setdefault(_attribute(tooltip, "for"), count)
    return counts


def extract_records(soup: BeautifulSoup) -> list[DailyRecord]:
    """Collect one record per day cell, sorted by date.

    Cells are any element carrying ``data-date`` and ``data-level``. The count
    comes from ``data-count`` when present, otherwise from a ``<tool-tip>``
    pointing at the cell id, otherwise it stays unknown.
    """

    tooltip_counts = _tooltip_counts(soup)
    records: dict[date, DailyRecord] = {}

    for cell in soup.find_all(attrs={"data-date": True, "data-level": True}):
        raw_date = _attribute(cell, "data-date")
        raw_level = _attribute(cell, "data-level")
        if not _DATE_PATTERN.match(raw_date) or not _LEVEL_PATTERN.match(raw_level):
            continue

        try:
            day = date.fromisoformat(raw_date)
        except ValueError:
            continue
        if day in records:
            continue

        count = None
        cell_id = _attribute(cell, "id")
        if cell.has_attr("data-count"):
            count = parse_count(_attribute(cell, "data-count"))
        elif cell_id in tooltip_counts:
            count = tooltip_counts[cell_id]

        records[day] = DailyRecord(date=day, level=int(raw_level), count=count)

    return [records[day] for day in sorted(records)]


def total_from_counts(soup: BeautifulSoup, records: Sequence[DailyRecord]) -> int | None:
    if not records or any(record.count is None for record in records):
        return None
    return sum(record.count or 0 for record in records)


def total_from_description(
    soup: BeautifulSoup, records: Sequence[DailyRecord]
) -> int | None:
    description = soup.find(id=DESCRIPTION_ID)
    if description is None:
        return None
    return count_from_phrase(description.get_text(" ", strip=True))


def total_from_last_year_sentence(
    soup: BeautifulSoup, records: Sequence[DailyRecord]
) -> int | None:
    text = " ".join(soup.get_text(" ").split())
    match = _LAST_YEAR_PATTERN.search(text)
    if not match:
        return None
    return parse_count(match.group(1))


def total_from_active_days(soup: BeautifulSoup, records: Sequence[DailyRecord]) -> int:
    # Undercounts days GitHub reports at level 0 with a positive count.
    return sum(1 for record in records if record.level > 0)


TotalResolver = Callable[[BeautifulSoup, Sequence[DailyRecord]], int | None]

TOTAL_RESOLVERS: tuple[TotalResolver, ...] = (
    total_from_counts,
    total_from_description,
    total_from_last_year_sentence,
    total_from_active_days,
)


def resolve_total(soup: BeautifulSoup, records: Sequence[DailyRecord]) -> int:
    """Return the first total any resolver can determine, in priority order."""

    for resolver in TOTAL_RESOLVERS:
        total = resolver(soup, records)
        if total is not None:
            logger.debug("Resolved contribution total via %s", resolver.__name__)
            return total
    return 0


def extract_contributions(markup: str) -> ContributionPage:
    """Parse a GitHub contributions page into day records and a total."""

    soup = BeautifulSoup(markup, "html.parser")
    records = extract_records(soup)
    return ContributionPage(records=tuple(records), total=resolve_total(soup, records))
