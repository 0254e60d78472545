from collections.abc import Iterator
from collections.abc import Sequence
from datetime import date
from datetime import timedelta

from heatmap_badge.domain import DailyRecord
from heatmap_badge.domain import Week


DAYS_PER_WEEK = 7


def sunday_weekday(day: date) -> int:
    """Return the weekday of ``day`` counted from Sunday (0) to Saturday (6)."""

    return (day.weekday() + 1) % 7


def week_start(day: date) -> date:
    """Return the Sunday on or before ``day``."""

    return day - timedelta(days=sunday_weekday(day))


def iter_days(start: date, count: int) -> Iterator[date]:
    for offset in range(count):
        yield start + timedelta(days=offset)


def empty_record(day: date) -> DailyRecord:
    return DailyRecord(date=day, level=0, count=0)


def build_weeks(records: Sequence[DailyRecord]) -> list[Week]:
    """Bucket day records into Sunday-aligned weeks, filling gaps with zeros.

    The grid runs from the week containing the earliest record through the
    week containing the latest one. An empty input yields no weeks.
    """

    if not records:
        return []

    by_date = {record.date: record for record in records}
    first_day = min(by_date)
    last_day = max(by_date)

    weeks: list[Week] = []
    cursor = week_start(first_day)
    while cursor <= last_day:
        weeks.append(
            tuple(
                by_date.get(day) or empty_record(day)
                for day in iter_days(cursor, DAYS_PER_WEEK)
            )
        )
        cursor += timedelta(days=DAYS_PER_WEEK)

    return weeks
