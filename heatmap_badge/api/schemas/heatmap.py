from datetime import date

from pydantic import BaseModel


class HeatmapDay(BaseModel):
    """Single day item used in the heatmap response."""

    date: date
    weekday: int
    count: int | None
    level: int


class HeatmapWeek(BaseModel):
    """Week bucket containing seven days, Sunday first."""

    week_start: date
    days: list[HeatmapDay]


class HeatmapResponse(BaseModel):
    """Contribution calendar of a GitHub user scraped from the public profile."""

    username: str
    total: int
    weeks: list[HeatmapWeek]
