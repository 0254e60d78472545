from datetime import date

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


class DailyRecord(BaseModel):
    """Activity of a single calendar day as scraped from GitHub."""

    model_config = ConfigDict(frozen=True)

    date: date
    level: int = Field(ge=0, le=4)
    count: int | None = Field(default=None, ge=0)


# Seven records, Sunday first.
Week = tuple[DailyRecord, ...]


class ContributionPage(BaseModel):
    """Records extracted from one contributions page and the resolved total."""

    model_config = ConfigDict(frozen=True)

    records: tuple[DailyRecord, ...] = ()
    total: int = 0


class CachedPage(BaseModel):
    """Last seen contributions markup together with its HTTP validators."""

    model_config = ConfigDict(frozen=True)

    html: str
    etag: str | None = None
    last_modified: str | None = None


class ChartSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    weeks: list[Week]
    scheme: list[str]
    subject: str
    total: int
