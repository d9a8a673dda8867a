"""Data classes for crawled pages and parsed classification records."""

from dataclasses import dataclass, field
from typing import Optional

from sg_film_scraper.ranges import RecordRange

# Highest rating first
ORDERED_RATINGS = (
    "Restricted 21",
    "Matured Above 18",
    "No Children Under 16",
    "Parental Guidance 13",
    "Parental Guidance",
    "General Viewing",
)

MISSING_RATING = "Missing, NAR, or pre-2004 rating. Check URL."


@dataclass(frozen=True)
class RetrievedPage:
    """Raw detail page for one logical position."""
    url: str  # final URL the row postback landed on
    html: bytes
    page: int  # grid page the row was opened from
    row: int  # 0-based row within that page

    @property
    def filename(self) -> str:
        return f"title-{self.page}-{self.row}.html"


@dataclass(frozen=True)
class PartitionState:
    """The orchestrator's view of one worker slot."""
    job: RecordRange
    error: Optional[Exception] = None
    slot: int = 0
    retries: int = 0  # consecutive failed attempts without progress

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass
class Rating:
    """One rating (e.g. "No Children Under 16") and its decision (e.g. "Passed Clean")."""
    rating: str
    decision: str


@dataclass
class Title:
    """One film or serial in the classification database."""
    name: str
    url: str
    ratings: list[Rating] = field(default_factory=list)

    @property
    def max_rating(self) -> Optional[str]:
        """The most restrictive rating this title has received, if any."""
        given = {r.rating for r in self.ratings}
        for rating in ORDERED_RATINGS:
            if rating in given:
                return rating
        return None
