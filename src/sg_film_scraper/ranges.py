"""Logical result positions and how they map onto the paged search grid.

Positions are 1-indexed ordinals into the search result set. The grid shows
PAGE_SIZE rows per page, so position 1 is page 1 row 0, position 20 is page 1
row 19, and position 21 is page 2 row 0.
"""

from dataclasses import dataclass

from sg_film_scraper.config import PAGE_SIZE
from sg_film_scraper.errors import InvalidArgument


def page_of(pos: int) -> int:
    """Grid page (1-indexed) holding logical position ``pos``."""
    return ((pos - 1) // PAGE_SIZE) + 1


def row_of(pos: int) -> int:
    """Row within its grid page (0-indexed) of logical position ``pos``."""
    return (pos - 1) % PAGE_SIZE


@dataclass(frozen=True)
class RecordRange:
    """A half-open span ``[start, stop)`` of logical positions still to fetch."""

    start: int
    stop: int

    @classmethod
    def from_count(cls, start: int, count: int) -> "RecordRange":
        """Create the range of ``count`` positions beginning at ``start``."""
        if not (start > 0 and count > 0):
            raise InvalidArgument(
                f"start ({start}) and count ({count}) must be greater than zero."
            )
        return cls(start=start, stop=start + count)

    @property
    def size(self) -> int:
        return max(self.stop - self.start, 0)

    @property
    def is_exhausted(self) -> bool:
        return self.start >= self.stop

    @property
    def page(self) -> int:
        return page_of(self.start)

    @property
    def row(self) -> int:
        return row_of(self.start)

    def advance(self) -> "RecordRange":
        """Return the range that remains after fetching ``start``."""
        return RecordRange(start=self.start + 1, stop=self.stop)

    def partition(self, n: int) -> list["RecordRange"]:
        """Split into ``n`` contiguous, non-overlapping ranges of roughly equal size.

        Each piece gets ``size // n`` positions and the last piece is stretched
        to this range's ``stop``, so the integer-division remainder lands in the
        final partition:

            RecordRange(1, 26).partition(2) -> [RecordRange(1, 13), RecordRange(13, 26)]
        """
        if n < 1:
            raise InvalidArgument(f"the number of partitions ({n}) must be at least one.")
        if n > self.size:
            raise InvalidArgument(
                f"the number of partitions ({n}) must not exceed count ({self.size})."
            )
        q = self.size // n
        parts = [RecordRange.from_count(self.start + q * i, q) for i in range(n)]
        parts[-1] = RecordRange(start=parts[-1].start, stop=self.stop)
        return parts

    def __str__(self) -> str:
        return f"[{self.start}, {self.stop})"
