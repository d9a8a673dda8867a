"""Fetch loop that walks one partition of the result set, row by row."""

from typing import Callable, Iterator

from bs4 import BeautifulSoup

from sg_film_scraper.config import PAGE_WINDOW
from sg_film_scraper.errors import CrawlError, ProtocolError
from sg_film_scraper.models import PartitionState, RetrievedPage
from sg_film_scraper.navigator import Navigator
from sg_film_scraper.parser import title_name
from sg_film_scraper.ranges import RecordRange


def seek_pages(target: int, window: int = PAGE_WINDOW) -> list[int]:
    """Page jumps that take a freshly searched grid from page 1 to ``target``.

    Only pages within the pager window are reachable in one hop, so a distant
    page is approached by stepping to the first page of each following block
    (11, 21, ...) before the final direct hop:

        seek_pages(25) -> [11, 21, 25]
        seek_pages(7)  -> [7]
        seek_pages(1)  -> []
    """
    if target <= 1:
        return []
    return list(range(window + 1, target, window)) + [target]


def check_response(html: bytes) -> None:
    """Reject a detail page with an empty title (expired or malformed postback)."""
    if not title_name(BeautifulSoup(html, "lxml")):
        raise ProtocolError("title is the empty string")


def fetch_records(navigator: Navigator, job: RecordRange) -> Iterator[RetrievedPage]:
    """Yield the detail page of every position in ``job``, in order.

    Raises CrawlError from whichever step fails; positions already yielded
    are done and the failed one is the next position of the range.
    """
    navigator.initialize()
    navigator.submit_search()
    for page in seek_pages(job.page):
        navigator.advance_to_page(page)

    while not job.is_exhausted:
        page, row = job.page, job.row
        resp = navigator.open_row(row)
        check_response(resp.content)
        yield RetrievedPage(url=resp.url, html=resp.content, page=page, row=row)

        job = job.advance()
        if not job.is_exhausted and job.page != page:
            navigator.advance_to_page(job.page)


def crawl_partition(
    navigator: Navigator,
    job: RecordRange,
    emit: Callable[[RetrievedPage], None],
) -> PartitionState:
    """Fetch ``job`` and hand each page to ``emit``.

    Returns the residual range: exhausted on success, otherwise starting at
    the position that failed, together with the error.
    """
    residual = job
    try:
        for page in fetch_records(navigator, job):
            emit(page)
            residual = residual.advance()
    except CrawlError as e:
        return PartitionState(job=residual, error=e)
    return PartitionState(job=residual)
