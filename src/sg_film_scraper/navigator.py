"""Postback sequence for the classification search grid.

A crawl always walks the same path through the form:

  initialize      GET the search form, pick up the first token set
  submit_search   POST the category filters; the server redirects to the
                  results grid, whose URL becomes the postback target
  advance_to_page POST a ``Page$<n>`` grid event
  open_row        POST a ``Title$<r>`` grid event, answered with a detail page

The server only accepts a page event for a page whose link is currently
rendered, i.e. inside the pager window around the displayed page. Reaching a
distant page therefore takes several hops (see ``crawler.seek_pages``).
"""

from enum import Enum

import requests

from sg_film_scraper.config import GRID_EVENT_TARGET, PAGE_SIZE, PAGE_WINDOW, SEARCH_FILTERS
from sg_film_scraper.errors import InvalidArgument, ProtocolError
from sg_film_scraper.session import CrawlSession


class NavState(Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    SEARCH_SUBMITTED = "search_submitted"
    PAGE_ACTIVE = "page_active"


_GRID_STATES = (NavState.SEARCH_SUBMITTED, NavState.PAGE_ACTIVE)


def visible_pages(current: int, window: int = PAGE_WINDOW) -> range:
    """Pages the grid pager links to while ``current`` is displayed.

    The pager shows the block of ``window`` numbered pages containing the
    current page, plus "..." links to the page just before and just after
    that block. From page 1 that is pages 1-11; from page 11 it is 10-21.
    """
    block_start = ((current - 1) // window) * window + 1
    return range(max(block_start - 1, 1), block_start + window + 1)


class Navigator:
    """Drives one CrawlSession through the search form's postback sequence."""

    def __init__(self, session: CrawlSession):
        self.session = session
        self.state = NavState.UNINITIALIZED
        self.page = 0  # grid page currently displayed, 0 before the search

    def _require(self, action: str, *allowed: NavState) -> None:
        if self.state not in allowed:
            raise ProtocolError(f"Cannot {action} while {self.state.value}.")

    def initialize(self) -> None:
        """Load the empty search form."""
        self._require("initialize", NavState.UNINITIALIZED)
        resp = self.session.get(self.session.form_url)
        self.session.store_tokens(resp)
        self.state = NavState.INITIALIZED

    def submit_search(self) -> None:
        """Search for every feature and serial; lands on page 1 of the grid."""
        self._require("submit search", NavState.INITIALIZED)
        resp = self.session.postback(SEARCH_FILTERS)
        self.session.store_tokens(resp)
        # Later postbacks go wherever the server put the results grid
        self.session.form_url = resp.url
        self.state = NavState.SEARCH_SUBMITTED
        self.page = 1

    def advance_to_page(self, page: int) -> None:
        """Display grid page ``page``, which must be linked from the current page."""
        self._require(f"request page {page}", *_GRID_STATES)
        if page not in visible_pages(self.page):
            raise ProtocolError(f"Page {page} is not reachable from page {self.page}.")
        resp = self.session.postback(
            {"__EVENTTARGET": GRID_EVENT_TARGET, "__EVENTARGUMENT": f"Page${page}"}
        )
        if resp.url != self.session.form_url:
            raise ProtocolError(
                f"Post URL changed: {resp.url} (was: {self.session.form_url})."
            )
        self.session.store_tokens(resp)
        self.state = NavState.PAGE_ACTIVE
        self.page = page

    def open_row(self, row: int) -> requests.Response:
        """Open the detail page for ``row`` of the displayed grid page.

        The session is left untouched: the grid's tokens and URL remain the
        postback target for the next row or page event.
        """
        self._require(f"open row {row}", *_GRID_STATES)
        if not 0 <= row < PAGE_SIZE:
            raise InvalidArgument(f"row ({row}) must be between 0 and {PAGE_SIZE - 1}.")
        return self.session.postback(
            {"__EVENTTARGET": GRID_EVENT_TARGET, "__EVENTARGUMENT": f"Title${row}"}
        )
