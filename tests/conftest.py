"""
Shared fakes for crawler tests: an in-memory stand-in for the search site.

FakeGridSite replaces the ``requests.Session`` inside a CrawlSession. It
behaves like the real WebForms grid closely enough to catch protocol
mistakes: every postback must echo the latest token set, page events must
target the results URL and stay inside the pager window, and detail pages
carry their own (different) hidden tokens that must not leak into the next
grid postback.
"""

import pytest
import requests

from sg_film_scraper.config import PAGE_SIZE, TOKEN_NAMES
from sg_film_scraper.session import CrawlSession

SEARCH_URL = "https://example.test/Classification/Search/Film/"
RESULTS_URL = SEARCH_URL + "Results.aspx"


def form_page(tokens: dict[str, str], body: str = "") -> bytes:
    hidden = "".join(
        f'<input type="hidden" name="{k}" id="{k}" value="{v}" />' for k, v in tokens.items()
    )
    return (
        f'<html><body><form id="form1" action="./Results.aspx">{hidden}{body}</form></body></html>'
    ).encode()


def detail_page(name: str, action: str = "./Title.aspx?id=1") -> bytes:
    hidden = "".join(
        f'<input type="hidden" name="{k}" value="detail-{k}" />' for k in TOKEN_NAMES
    )
    return (
        f'<html><body><form id="form1" action="{action}">{hidden}'
        f'<div id="content"><span id="lblTitle">{name}</span>'
        "<table><tr>"
        '<td><img alt="General Viewing" src="g.gif" /></td><td>Passed Clean</td>'
        "</tr></table></div></form></body></html>"
    ).encode()


class FakeResponse:
    def __init__(self, url: str, content: bytes, status_code: int = 200):
        self.url = url
        self.content = content
        self.status_code = status_code

    @property
    def text(self) -> str:
        return self.content.decode()

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error", response=self)


class FakeGridSite:
    """One browser session's view of the search site."""

    def __init__(self, total: int = 10_000, fail_on_row: int | None = None):
        self.total = total
        self.fail_on_row = fail_on_row
        self.calls: list[tuple] = []
        self.rows_opened = 0
        self.closed = False
        self.tokens: dict[str, str] = {}
        self.page = 0
        self._serial = 0

    def _issue_tokens(self) -> dict[str, str]:
        self._serial += 1
        self.tokens = {name: f"{name.strip('_').lower()}-{self._serial}" for name in TOKEN_NAMES}
        return self.tokens

    def _reachable(self, page: int) -> bool:
        block = ((self.page - 1) // 10) * 10
        return max(block, 1) <= page <= block + 11

    def get(self, url, timeout=None):
        self.calls.append(("get", url))
        return FakeResponse(url, form_page(self._issue_tokens()))

    def post(self, url, data=None, timeout=None):
        data = data or {}
        if any(data.get(k) != v for k, v in self.tokens.items()):
            self.calls.append(("rejected", data.get("__EVENTARGUMENT", "")))
            return FakeResponse(url, b"Invalid postback or callback argument", 500)

        if "btnSearch" in data:
            self.calls.append(("search", url))
            self.page = 1
            return FakeResponse(RESULTS_URL, form_page(self._issue_tokens()))

        kind, _, arg = data["__EVENTARGUMENT"].partition("$")
        n = int(arg)
        if kind == "Page":
            self.calls.append(("page", n))
            if url != RESULTS_URL or not self._reachable(n):
                return FakeResponse(url, b"Invalid postback or callback argument", 500)
            self.page = n
            return FakeResponse(RESULTS_URL, form_page(self._issue_tokens()))

        self.rows_opened += 1
        self.calls.append(("row", n))
        if self.rows_opened == self.fail_on_row:
            raise requests.ConnectionError("Connection reset by peer")
        pos = (self.page - 1) * PAGE_SIZE + n + 1
        name = f"Film {pos}" if pos <= self.total else ""
        title_url = f"{SEARCH_URL}Title.aspx?pos={pos}"
        return FakeResponse(title_url, detail_page(name, action=f"./Title.aspx?pos={pos}"))

    def close(self) -> None:
        self.closed = True


def make_session(site: FakeGridSite) -> CrawlSession:
    return CrawlSession(base_url=SEARCH_URL, http=site)


@pytest.fixture
def site():
    return FakeGridSite()


@pytest.fixture
def session(site):
    return make_session(site)
