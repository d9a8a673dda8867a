"""Per-crawl HTTP state for the classification search form.

The search form is an ASP.NET WebForms page. Every postback has to echo the
hidden fields from the previous response verbatim (view state, its generator
and event validation); a stale set makes the server reject the request as an
invalid postback. The server also keys state on cookies, so each crawl owns
its own ``requests.Session`` and a CrawlSession is never shared between
worker threads.
"""

import requests
from bs4 import BeautifulSoup
from requests.adapters import HTTPAdapter

from sg_film_scraper.config import BASE_URL, REQUEST_TIMEOUT, TOKEN_NAMES, USER_AGENT
from sg_film_scraper.errors import NetworkError, ProtocolError


def extract_tokens(html: bytes | str) -> dict[str, str]:
    """Pull the hidden postback tokens out of a form page.

    Raises ProtocolError naming the first token field the page lacks.
    """
    soup = BeautifulSoup(html, "lxml")
    tokens = {}
    for name in TOKEN_NAMES:
        field = soup.find("input", attrs={"name": name}) or soup.find("input", id=name)
        if field is None:
            raise ProtocolError(f"Response has no {name} field.")
        tokens[name] = field.get("value", "")
    return tokens


class CrawlSession:
    """HTTP client, current form URL and latest token set for one crawl."""

    def __init__(
        self,
        base_url: str = BASE_URL,
        http: requests.Session | None = None,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.form_url = base_url
        self.tokens: dict[str, str] = {}
        self.timeout = timeout
        if http is None:
            http = requests.Session()
            http.headers.update({"User-Agent": USER_AGENT})
            # One connection is enough: requests on a session are strictly sequential
            adapter = HTTPAdapter(pool_connections=1, pool_maxsize=1)
            http.mount("https://", adapter)
            http.mount("http://", adapter)
        self.http = http

    def __enter__(self) -> "CrawlSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self) -> None:
        self.http.close()

    # -- HTTP helpers ----------------------------------------------------------

    def get(self, url: str) -> requests.Response:
        """GET ``url``, raising NetworkError on transport or HTTP failure."""
        try:
            resp = self.http.get(url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise NetworkError(f"GET {url} failed: {e}") from e
        return resp

    def postback(self, fields: dict[str, str]) -> requests.Response:
        """POST the current tokens plus ``fields`` to the current form URL."""
        data = {**self.tokens, **fields}
        try:
            resp = self.http.post(self.form_url, data=data, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise NetworkError(f"POST {self.form_url} failed: {e}") from e
        return resp

    def store_tokens(self, resp: requests.Response) -> None:
        """Replace the token set with the one carried by ``resp``."""
        self.tokens = extract_tokens(resp.content)
