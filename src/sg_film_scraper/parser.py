"""Extract Title records from saved classification detail pages."""

from urllib.parse import urljoin

from bs4 import BeautifulSoup

from sg_film_scraper.config import BASE_URL
from sg_film_scraper.errors import ParseError
from sg_film_scraper.models import Rating, Title


def title_name(soup: BeautifulSoup) -> str:
    """Text of the ``#lblTitle`` label, or "" if the page has none."""
    label = soup.select_one("#lblTitle")
    if label is None:
        return ""
    return label.get_text().strip()


def parse_detail_page(html: bytes | str) -> Title:
    """Parse one detail page into a Title.

    Each rating is an ``<img>`` in the content table whose ``alt`` holds the
    rating; the decision sits in the cell right after the image's cell:

        <td><img alt="No Children Under 16" ...></td><td>Passed Clean</td>

    The canonical URL comes from the form action, which is relative to the
    search directory.
    """
    soup = BeautifulSoup(html, "lxml")

    ratings = []
    for img in soup.select("div#content td img"):
        rating = img.get("alt")
        if rating is None:
            raise ParseError("Rating image has no 'alt' attribute.")
        cell = img.find_parent("td").find_next_sibling("td")
        decision = cell.get_text() if cell is not None else ""
        ratings.append(Rating(rating=rating, decision=decision))

    form = soup.select_one("#form1")
    if form is None or form.get("action") is None:
        raise ParseError("No 'action' attribute on #form1.")

    return Title(
        name=title_name(soup),
        url=urljoin(BASE_URL, form["action"]),
        ratings=ratings,
    )
