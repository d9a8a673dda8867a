"""Raw page storage plus JSON and CSV export of parsed titles."""

import csv
import json
from pathlib import Path

from tqdm import tqdm

from sg_film_scraper.errors import ParseError
from sg_film_scraper.models import MISSING_RATING, RetrievedPage, Title
from sg_film_scraper.parser import parse_detail_page


def save_page(html_dir: Path, page: RetrievedPage) -> Path:
    """Write one crawled detail page as ``title-<page>-<row>.html``."""
    path = html_dir / page.filename
    path.write_bytes(page.html)
    return path


def load_titles(html_dir: Path) -> list[Title]:
    """Parse every saved page in ``html_dir``, in file name order."""
    titles = []
    files = sorted(p for p in html_dir.iterdir() if p.is_file())
    for path in tqdm(files, desc="Parsing pages", unit="page"):
        try:
            titles.append(parse_detail_page(path.read_bytes()))
        except ParseError as e:
            raise ParseError(f"{path}: {e}") from e
    return titles


def save_json(out_dir: Path, titles: list[Title]) -> Path:
    """Save all titles to ``out.json``."""
    data = [
        {
            "Name": t.name,
            "Ratings": [{"Rating": r.rating, "Decision": r.decision} for r in t.ratings],
            "URL": t.url,
        }
        for t in titles
    ]
    json_file = out_dir / "out.json"
    json_file.write_text(json.dumps(data, indent="\t", ensure_ascii=False), encoding="utf-8")
    print(f"  {json_file} ({len(titles)} titles)")
    return json_file


def save_csv(out_dir: Path, titles: list[Title]) -> Path:
    """Save one row per title, with its highest rating, to ``titles.csv``."""
    csv_file = out_dir / "titles.csv"
    with open(csv_file, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=["name", "max_rating", "ratings", "url"])
        writer.writeheader()
        for t in titles:
            writer.writerow(
                {
                    "name": t.name,
                    "max_rating": t.max_rating or MISSING_RATING,
                    "ratings": "; ".join(f"{r.rating}: {r.decision}" for r in t.ratings),
                    "url": t.url,
                }
            )
    print(f"  {csv_file} ({len(titles)} rows)")
    return csv_file
