"""Command-line interface for the MDA film classification crawler."""

import argparse
import sys
from functools import partial
from pathlib import Path

from sg_film_scraper.config import DEFAULT_WORKERS, MAX_RETRIES, RETRY_BACKOFF
from sg_film_scraper.errors import InvalidArgument, ParseError
from sg_film_scraper.output import load_titles, save_csv, save_json, save_page
from sg_film_scraper.pool import CrawlPool
from sg_film_scraper.ranges import RecordRange


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sg-film-scraper",
        description="Crawl and scrape the Singapore film classification database.",
    )
    sub = parser.add_subparsers(dest="command")

    crawl = sub.add_parser("crawl", help="crawl classification database")
    crawl.add_argument("--start", type=int, default=1, help="start at this result (default: 1)")
    crawl.add_argument(
        "--count", type=int, default=25, help="crawl this many results (default: 25)"
    )
    crawl.add_argument(
        "--workers",
        type=int,
        default=DEFAULT_WORKERS,
        help=f"number of workers (default: {DEFAULT_WORKERS})",
    )
    crawl.add_argument(
        "--html",
        type=Path,
        default=Path("html"),
        help="directory to write HTML files (default: html)",
    )
    crawl.add_argument(
        "--backoff",
        type=float,
        default=RETRY_BACKOFF,
        help=f"seconds to wait before restarting a failed worker (default: {RETRY_BACKOFF})",
    )
    crawl.add_argument(
        "--max-retries",
        type=int,
        default=MAX_RETRIES,
        help="give up on a worker after this many failed attempts without progress "
        "(default: retry forever)",
    )

    scrape = sub.add_parser("scrape", help="scrape downloaded html files")
    scrape.add_argument(
        "--html",
        type=Path,
        default=Path("html"),
        help="directory to read HTML files (default: html)",
    )
    scrape.add_argument(
        "--out",
        "-o",
        type=Path,
        default=Path("out"),
        help="directory for output (default: out)",
    )
    return parser


def crawl_cmd(args: argparse.Namespace, parser: argparse.ArgumentParser) -> None:
    try:
        job = RecordRange.from_count(args.start, args.count)
        job.partition(args.workers)
    except InvalidArgument as e:
        parser.error(str(e))
    if args.backoff < 0:
        parser.error(f"--backoff must be non-negative, got {args.backoff:g}")
    if args.max_retries is not None and args.max_retries < 0:
        parser.error(f"--max-retries must be non-negative, got {args.max_retries}")

    args.html.mkdir(parents=True, exist_ok=True)
    pool = CrawlPool(
        job,
        workers=args.workers,
        sink=partial(save_page, args.html),
        backoff=args.backoff,
        max_retries=args.max_retries,
    )
    summary = pool.run()
    if not summary.ok:
        sys.exit(1)


def scrape_cmd(args: argparse.Namespace) -> None:
    try:
        titles = load_titles(args.html)
    except ParseError as e:
        sys.exit(f"error: {e}")
    except FileNotFoundError:
        sys.exit(f"error: no such directory: {args.html}")

    print("\n" + "=" * 60)
    print("Saving output files...")
    print("=" * 60)
    args.out.mkdir(parents=True, exist_ok=True)
    save_json(args.out, titles)
    save_csv(args.out, titles)


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return

    try:
        if args.command == "crawl":
            crawl_cmd(args, parser)
        else:
            scrape_cmd(args)
    except KeyboardInterrupt:
        print("Caught signal: interrupt")
        sys.exit(130)
