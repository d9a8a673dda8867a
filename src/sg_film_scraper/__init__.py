"""Singapore Film Classification Scraper - crawl and scrape app.mda.gov.sg title pages."""

__version__ = "0.1.0"

from sg_film_scraper.models import RetrievedPage as RetrievedPage
from sg_film_scraper.models import Title as Title
from sg_film_scraper.navigator import Navigator as Navigator
from sg_film_scraper.pool import CrawlPool as CrawlPool
from sg_film_scraper.ranges import RecordRange as RecordRange
from sg_film_scraper.session import CrawlSession as CrawlSession
