"""Configuration constants for the MDA film classification crawler."""

BASE_URL = "https://app.mda.gov.sg/Classification/Search/Film/"

PAGE_SIZE = 20  # rows per grid page, fixed by the remote site
PAGE_WINDOW = 10  # numbered pager links rendered at once

# Hidden fields echoed back on every postback
TOKEN_NAMES = ("__VIEWSTATE", "__VIEWSTATEGENERATOR", "__EVENTVALIDATION")

GRID_EVENT_TARGET = "gvResult"

# Category checkboxes selecting features and serials
SEARCH_FILTERS = {
    "chklstType$0": "Feature",
    "chklstType$2": "Feature",
    "chklstType$3": "Serial",
    "btnSearch": "Search",
}

REQUEST_TIMEOUT = 30  # seconds
RETRY_BACKOFF = 30  # seconds to wait before restarting a failed partition
MAX_RETRIES = None  # None retries a failing partition forever
DEFAULT_WORKERS = 1

USER_AGENT = (
    "SGFilmScraper/0.1 "
    "(Research project; collecting public film classification records)"
)
