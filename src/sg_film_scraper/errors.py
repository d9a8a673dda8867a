"""Exception types shared by the crawler and the page parser."""


class InvalidArgument(ValueError):
    """A range or partition request that can never be satisfied."""


class CrawlError(Exception):
    """Base class for failures that abort a partition crawl."""


class NetworkError(CrawlError):
    """Transport failure or non-2xx HTTP status."""


class ProtocolError(CrawlError):
    """The remote form did not respond the way the postback sequence expects."""


class ParseError(ValueError):
    """A saved detail page could not be turned into a Title."""
