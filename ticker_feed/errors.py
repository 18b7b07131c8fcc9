"""
Ticker Feed - Exception Types
"""


class TickerFeedError(Exception):
    """Base class for errors raised by the feed job."""


class SourceError(TickerFeedError):
    """An upstream call or its response could not be turned into quotes."""


class PersistenceError(TickerFeedError):
    """The output file could not be written."""
