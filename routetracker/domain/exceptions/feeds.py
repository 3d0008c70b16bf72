class FeedError(Exception):
    """Base exception for realtime feed failures."""


class FeedFetchError(FeedError):
    """Raised when a feed cannot be fetched (transport error, timeout, HTTP status)."""


class FeedDecodeError(FeedError):
    """Raised when a fetched feed is not a valid GTFS-realtime message."""
