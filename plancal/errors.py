class PlancalError(Exception):
    """Base class for plancal errors."""


class ConfigError(PlancalError):
    """Configuration value that cannot be used to build a calendar."""


class FeedError(PlancalError):
    """The calendar feed could not be turned into event definitions."""


class FetchError(FeedError):
    """Transport failure or non-success status while retrieving the feed."""

    def __init__(self, message, status=None):
        super().__init__(message)
        self.status = status


class ParseError(FeedError):
    """The retrieved document is not a usable calendar."""
