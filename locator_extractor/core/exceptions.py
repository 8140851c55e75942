"""Exception hierarchy for the locator extractor."""


class LocatorExtractorError(Exception):
    """Base class for all extractor errors."""


class FilterSyntaxError(LocatorExtractorError, ValueError):
    """A filter token could not be parsed."""

    def __init__(self, token: str, reason: str):
        self.token = token
        self.reason = reason
        super().__init__(f"Invalid filter '{token}': {reason}")


class MetadataFetchFailed(LocatorExtractorError):
    """The DevTools side channel could not produce metadata for a selector."""


class AggregatorError(LocatorExtractorError):
    """The shared record collection is inconsistent. Fatal to the session."""


class ConfigError(LocatorExtractorError):
    """The run configuration is unusable (e.g. no target URL)."""
