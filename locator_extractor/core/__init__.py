"""Core module - Capture session, aggregation, filters and driver management."""

from locator_extractor.core.aggregator import AggregateSnapshot, LocatorAggregator, identity_key
from locator_extractor.core.config import ExtractorConfig, load_config
from locator_extractor.core.filters import matches, parse_filter_set
from locator_extractor.core.session import CaptureSession

__all__ = [
    "AggregateSnapshot",
    "CaptureSession",
    "ExtractorConfig",
    "LocatorAggregator",
    "identity_key",
    "load_config",
    "matches",
    "parse_filter_set",
]
