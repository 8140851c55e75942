"""Enrichment Layer - DevTools-backed metadata fusion."""

from locator_extractor.layers.enrichment.channel import CdpChannel, SeleniumCdpChannel
from locator_extractor.layers.enrichment.metadata_fuser import MetadataFuser

__all__ = ["CdpChannel", "MetadataFuser", "SeleniumCdpChannel"]
