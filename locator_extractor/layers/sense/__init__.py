"""Sense Layer - DOM serialization, selector synthesis and element records."""

from locator_extractor.layers.sense.dom_mapper import DOMMapper
from locator_extractor.layers.sense.dom_snapshot import DomNode, build_tree
from locator_extractor.layers.sense.element_recorder import (
    AdvancedMetadata,
    ElementRecord,
    MetadataError,
    serialize,
)
from locator_extractor.layers.sense.selectors import build_css_path, build_xpath

__all__ = [
    "AdvancedMetadata",
    "DOMMapper",
    "DomNode",
    "ElementRecord",
    "MetadataError",
    "build_css_path",
    "build_tree",
    "build_xpath",
    "serialize",
]
