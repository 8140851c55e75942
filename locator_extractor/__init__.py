"""
Locator Extractor - Stable locators from live web pages

Captures interactive elements from a rendered page (Ctrl/Cmd+Click or
whole-page walks) and emits CSS/XPath locators plus test-automation
prompts for the framework of your choice.
"""

__version__ = "0.4.0"

from locator_extractor.core.aggregator import AggregateSnapshot, LocatorAggregator
from locator_extractor.core.session import CaptureSession
from locator_extractor.layers.sense.element_recorder import ElementRecord

__all__ = [
    "AggregateSnapshot",
    "CaptureSession",
    "ElementRecord",
    "LocatorAggregator",
    "__version__",
]
