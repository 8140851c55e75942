"""Reporters - Prompt generation and output files."""

from locator_extractor.reporters.locator_writer import LocatorWriter
from locator_extractor.reporters.prompt_builder import build_prompt

__all__ = ["LocatorWriter", "build_prompt"]
