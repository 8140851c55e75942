#!/usr/bin/env python3
"""
Basic Capture Example
=====================

Opens a page, walks every visible button and link, and lets you
Ctrl/Cmd+Click anything else for 60 idle seconds.

Usage:
    python examples/basic_capture.py
"""

from locator_extractor import CaptureSession
from locator_extractor.core.config import ExtractorConfig
from locator_extractor.core.driver_factory import driver_session
from locator_extractor.reporters import build_prompt


def main():
    """Run a short capture session and print what was found."""

    print("=" * 60)
    print("🔎 Locator Extractor - Basic Capture Example")
    print("=" * 60)
    print()

    config = ExtractorConfig(
        url="https://demo.playwright.dev/todomvc/",
        filters="button, a, input",
        scan_all=True,
        timeout=60,
    )

    with driver_session(headless=False) as driver:
        driver.get(config.url)
        print(f"Target URL: {config.url}")
        print("Ctrl/Cmd+Click to capture more, or wait for the timeout.")
        print("-" * 40)

        snapshot = CaptureSession(driver, config, stop_on_enter=True).run()

    print()
    print(f"Seen: {snapshot.total_seen}  Unique: {snapshot.unique_count}  "
          f"Visible: {snapshot.visible_count}  Hidden: {snapshot.hidden_count}")
    print()
    for record in snapshot.records:
        print(f"  <{record.tag}> css={record.css_selector}")
        print(f"      xpath={record.xpath_selector}")

    if snapshot.records:
        print()
        print("Sample prompt:")
        print(build_prompt(snapshot.records[0], "playwright", "locator"))


if __name__ == "__main__":
    main()
