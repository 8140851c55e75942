"""
Driver Factory - Chrome WebDriver creation for capture runs.

Provides a single interface to create the WebDriver the extractor
captures through, with optional headless mode and upstream proxy.
"""

from typing import Optional
from contextlib import contextmanager
from selenium import webdriver
from selenium.webdriver.chrome.options import Options as ChromeOptions

# Type alias for driver
WebDriverType = webdriver.Chrome

PAGE_LOAD_TIMEOUT = 45


def create_driver(
    headless: bool = False,
    proxy: Optional[str] = None,
    page_load_timeout: int = PAGE_LOAD_TIMEOUT,
) -> WebDriverType:
    """
    Create a Chrome WebDriver suited for element capture.

    Args:
        headless: Run browser in headless mode
        proxy: Upstream proxy, e.g. "http://127.0.0.1:8080"
        page_load_timeout: Seconds allowed for the initial navigation

    Returns:
        Chrome WebDriver instance

    Example:
        >>> driver = create_driver(headless=True)
        >>> driver.get("https://example.com")
    """
    options = ChromeOptions()

    if headless:
        options.add_argument("--headless=new")

    if proxy:
        options.add_argument(f"--proxy-server={proxy}")

    # Common stability options
    options.add_argument("--disable-dev-shm-usage")
    options.add_argument("--ignore-certificate-errors")
    options.add_argument("--no-sandbox")
    options.add_experimental_option("excludeSwitches", ["enable-automation"])
    options.page_load_strategy = "eager"  # returns at DOMContentLoaded

    driver = webdriver.Chrome(options=options)
    driver.set_page_load_timeout(page_load_timeout)
    return driver


@contextmanager
def driver_session(headless: bool = False, proxy: Optional[str] = None):
    """
    Create a driver and always quit it.

    Example:
        >>> with driver_session(headless=True) as driver:
        ...     driver.get("https://example.com")
    """
    driver = create_driver(headless=headless, proxy=proxy)
    try:
        yield driver
    finally:
        driver.quit()
