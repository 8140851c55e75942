from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from selenium.webdriver.remote.webdriver import WebDriver


class CdpChannel(ABC):
    """Abstract DevTools-protocol side channel."""

    @abstractmethod
    def send(self, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Issue one protocol command and return its result payload.

        Args:
            method: Fully qualified command, e.g. "DOM.querySelector".
            params: Command parameters.

        Returns:
            The decoded result dict. Protocol errors raise.
        """
        pass


class SeleniumCdpChannel(CdpChannel):
    """CDP over a Chromium WebDriver's ``execute_cdp_cmd``."""

    def __init__(self, driver: "WebDriver"):
        self.driver = driver

    def send(self, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self.driver.execute_cdp_cmd(method, params or {}) or {}
