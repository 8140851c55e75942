"""
Metadata Fuser - Computed style, accessibility and listener enrichment.

Resolves a record's CSS selector through the DevTools protocol and reads
what the page-side serializer cannot see: the full computed style, the
accessibility role/name and the attached event listeners. Calls run in an
executor so that many fusions can be in flight while capture goes on.
"""

from concurrent.futures import Executor
from typing import Any, Dict, List, Optional, Union
import asyncio
import logging

from locator_extractor.core.exceptions import MetadataFetchFailed
from locator_extractor.layers.enrichment.channel import CdpChannel
from locator_extractor.layers.sense.element_recorder import AdvancedMetadata, ElementRecord, MetadataError

logger = logging.getLogger(__name__)

# CSS property name -> AdvancedMetadata attribute
STYLE_PROPERTIES = {
    "z-index": "z_index",
    "opacity": "opacity",
    "display": "display",
    "visibility": "visibility",
    "pointer-events": "pointer_events",
    "cursor": "cursor",
    "background-color": "background_color",
    "color": "color",
    "font": "font",
}


def _ax_value(node: Dict[str, Any], key: str) -> Optional[str]:
    value = (node.get(key) or {}).get("value")
    return str(value) if value not in (None, "") else None


def scoped_selector_error(record: ElementRecord) -> Optional[MetadataError]:
    """
    Error indicator for records whose selector cannot be resolved from the top document.

    Shadow DOM selectors are scoped to their shadow root and iframe selectors
    to the frame document, so a top-level DOM.querySelector would match some
    other element (or nothing).
    """
    if record.shadow_host_chain:
        hosts = " > ".join(record.shadow_host_chain)
        return MetadataError(error=f"selector '{record.css_selector}' is scoped to the shadow root of {hosts}")
    if record.cross_origin_frame:
        return MetadataError(error=f"selector '{record.css_selector}' is scoped to an iframe document")
    return None


class MetadataFuser:
    """
    Fetch AdvancedMetadata for a selector without ever raising.

    Example:
        >>> fuser = MetadataFuser(SeleniumCdpChannel(driver))
        >>> meta = asyncio.run(fuser.fetch("button#loginBtn"))
        >>> meta.listeners
        ['click']
    """

    def __init__(self, channel: CdpChannel, executor: Optional[Executor] = None):
        self.channel = channel
        self.executor = executor
        self._domains_enabled = False

    async def fetch(self, selector: str) -> Union[AdvancedMetadata, MetadataError]:
        """Resolve ``selector`` and assemble its metadata, or an error indicator."""
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(self.executor, self.fetch_blocking, selector)
        except Exception as e:
            logger.warning(f"[MetadataFuser] Failed for '{selector}': {e}")
            return MetadataError(error=str(e) or e.__class__.__name__)

    def fetch_blocking(self, selector: str) -> AdvancedMetadata:
        """Synchronous body of ``fetch``. Raises MetadataFetchFailed on any failure."""
        if not selector:
            raise MetadataFetchFailed("empty selector")

        try:
            self._enable_domains()
            node_id = self._resolve(selector)
            metadata = AdvancedMetadata()
            self._read_computed_style(node_id, metadata)
            self._read_accessibility(node_id, metadata)
            metadata.listeners = self._read_listeners(node_id)
            return metadata
        except MetadataFetchFailed:
            raise
        except Exception as e:
            raise MetadataFetchFailed(f"{e.__class__.__name__}: {e}") from e

    def _enable_domains(self) -> None:
        if self._domains_enabled:
            return
        # CSS.enable requires the DOM agent to be enabled first
        self.channel.send("DOM.enable")
        self.channel.send("CSS.enable")
        self._domains_enabled = True

    def _resolve(self, selector: str) -> int:
        document = self.channel.send("DOM.getDocument", {"depth": 0})
        root_id = (document.get("root") or {}).get("nodeId")
        if not root_id:
            raise MetadataFetchFailed("no document root")

        found = self.channel.send("DOM.querySelector", {"nodeId": root_id, "selector": selector})
        node_id = found.get("nodeId") or 0
        if not node_id:
            raise MetadataFetchFailed(f"selector '{selector}' matched no node")
        return node_id

    def _read_computed_style(self, node_id: int, metadata: AdvancedMetadata) -> None:
        result = self.channel.send("CSS.getComputedStyleForNode", {"nodeId": node_id})
        for prop in result.get("computedStyle") or []:
            attr = STYLE_PROPERTIES.get(prop.get("name"))
            if attr:
                setattr(metadata, attr, prop.get("value"))

    def _read_accessibility(self, node_id: int, metadata: AdvancedMetadata) -> None:
        result = self.channel.send(
            "Accessibility.getPartialAXTree",
            {"nodeId": node_id, "fetchRelatives": False},
        )
        nodes = result.get("nodes") or []
        if nodes:
            metadata.aria_role = _ax_value(nodes[0], "role")
            metadata.aria_name = _ax_value(nodes[0], "name")

    def _read_listeners(self, node_id: int) -> List[str]:
        remote = self.channel.send("DOM.resolveNode", {"nodeId": node_id})
        object_id = (remote.get("object") or {}).get("objectId")
        if not object_id:
            raise MetadataFetchFailed("node could not be resolved to a JS object")

        result = self.channel.send("DOMDebugger.getEventListeners", {"objectId": object_id, "depth": 0})
        types: List[str] = []
        for listener in result.get("listeners") or []:
            event_type = str(listener.get("type") or "")
            if event_type and event_type not in types:
                types.append(event_type)
        return types
