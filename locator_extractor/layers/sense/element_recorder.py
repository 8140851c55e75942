"""
Element Recorder - Canonical records for captured DOM elements.

Turns a DomNode into an ElementRecord: selectors, visibility, truncated
display text, ARIA hints and the shadow-host chain. Each field is read in
isolation so one unreadable property never costs the whole record.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, TypeVar, Union
import logging
import re

from locator_extractor.layers.sense.dom_snapshot import DomNode
from locator_extractor.layers.sense.selectors import build_css_path, build_xpath

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_TEXT_LENGTH = 250
_LONE_SURROGATE = re.compile("[\ud800-\udfff]")
FORM_CONTROL_TAGS = ("input", "textarea", "select")
HIDDEN_STYLES = (("display", "none"), ("visibility", "hidden"), ("opacity", "0"))


@dataclass
class BoundingBox:
    x: float
    y: float
    width: float
    height: float

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass
class AdvancedMetadata:
    """Computed style and accessibility details fetched over DevTools."""
    z_index: Optional[str] = None
    opacity: Optional[str] = None
    display: Optional[str] = None
    visibility: Optional[str] = None
    pointer_events: Optional[str] = None
    cursor: Optional[str] = None
    background_color: Optional[str] = None
    color: Optional[str] = None
    font: Optional[str] = None
    aria_role: Optional[str] = None
    aria_name: Optional[str] = None
    listeners: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "z_index": self.z_index,
            "opacity": self.opacity,
            "display": self.display,
            "visibility": self.visibility,
            "pointer_events": self.pointer_events,
            "cursor": self.cursor,
            "background_color": self.background_color,
            "color": self.color,
            "font": self.font,
            "aria_role": self.aria_role,
            "aria_name": self.aria_name,
            "listeners": list(self.listeners),
        }


@dataclass
class MetadataError:
    """Marks a metadata request that was made and failed."""
    error: str

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error}


@dataclass
class ElementRecord:
    """
    The canonical unit of capture.

    ``advanced_metadata`` is ``None`` until fusion was requested; after
    that it holds either AdvancedMetadata or a MetadataError.
    """
    tag: str
    id: Optional[str] = None
    name: Optional[str] = None
    class_attribute: Optional[str] = None
    text: Optional[str] = None
    role: Optional[str] = None
    aria_label: Optional[str] = None
    attributes: Dict[str, str] = field(default_factory=dict)
    dataset_attributes: Dict[str, str] = field(default_factory=dict)
    css_selector: str = ""
    xpath_selector: str = ""
    shadow_host_chain: Optional[List[str]] = None
    visible: bool = False
    bounding_box: Optional[BoundingBox] = None
    cross_origin_frame: bool = False
    page_url: str = ""
    capture_timestamp: Optional[str] = None
    advanced_metadata: Optional[Union[AdvancedMetadata, MetadataError]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "tag": self.tag,
            "id": self.id,
            "name": self.name,
            "class": self.class_attribute,
            "text": self.text,
            "role": self.role,
            "aria_label": self.aria_label,
            "attributes": dict(self.attributes),
            "dataset": dict(self.dataset_attributes),
            "css": self.css_selector,
            "xpath": self.xpath_selector,
            "shadow_host_chain": self.shadow_host_chain,
            "visible": self.visible,
            "bounding_box": self.bounding_box.to_dict() if self.bounding_box else None,
            "cross_origin_frame": self.cross_origin_frame,
            "page_url": self.page_url,
            "timestamp": self.capture_timestamp,
            "advanced_metadata": self.advanced_metadata.to_dict() if self.advanced_metadata else None,
        }

    def __str__(self) -> str:
        ident = f"#{self.id}" if self.id else ""
        return f"<{self.tag}{ident}> {self.css_selector or self.xpath_selector}"


def _safe(read: Callable[[], T], field_name: str) -> Optional[T]:
    try:
        return read()
    except Exception as e:
        logger.debug(f"[ElementRecorder] Could not read {field_name}: {e}")
        return None


def _bounding_box(node: DomNode) -> Optional[BoundingBox]:
    rect = node.rect
    if not rect:
        return None
    return BoundingBox(
        x=float(rect.get("x", 0)),
        y=float(rect.get("y", 0)),
        width=float(rect["width"]),
        height=float(rect["height"]),
    )


def _style_allows_display(node: DomNode) -> bool:
    style = node.style or {}
    for prop, hidden_value in HIDDEN_STYLES:
        if str(style.get(prop, "")).strip() == hidden_value:
            return False
    return True


def is_visible(box: Optional[BoundingBox], node: DomNode) -> bool:
    """Positive area and no display:none / visibility:hidden / opacity:0."""
    if box is None or box.width <= 0 or box.height <= 0:
        return False
    style_ok = _safe(lambda: _style_allows_display(node), "style")
    return bool(style_ok) if style_ok is not None else True


def _display_text(node: DomNode) -> str:
    text = (node.text or "").strip()
    if not text and node.tag_name in FORM_CONTROL_TAGS:
        text = (node.value or "").strip()
    return _LONE_SURROGATE.sub("", text)[:MAX_TEXT_LENGTH]


def shadow_host_chain(node: DomNode) -> Optional[List[str]]:
    """Tag names of enclosing shadow hosts, outermost first, or None."""
    hosts: List[str] = []
    root = node.get_root_node()
    while root.is_shadow_root:
        hosts.append(root.host.tag_name)
        root = root.host.get_root_node()
    return list(reversed(hosts)) or None


def serialize(node: DomNode, in_frame: bool = False) -> Optional[ElementRecord]:
    """
    Build an ElementRecord for an element node.

    Returns None for non-element nodes and for nodes that are no longer
    connected to any document.
    """
    if node is None or not node.is_element:
        return None
    if not node.is_connected:
        logger.debug(f"[ElementRecorder] Skipping detached {node!r}")
        return None

    attributes = _safe(lambda: {str(k): str(v) for k, v in node.attributes.items()}, "attributes") or {}
    box = _safe(lambda: _bounding_box(node), "bounding_box")

    return ElementRecord(
        tag=node.tag_name,
        id=attributes.get("id") or None,
        name=attributes.get("name") or None,
        class_attribute=attributes.get("class") or None,
        text=_safe(lambda: _display_text(node), "text"),
        role=attributes.get("role") or None,
        aria_label=attributes.get("aria-label") or None,
        attributes=attributes,
        dataset_attributes={k: v for k, v in attributes.items() if k.startswith("data-")},
        css_selector=_safe(lambda: build_css_path(node), "css_selector") or "",
        xpath_selector=_safe(lambda: build_xpath(node), "xpath_selector") or "",
        shadow_host_chain=_safe(lambda: shadow_host_chain(node), "shadow_host_chain"),
        visible=bool(_safe(lambda: is_visible(box, node), "visible")),
        bounding_box=box,
        cross_origin_frame=in_frame,
    )


def walk(
    root: DomNode,
    hidden: bool = False,
    limit: Optional[int] = None,
    in_frame: bool = False,
) -> Iterator[ElementRecord]:
    """
    Enumerate records for every fully captured element under ``root``.

    The full walk yields visible elements; the hidden walk yields the rest.
    Stub nodes (sibling placeholders, elements past the page-side limit)
    are skipped.
    """
    emitted = 0
    for node in root.iter_elements():
        if node.stub:
            continue
        record = serialize(node, in_frame=in_frame)
        if record is None or record.visible == hidden:
            continue
        yield record
        emitted += 1
        if limit is not None and emitted >= limit:
            logger.info(f"[ElementRecorder] Walk stopped at limit of {limit} elements")
            return
