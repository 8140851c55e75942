"""
Selector Synthesizer - Structural locators for a single DOM node.

Both builders climb the parent chain of element nodes. The CSS path
anchors on the first ancestor with an id; the XPath is fully positional.
Climbing stops at the first non-element parent: a document completes the
path, a shadow root scopes it to that shadow tree. Nodes that are not
connected to any document yield an empty string.
"""

from typing import List

from locator_extractor.layers.sense.dom_snapshot import DomNode


def _same_tag_ordinal(node: DomNode) -> int:
    """1-based position of the node among preceding element siblings of its tag."""
    tag = node.tag_name
    ordinal = 1
    for sibling in node.preceding_siblings():
        if sibling.is_element and sibling.tag_name == tag:
            ordinal += 1
    return ordinal


def build_css_path(node: DomNode) -> str:
    """
    Build a ``" > "``-joined CSS path, root first.

    Example:
        ``<body><div></div><div><button id="go"></button></div></body>``
        gives ``button#go`` for the button and
        ``html > body > div:nth-of-type(2)`` for the second div.
    """
    if node is None or not node.is_element or not node.is_connected:
        return ""

    parts: List[str] = []
    current = node
    while current is not None and current.is_element:
        part = current.tag_name
        if current.id:
            parts.append(f"{part}#{current.id}")
            break
        nth = _same_tag_ordinal(current)
        if nth > 1:
            part += f":nth-of-type({nth})"
        parts.append(part)
        current = current.parent

    return " > ".join(reversed(parts))


def build_xpath(node: DomNode) -> str:
    """Build an absolute, fully positional XPath such as ``/html[1]/body[1]/a[3]``."""
    if node is None or not node.is_element or not node.is_connected:
        return ""

    parts: List[str] = []
    current = node
    while current is not None and current.is_element:
        parts.append(f"{current.tag_name}[{_same_tag_ordinal(current)}]")
        current = current.parent

    return "/" + "/".join(reversed(parts))
