"""
DOM Snapshot - Python-side node handles for captured DOM state.

The page serializes either a whole document (walks) or the ancestor
"spine" of a single clicked element (pointer capture) into nested dicts.
This module rebuilds those payloads into linked DomNode objects so that
selector synthesis and recording run in Python with the same traversal
primitives the browser offers (parent, previous sibling, root node, host).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

ELEMENT_NODE = 1
DOCUMENT_NODE = 9
DOCUMENT_FRAGMENT_NODE = 11


@dataclass(eq=False)
class DomNode:
    """
    A single node of a captured DOM tree.

    Element nodes sent as sibling placeholders (only their tag matters for
    positional selectors) or as bare ancestors carry ``stub=True`` and are
    never recorded themselves.
    """
    node_type: int
    node_name: str = ""
    attributes: Dict[str, str] = field(default_factory=dict)
    text: Optional[str] = None
    value: Optional[str] = None
    rect: Optional[Dict[str, Any]] = None
    style: Optional[Dict[str, Any]] = None
    children: List["DomNode"] = field(default_factory=list)
    parent: Optional["DomNode"] = None
    shadow_root: Optional["DomNode"] = None
    host: Optional["DomNode"] = None
    stub: bool = False
    target: bool = False
    index: int = 0  # position among the parent's children

    @property
    def is_element(self) -> bool:
        return self.node_type == ELEMENT_NODE

    @property
    def is_document(self) -> bool:
        return self.node_type == DOCUMENT_NODE

    @property
    def is_shadow_root(self) -> bool:
        return self.node_type == DOCUMENT_FRAGMENT_NODE and self.host is not None

    @property
    def tag_name(self) -> str:
        return self.node_name.lower()

    @property
    def id(self) -> str:
        return self.attributes.get("id") or ""

    def get_attribute(self, name: str) -> Optional[str]:
        return self.attributes.get(name)

    @property
    def previous_sibling(self) -> Optional["DomNode"]:
        if self.parent is None or self.index == 0:
            return None
        return self.parent.children[self.index - 1]

    def preceding_siblings(self) -> Iterator["DomNode"]:
        """Yield preceding siblings, nearest first."""
        sibling = self.previous_sibling
        while sibling is not None:
            yield sibling
            sibling = sibling.previous_sibling

    def get_root_node(self) -> "DomNode":
        """Mirror of Node.getRootNode(): the topmost ancestor without crossing hosts."""
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    @property
    def is_connected(self) -> bool:
        """True when the node reaches a document, hopping over shadow hosts."""
        root = self.get_root_node()
        while root.is_shadow_root:
            root = root.host.get_root_node()
        return root.is_document

    def iter_elements(self) -> Iterator["DomNode"]:
        """Depth-first walk over elements, descending into shadow roots."""
        if self.is_element:
            yield self
        if self.shadow_root is not None:
            yield from self.shadow_root.iter_elements()
        for child in self.children:
            yield from child.iter_elements()

    def __repr__(self) -> str:
        ident = f"#{self.id}" if self.id else ""
        return f"DomNode({self.node_type}, {self.tag_name}{ident})"


def build_tree(payload: Dict[str, Any], parent: Optional[DomNode] = None) -> DomNode:
    """
    Rebuild a serialized node dict (and its descendants) into DomNodes.

    Expected keys: ``nodeType``, ``tag``, ``attributes``, ``text``,
    ``value``, ``rect``, ``style``, ``children``, ``shadowRoot``, ``stub``
    and ``target``. Everything except ``nodeType`` is optional.
    """
    node = DomNode(
        node_type=int(payload.get("nodeType", ELEMENT_NODE)),
        node_name=payload.get("tag") or "",
        attributes=dict(payload.get("attributes") or {}),
        text=payload.get("text"),
        value=payload.get("value"),
        rect=payload.get("rect"),
        style=payload.get("style"),
        parent=parent,
        stub=bool(payload.get("stub", False)),
        target=bool(payload.get("target", False)),
    )
    for index, child in enumerate(payload.get("children") or []):
        child_node = build_tree(child, parent=node)
        child_node.index = index
        node.children.append(child_node)

    shadow = payload.get("shadowRoot")
    if shadow is not None:
        shadow_root = build_tree(dict(shadow, nodeType=DOCUMENT_FRAGMENT_NODE))
        shadow_root.host = node
        node.shadow_root = shadow_root
    return node


def find_target(root: DomNode) -> Optional[DomNode]:
    """Locate the node flagged as the capture target in a spine payload."""
    stack = [root]
    while stack:
        node = stack.pop()
        if node.target:
            return node
        if node.shadow_root is not None:
            stack.append(node.shadow_root)
        stack.extend(reversed(node.children))
    return None
