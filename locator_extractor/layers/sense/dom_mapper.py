"""
DOM Mapper - Page-side capture hooks and DOM serialization.

Installs the Ctrl/Cmd+Click capture listener in every frame, drains the
clicks it queued, and serializes whole documents (including open shadow
roots) for page walks. All results come back as plain payload dicts that
the Python side rebuilds with ``dom_snapshot.build_tree``.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, TYPE_CHECKING
import logging
import warnings

from locator_extractor.layers.sense.dom_snapshot import DomNode, build_tree, find_target
from locator_extractor.layers.sense.element_recorder import ElementRecord, serialize, walk

if TYPE_CHECKING:
    from selenium.webdriver.remote.webdriver import WebDriver

logger = logging.getLogger(__name__)


@dataclass
class CaptureBatch:
    """Click payloads drained in one poll, with the top-level URL at drain time."""
    page_url: str
    payloads: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class DocumentSnapshot:
    """A serialized document ready for walking."""
    page_url: str
    root: DomNode


# Shared serializer. ``describe`` has three depths: "stub" (tag only, for
# sibling placeholders), "ancestor" (tag and attributes) and "full".
_SERIALIZER_JS = r"""
window.__locatorSerializer = window.__locatorSerializer || (function(){
  // slices by code point, never inside a surrogate pair
  function clip(s){ return Array.from(s).slice(0, 300).join(''); }

  function describe(el, depth){
    const d = {nodeType: 1, tag: el.nodeName};
    if (depth === 'stub') { d.stub = true; return d; }
    d.attributes = {};
    try { for (const a of el.attributes) d.attributes[a.name] = a.value; } catch(e) {}
    if (depth !== 'full') { d.stub = true; return d; }
    try { d.text = clip((el.innerText || '').trim()); } catch(e) {}
    try { if (typeof el.value === 'string') d.value = clip(el.value); } catch(e) {}
    try {
      const r = el.getBoundingClientRect();
      d.rect = {x: r.x, y: r.y, width: r.width, height: r.height};
    } catch(e) {}
    try {
      const s = window.getComputedStyle(el);
      d.style = {display: s.display, visibility: s.visibility, opacity: s.opacity};
    } catch(e) {}
    return d;
  }

  function precedingStubs(el){
    const out = [];
    for (let s = el.previousElementSibling; s; s = s.previousElementSibling)
      out.unshift(describe(s, 'stub'));
    return out;
  }

  function spine(el){
    let node = describe(el, 'full');
    node.target = true;
    let cur = el;
    while (true) {
      const parent = cur.parentNode;
      if (!parent) return node;
      if (parent.nodeType === 11 && parent.host) {
        const root = {nodeType: 11, children: precedingStubs(cur).concat([node])};
        const host = describe(parent.host, 'ancestor');
        host.shadowRoot = root;
        host.children = [];
        node = host;
        cur = parent.host;
        continue;
      }
      const p = parent.nodeType === 1
        ? describe(parent, 'ancestor')
        : {nodeType: parent.nodeType, tag: parent.nodeName};
      p.children = precedingStubs(cur).concat([node]);
      node = p;
      cur = parent;
    }
  }

  function tree(limit){
    const ignore = new Set(['SCRIPT', 'STYLE', 'NOSCRIPT', 'META', 'LINK', 'TITLE', 'HEAD', 'TEMPLATE']);
    let budget = limit;
    function visit(el){
      const full = budget > 0 && !ignore.has(el.nodeName.toUpperCase());
      if (full) budget--;
      const d = describe(el, full ? 'full' : 'ancestor');
      d.children = Array.from(el.children).map(visit);
      if (el.shadowRoot) d.shadowRoot = {nodeType: 11, children: Array.from(el.shadowRoot.children).map(visit)};
      return d;
    }
    return {nodeType: 9, tag: '#document', children: Array.from(document.children).map(visit)};
  }

  return {describe: describe, spine: spine, tree: tree};
})();
"""


class DOMMapper:
    """
    Browser-facing half of the capture pipeline.

    Example:
        >>> mapper = DOMMapper(driver)
        >>> mapper.install_capture_hooks()
        >>> batch = mapper.drain_captures()
        >>> records = [mapper.record_from_payload(p) for p in batch.payloads]
    """

    QUEUE_NAME = "__locatorCaptures"

    def __init__(self, driver: "WebDriver", max_elements: int = 2000):
        """
        Initialize the DOM mapper.

        Args:
            driver: Selenium WebDriver (Chromium for init-script support)
            max_elements: Elements serialized in full per walk; the rest are stubs
        """
        self.driver = driver
        self.max_elements = max_elements

    def _get_capture_script(self) -> str:
        """Idempotent installer for the serializer and the click listener."""
        return _SERIALIZER_JS + r"""
(function(){
  if (window.__locatorInstalled) return;
  window.__locatorInstalled = true;
  window.__locatorCaptures = window.__locatorCaptures || [];
  const inFrame = (function(){ try { return window.top !== window; } catch(e) { return true; } })();

  document.addEventListener('click', function(e){
    if (!(e.ctrlKey || e.metaKey)) return;
    e.preventDefault();
    e.stopPropagation();
    const el = (e.composedPath && e.composedPath()[0] && e.composedPath()[0].nodeType === 1)
      ? e.composedPath()[0] : e.target;
    try {
      el.style.outline = '2px solid #1e90ff';
      el.style.boxShadow = '0 0 6px 2px rgba(30,144,255,0.5)';
    } catch(err) {}
    window.__locatorCaptures.push({inFrame: inFrame, tree: window.__locatorSerializer.spine(el)});
  }, true);
})();
"""

    def _get_drain_script(self) -> str:
        return self._get_capture_script() + r"""
const queued = window.__locatorCaptures || [];
window.__locatorCaptures = [];
return queued;
"""

    def _get_tree_script(self) -> str:
        return _SERIALIZER_JS + r"""
return window.__locatorSerializer.tree(arguments[0]);
"""

    def install_capture_hooks(self) -> None:
        """Install the listener now and on every future document, frames included."""
        script = self._get_capture_script()
        try:
            self.driver.execute_cdp_cmd("Page.addScriptToEvaluateOnNewDocument", {"source": script})
        except Exception as e:
            warnings.warn(
                f"Could not register capture script for new documents ({e}). "
                "Captures will only work on frames present at startup.",
                UserWarning,
            )

        self.driver.execute_script(script)
        for index in range(self._frame_count()):
            try:
                self._switch_to_frame(index)
                self.driver.execute_script(script)
            except Exception as e:
                logger.debug(f"[DOMMapper] Frame {index} install failed: {e}")
            finally:
                self.driver.switch_to.default_content()
        logger.info("[DOMMapper] Capture hooks installed")

    def drain_captures(self) -> CaptureBatch:
        """Collect and clear queued click payloads from the top document and its iframes."""
        self.driver.switch_to.default_content()
        batch = CaptureBatch(page_url=self.driver.current_url)
        script = self._get_drain_script()

        batch.payloads.extend(self.driver.execute_script(script) or [])
        for index in range(self._frame_count()):
            try:
                self._switch_to_frame(index)
                payloads = self.driver.execute_script(script) or []
                for payload in payloads:
                    payload["inFrame"] = True
                batch.payloads.extend(payloads)
            except Exception as e:
                logger.debug(f"[DOMMapper] Frame {index} drain failed: {e}")
            finally:
                self.driver.switch_to.default_content()
        return batch

    def snapshot_document(self) -> DocumentSnapshot:
        """Serialize the whole top-level document, shadow roots included."""
        self.driver.switch_to.default_content()
        payload = self.driver.execute_script(self._get_tree_script(), self.max_elements)
        return DocumentSnapshot(page_url=self.driver.current_url, root=build_tree(payload))

    @staticmethod
    def record_from_payload(payload: Dict[str, Any]) -> Optional[ElementRecord]:
        """Turn one drained click payload into a record, or None if unusable."""
        tree = payload.get("tree")
        if not tree:
            return None
        root = build_tree(tree)
        target = find_target(root)
        if target is None:
            return None
        return serialize(target, in_frame=bool(payload.get("inFrame")))

    @staticmethod
    def walk_records(snapshot: DocumentSnapshot, hidden: bool = False) -> Iterator[ElementRecord]:
        return walk(snapshot.root, hidden=hidden)

    def _frame_count(self) -> int:
        try:
            return len(self.driver.find_elements("tag name", "iframe"))
        except Exception:
            return 0

    def _switch_to_frame(self, index: int) -> None:
        frames = self.driver.find_elements("tag name", "iframe")
        self.driver.switch_to.frame(frames[index])
