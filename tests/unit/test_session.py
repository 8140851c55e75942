import asyncio
import time

import pytest
from unittest.mock import MagicMock
from locator_extractor.core.aggregator import LocatorAggregator
from locator_extractor.core.config import ExtractorConfig
from locator_extractor.core.exceptions import AggregatorError
from locator_extractor.core.session import CaptureSession
from locator_extractor.layers.sense.dom_mapper import CaptureBatch, DOMMapper, DocumentSnapshot
from locator_extractor.layers.sense.dom_snapshot import build_tree
from locator_extractor.layers.sense.element_recorder import AdvancedMetadata, MetadataError

RECT = {"x": 0, "y": 0, "width": 40, "height": 20}
STYLE = {"display": "block", "visibility": "visible", "opacity": "1"}
GONE = {"display": "none", "visibility": "visible", "opacity": "1"}


def click(tag, **attrs):
    target = {"nodeType": 1, "tag": tag, "attributes": attrs, "rect": RECT, "style": STYLE, "target": True}
    body = {"nodeType": 1, "tag": "BODY", "stub": True, "children": [target]}
    html = {"nodeType": 1, "tag": "HTML", "stub": True, "children": [body]}
    return {"inFrame": False, "tree": {"nodeType": 9, "children": [html]}}


def page_tree():
    def node(tag, style=STYLE, **attrs):
        return {"nodeType": 1, "tag": tag, "attributes": attrs, "rect": RECT, "style": style}

    body = node("BODY")
    body["children"] = [
        node("BUTTON", id="save"),
        node("A", href="/x"),
        node("DIV", style=GONE, **{"class": "modal"}),
    ]
    html = {"nodeType": 1, "tag": "HTML", "stub": True, "children": [body]}
    return build_tree({"nodeType": 9, "children": [html]})


class FakeMapper(DOMMapper):
    """DOMMapper with the browser round trips replaced by canned data."""

    def __init__(self, batches=(), url="https://a"):
        super().__init__(MagicMock())
        self.batches = list(batches)
        self.url = url
        self.installed = False

    def install_capture_hooks(self):
        self.installed = True

    def drain_captures(self):
        payloads = self.batches.pop(0) if self.batches else []
        return CaptureBatch(page_url=self.url, payloads=payloads)

    def snapshot_document(self):
        return DocumentSnapshot(page_url=self.url, root=page_tree())


class FakeFuser:
    def __init__(self, result=None, block=False):
        self.result = result if result is not None else AdvancedMetadata(cursor="pointer")
        self.block = block
        self.selectors = []

    async def fetch(self, selector):
        self.selectors.append(selector)
        if self.block:
            await asyncio.Event().wait()
        return self.result


def run_for(session, seconds=0.3):
    async def scenario():
        task = asyncio.create_task(session.run_async())
        await asyncio.sleep(seconds)
        session.stop()
        return await task

    return asyncio.run(scenario())


def make_session(mapper, fuser=None, aggregator=None, **config):
    config.setdefault("poll_interval", 0.01)
    return CaptureSession(MagicMock(), ExtractorConfig(**config), mapper=mapper, fuser=fuser, aggregator=aggregator)


def test_pointer_captures_are_deduplicated():
    mapper = FakeMapper(batches=[[click("BUTTON", id="go")], [click("BUTTON", id="go"), click("A")]])
    snapshot = run_for(make_session(mapper))

    assert mapper.installed
    assert snapshot.total_seen == 3
    assert snapshot.unique_count == 2
    assert [r.tag for r in snapshot.records] == ["button", "a"]


def test_records_are_stamped_before_acceptance():
    snapshot = run_for(make_session(FakeMapper(batches=[[click("A")]], url="https://shop")))
    record = snapshot.records[0]
    assert record.page_url == "https://shop"
    assert record.capture_timestamp


def test_filters_apply_to_pointer_and_walk():
    mapper = FakeMapper(batches=[[click("BUTTON"), click("SPAN")]])
    snapshot = run_for(make_session(mapper, filters="button", scan_all=True))

    assert {r.tag for r in snapshot.records} == {"button"}
    # pointer button and walked button#save have different keys
    assert snapshot.unique_count == 2


def test_walks_split_visible_and_hidden():
    snapshot = run_for(make_session(FakeMapper(), scan_all=True, scan_hidden=True))

    tags = sorted(r.tag for r in snapshot.records)
    assert tags == ["a", "body", "button", "div"]
    assert snapshot.visible_count == 3
    assert snapshot.hidden_count == 1


def test_fusion_attaches_metadata():
    fuser = FakeFuser()
    snapshot = run_for(make_session(FakeMapper(batches=[[click("BUTTON", id="go")]]), fuser=fuser))

    assert fuser.selectors == ["button#go"]
    assert snapshot.records[0].advanced_metadata.cursor == "pointer"


def test_failed_fusion_keeps_record_with_indicator():
    fuser = FakeFuser(result=MetadataError(error="selector 'x' matched no node"))
    snapshot = run_for(make_session(FakeMapper(batches=[[click("BUTTON")]]), fuser=fuser))

    assert snapshot.unique_count == 1
    assert isinstance(snapshot.records[0].advanced_metadata, MetadataError)


def test_in_flight_fusion_is_abandoned_at_stop():
    snapshot = run_for(make_session(FakeMapper(batches=[[click("BUTTON")]]), fuser=FakeFuser(block=True)))

    assert snapshot.unique_count == 1
    assert snapshot.records[0].advanced_metadata is None


def test_duplicates_are_not_fused_twice():
    fuser = FakeFuser()
    run_for(make_session(FakeMapper(batches=[[click("A")], [click("A")]]), fuser=fuser))
    assert len(fuser.selectors) == 1


def test_idle_timeout_stops_session():
    session = make_session(FakeMapper(), timeout=1)
    snapshot = session.run()

    assert session.stop_reason == "idle timeout"
    assert snapshot.unique_count == 0


def test_bad_payload_does_not_stop_capture():
    broken = {"tree": {"nodeType": 9, "children": [{"nodeType": 1, "tag": "HTML", "children": [{"bogus": True}]}]}}
    mapper = FakeMapper(batches=[[broken], [click("A")]])
    snapshot = run_for(make_session(mapper))
    assert [r.tag for r in snapshot.records] == ["a"]


def test_aggregator_failure_is_fatal():
    class BrokenAggregator(LocatorAggregator):
        def accept(self, record):
            raise AggregatorError("index lost")

    session = make_session(FakeMapper(batches=[[click("A")]]), aggregator=BrokenAggregator())
    with pytest.raises(AggregatorError):
        run_for(session)


def test_invalid_filter_fails_at_construction():
    with pytest.raises(ValueError):
        make_session(FakeMapper(), filters="[broken")


def test_hook_install_failure_propagates():
    class NoHooksMapper(FakeMapper):
        def install_capture_hooks(self):
            raise RuntimeError("no browsing context")

    session = make_session(NoHooksMapper())
    with pytest.raises(RuntimeError, match="no browsing context"):
        session.run()
    assert session.aggregator.closed


def test_given_aggregator_is_used_even_when_empty():
    aggregator = LocatorAggregator()
    mapper = FakeMapper()
    session = make_session(mapper, aggregator=aggregator)

    assert session.aggregator is aggregator
    assert session.mapper is mapper


def test_shadow_click_gets_scoped_metadata_error():
    target = {"nodeType": 1, "tag": "BUTTON", "attributes": {}, "rect": RECT, "style": STYLE, "target": True}
    host = {"nodeType": 1, "tag": "MY-CARD", "stub": True, "children": [],
            "shadowRoot": {"nodeType": 11, "children": [target]}}
    body = {"nodeType": 1, "tag": "BODY", "stub": True, "children": [host]}
    html = {"nodeType": 1, "tag": "HTML", "stub": True, "children": [body]}
    payload = {"inFrame": False, "tree": {"nodeType": 9, "children": [html]}}

    fuser = FakeFuser()
    snapshot = run_for(make_session(FakeMapper(batches=[[payload]]), fuser=fuser))

    assert fuser.selectors == []
    assert isinstance(snapshot.records[0].advanced_metadata, MetadataError)
    assert "my-card" in snapshot.records[0].advanced_metadata.error


def test_frame_click_gets_scoped_metadata_error():
    payload = click("A")
    payload["inFrame"] = True
    fuser = FakeFuser()
    snapshot = run_for(make_session(FakeMapper(batches=[[payload]]), fuser=fuser))

    assert fuser.selectors == []
    assert snapshot.records[0].cross_origin_frame is True
    assert isinstance(snapshot.records[0].advanced_metadata, MetadataError)


def test_pointer_capture_is_not_starved_by_walk_fusion():
    def node(tag, **attrs):
        return {"nodeType": 1, "tag": tag, "attributes": attrs, "rect": RECT, "style": STYLE}

    class BusyPageMapper(FakeMapper):
        def snapshot_document(self):
            body = node("BODY")
            body["children"] = [node("BUTTON", id=f"b{i}") for i in range(100)]
            html = {"nodeType": 1, "tag": "HTML", "stub": True, "children": [body]}
            return DocumentSnapshot(page_url=self.url, root=build_tree({"nodeType": 9, "children": [html]}))

    def slow_cdp(method, params=None):
        time.sleep(0.02)
        return {
            "DOM.getDocument": {"root": {"nodeId": 1}},
            "DOM.querySelector": {"nodeId": 2},
            "DOM.resolveNode": {"object": {"objectId": "o"}},
        }.get(method, {})

    driver = MagicMock()
    driver.execute_cdp_cmd.side_effect = slow_cdp
    accepted = {}
    started = time.monotonic()

    def on_capture(record, source):
        if source == "pointer":
            accepted["at"] = time.monotonic() - started

    session = CaptureSession(
        driver,
        ExtractorConfig(scan_all=True, advanced_metadata=True, poll_interval=0.01),
        mapper=BusyPageMapper(batches=[[], [click("A", id="late")]]),
        on_capture=on_capture,
    )
    run_for(session, seconds=1.5)

    assert "at" in accepted
    assert accepted["at"] < 0.75


def test_duplicate_clicks_keep_session_alive():
    class RepeatClickMapper(FakeMapper):
        def drain_captures(self):
            return CaptureBatch(page_url=self.url, payloads=[click("A", id="same")])

    session = make_session(RepeatClickMapper(), timeout=1, poll_interval=0.05)
    snapshot = run_for(session, seconds=2.5)

    assert session.stop_reason == "stop requested"
    assert snapshot.unique_count == 1
    assert snapshot.total_seen > 10
