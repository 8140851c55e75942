"""
Capture Session - The cooperative capture loop.

Runs the three producers (pointer capture, full walk, hidden walk), the
metadata fuser and the idle watchdog as tasks on one asyncio loop. Every
WebDriver call is pushed onto a single-worker executor, so browser round
trips are the only suspension points and the aggregator is only mutated
from the loop thread.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional, TYPE_CHECKING
import asyncio
import logging
import sys
import threading
import time

from locator_extractor.core.aggregator import AggregateSnapshot, LocatorAggregator
from locator_extractor.core.config import ExtractorConfig
from locator_extractor.core.filters import FilterSet, describe_filter_set, matches, parse_filter_set
from locator_extractor.layers.enrichment.channel import SeleniumCdpChannel
from locator_extractor.layers.enrichment.metadata_fuser import MetadataFuser, scoped_selector_error
from locator_extractor.layers.sense.dom_mapper import DOMMapper

if TYPE_CHECKING:
    from selenium.webdriver.remote.webdriver import WebDriver
    from locator_extractor.layers.sense.element_recorder import ElementRecord

logger = logging.getLogger(__name__)

WATCHDOG_INTERVAL = 2.0


class CaptureSession:
    """
    One capture run against the page currently loaded in ``driver``.

    Example:
        >>> session = CaptureSession(driver, ExtractorConfig(scan_all=True, timeout=30))
        >>> snapshot = session.run()
        >>> print(snapshot.unique_count, snapshot.total_seen)
    """

    def __init__(
        self,
        driver: "WebDriver",
        config: ExtractorConfig,
        mapper: Optional[DOMMapper] = None,
        fuser: Optional[MetadataFuser] = None,
        aggregator: Optional[LocatorAggregator] = None,
        on_capture: Optional[Callable[["ElementRecord", str], None]] = None,
        stop_on_enter: bool = False,
    ):
        """
        Initialize the session.

        Args:
            config: Run configuration; filters are parsed here, once
            mapper/fuser/aggregator: Collaborators, built from ``driver`` when omitted
            on_capture: Called with (record, source) for every newly accepted record
            stop_on_enter: Stop when a line is read from stdin
        """
        self.driver = driver
        self.config = config
        self.filters: FilterSet = parse_filter_set(config.filters)
        self.mapper = mapper if mapper is not None else DOMMapper(driver, max_elements=config.max_elements)
        self.aggregator = aggregator if aggregator is not None else LocatorAggregator()
        self.on_capture = on_capture
        self.stop_on_enter = stop_on_enter

        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="locator-driver")
        self.fuser = fuser
        if self.fuser is None and config.advanced_metadata:
            self.fuser = MetadataFuser(SeleniumCdpChannel(driver), executor=self._executor)

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._fusion_queue: Optional[asyncio.Queue] = None
        self._fusing = False
        self._last_activity = time.monotonic()
        self.stop_reason: Optional[str] = None

    def run(self) -> AggregateSnapshot:
        """Blocking entry point."""
        return asyncio.run(self.run_async())

    async def run_async(self) -> AggregateSnapshot:
        self._loop = asyncio.get_running_loop()
        self._stop_event = asyncio.Event()
        self._fusion_queue = asyncio.Queue()
        self._last_activity = time.monotonic()
        logger.info(f"[CaptureSession] Filters: {describe_filter_set(self.filters)}")

        tasks: List[asyncio.Task] = []
        stopper = asyncio.create_task(self._stop_event.wait())
        try:
            await self._io(self.mapper.install_capture_hooks)

            tasks.append(asyncio.create_task(self._pointer_capture_loop()))
            if self.fuser is not None:
                tasks.append(asyncio.create_task(self._fusion_worker()))
            if self.config.scan_all:
                tasks.append(asyncio.create_task(self._walk(hidden=False)))
            if self.config.scan_hidden:
                tasks.append(asyncio.create_task(self._walk(hidden=True)))
            if self.config.timeout and self.config.timeout > 0:
                tasks.append(asyncio.create_task(self._idle_watchdog()))
            if self.stop_on_enter:
                self._start_stdin_listener()

            # A producer that dies with a fatal error ends the session too
            while not stopper.done():
                done, _ = await asyncio.wait(tasks + [stopper], return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    if task is not stopper:
                        tasks.remove(task)
                        if not task.cancelled() and task.exception() is not None:
                            raise task.exception()
        finally:
            snapshot = self.aggregator.snapshot()
            for task in tasks + [stopper]:
                task.cancel()
            pending = self._fusion_queue.qsize() + int(self._fusing)
            if pending:
                logger.info(f"[CaptureSession] Abandoning {pending} in-flight metadata fetch(es)")
            self._executor.shutdown(wait=False, cancel_futures=True)

        logger.info(f"[CaptureSession] Stopped ({self.stop_reason or 'requested'})")
        return snapshot

    def stop(self, reason: str = "stop requested") -> None:
        """Request the session to end. Safe to call from any thread."""
        if self._loop is None or self._stop_event is None:
            return
        try:
            self._loop.call_soon_threadsafe(self._request_stop, reason)
        except RuntimeError:
            # loop already closed, the session has ended
            pass

    def _request_stop(self, reason: str) -> None:
        if not self._stop_event.is_set():
            self.stop_reason = reason
            self._stop_event.set()

    async def _io(self, func: Callable[..., Any], *args: Any) -> Any:
        """Run a blocking WebDriver call off the loop thread."""
        return await self._loop.run_in_executor(self._executor, func, *args)

    def ingest(self, record: Optional["ElementRecord"], page_url: str, source: str) -> bool:
        """
        Filter, stamp and accept one record; queue fusion for new ones.

        Runs entirely inside one scheduler turn.
        """
        if record is None:
            return False
        self._last_activity = time.monotonic()
        if not matches(record, self.filters):
            logger.debug(f"[CaptureSession] Filtered out <{record.tag}> from {source}")
            return False

        record.page_url = page_url
        record.capture_timestamp = datetime.now(timezone.utc).isoformat()
        if not self.aggregator.accept(record):
            return False

        if self.on_capture is not None:
            self.on_capture(record, source)
        if self.fuser is not None:
            scoped = scoped_selector_error(record)
            if scoped is not None:
                logger.debug(f"[CaptureSession] Not fusing {record}: {scoped.error}")
                record.advanced_metadata = scoped
            else:
                self._fusion_queue.put_nowait(record)
        return True

    async def _fusion_worker(self) -> None:
        # One fetch at a time, so a pointer drain never waits behind more than one
        while True:
            record = await self._fusion_queue.get()
            self._fusing = True
            try:
                result = await self.fuser.fetch(record.css_selector)
            finally:
                self._fusing = False
            if self.aggregator.closed:
                logger.debug(f"[CaptureSession] Discarding late metadata for {record}")
                return
            record.advanced_metadata = result

    async def _pointer_capture_loop(self) -> None:
        while True:
            try:
                batch = await self._io(self.mapper.drain_captures)
            except Exception as e:
                logger.warning(f"[CaptureSession] Capture poll failed: {e}")
                batch = None

            for payload in batch.payloads if batch else []:
                try:
                    record = self.mapper.record_from_payload(payload)
                except Exception as e:
                    logger.warning(f"[CaptureSession] Failed to process element: {e}")
                    continue
                if record is None:
                    logger.warning("[CaptureSession] Click payload held no capturable element")
                    continue
                self.ingest(record, batch.page_url, "pointer")

            await asyncio.sleep(self.config.poll_interval)

    async def _walk(self, hidden: bool) -> None:
        source = "hidden-walk" if hidden else "walk"
        try:
            snapshot = await self._io(self.mapper.snapshot_document)
        except Exception as e:
            logger.warning(f"[CaptureSession] {source} failed: {e}")
            return

        added = 0
        for record in self.mapper.walk_records(snapshot, hidden=hidden):
            if self.ingest(record, snapshot.page_url, source):
                added += 1
        logger.info(f"[CaptureSession] {source} added {added} element(s)")

    async def _idle_watchdog(self) -> None:
        interval = min(WATCHDOG_INTERVAL, float(self.config.timeout))
        while True:
            await asyncio.sleep(interval)
            if time.monotonic() - self._last_activity > self.config.timeout:
                logger.warning(f"[CaptureSession] Timeout reached ({self.config.timeout}s inactivity). Auto-stopping.")
                self._request_stop("idle timeout")
                return

    def _start_stdin_listener(self) -> None:
        def wait_for_enter():
            try:
                sys.stdin.readline()
            except Exception as e:
                logger.debug(f"[CaptureSession] stdin closed: {e}")
            self.stop("enter pressed")

        threading.Thread(target=wait_for_enter, name="locator-stdin", daemon=True).start()
