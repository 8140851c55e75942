"""
Locator Aggregator - First-seen-wins deduplication of captured records.

Pointer capture, the full walk and the hidden walk all feed the same
aggregator. It is only touched from the capture session's event-loop
thread, and ``accept()`` never suspends, so key computation and insertion
happen within one scheduler turn.
"""

from dataclasses import dataclass, field
from typing import List, Set, TYPE_CHECKING
import logging

from locator_extractor.core.exceptions import AggregatorError

if TYPE_CHECKING:
    from locator_extractor.layers.sense.element_recorder import ElementRecord

logger = logging.getLogger(__name__)


def identity_key(record: "ElementRecord") -> str:
    """Casefolded page_url|tag|id|name|css|xpath. Missing parts count as empty."""
    parts = (
        record.page_url,
        record.tag,
        record.id,
        record.name,
        record.css_selector,
        record.xpath_selector,
    )
    return "|".join(part or "" for part in parts).casefold()


@dataclass
class AggregateSnapshot:
    """Final output of a capture session."""
    records: List["ElementRecord"] = field(default_factory=list)
    total_seen: int = 0
    visible_count: int = 0
    hidden_count: int = 0

    @property
    def unique_count(self) -> int:
        return len(self.records)


class LocatorAggregator:
    """
    Single-writer collection of unique element records.

    A later duplicate is counted but never merged into the record that was
    accepted first, even when it carries richer metadata.

    Example:
        >>> aggregator = LocatorAggregator()
        >>> aggregator.accept(record)
        True
        >>> aggregator.accept(record)
        False
        >>> aggregator.snapshot().total_seen
        2
    """

    def __init__(self):
        self._records: List["ElementRecord"] = []
        self._keys: Set[str] = set()
        self._total_seen = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def total_seen(self) -> int:
        return self._total_seen

    def __len__(self) -> int:
        return len(self._records)

    def accept(self, record: "ElementRecord") -> bool:
        """Add the record unless its identity key was already seen."""
        if self._closed:
            logger.debug(f"[Aggregator] Session stopped, ignoring {record}")
            return False

        key = identity_key(record)
        self._total_seen += 1
        if key in self._keys:
            logger.debug(f"[Aggregator] Duplicate dropped: {record}")
            return False

        self._keys.add(key)
        self._records.append(record)
        return True

    def snapshot(self) -> AggregateSnapshot:
        """Close the collection and report the unique records with their counts."""
        self._closed = True
        if len(self._keys) != len(self._records) or self._total_seen < len(self._records):
            raise AggregatorError(
                f"Aggregator bookkeeping corrupted: {len(self._keys)} keys, "
                f"{len(self._records)} records, {self._total_seen} seen"
            )

        records = list(self._records)
        visible = sum(1 for record in records if record.visible)
        return AggregateSnapshot(
            records=records,
            total_seen=self._total_seen,
            visible_count=visible,
            hidden_count=len(records) - visible,
        )
