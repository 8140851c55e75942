"""
Locator Writer - Persists a finished capture run.

Writes the unique records as JSON and the generated prompts as text,
each through a temp file so a crash never leaves a half-written output.
"""

from dataclasses import dataclass
from typing import List, Optional, TYPE_CHECKING
from datetime import datetime
import json
import logging
import os

if TYPE_CHECKING:
    from locator_extractor.core.aggregator import AggregateSnapshot

logger = logging.getLogger(__name__)

PROMPT_SEPARATOR = "\n\n========================\n\n"


@dataclass
class WrittenFiles:
    locators_path: str
    prompts_path: str


def _timestamp() -> str:
    return datetime.now().isoformat().replace(":", "-").replace(".", "-")


def atomic_write(path: str, data: str) -> None:
    """Write ``data`` to ``path`` via a sibling temp file and an atomic rename."""
    tmp = f"{path}.tmp"
    try:
        with open(tmp, "w", encoding="utf-8") as f:
            f.write(data)
        os.replace(tmp, path)
    finally:
        if os.path.exists(tmp):
            os.remove(tmp)


class LocatorWriter:
    """
    Writes locator and prompt files for one run.

    Example:
        >>> writer = LocatorWriter("output")
        >>> files = writer.write(snapshot, prompts, framework="playwright")
        >>> print(files.locators_path)
    """

    def __init__(self, output_dir: str = "output"):
        self.output_dir = output_dir
        os.makedirs(output_dir, exist_ok=True)

    def write(
        self,
        snapshot: "AggregateSnapshot",
        prompts: List[str],
        framework: str = "playwright",
        run_name: Optional[str] = None,
    ) -> WrittenFiles:
        stamp = run_name or _timestamp()
        locators_path = os.path.join(self.output_dir, f"locators_{stamp}.json")
        prompts_path = os.path.join(self.output_dir, f"copilot_prompts_{framework}_{stamp}.txt")

        records = [record.to_dict() for record in snapshot.records]
        atomic_write(locators_path, json.dumps(records, indent=2, ensure_ascii=False))
        atomic_write(prompts_path, PROMPT_SEPARATOR.join(prompts))

        logger.info(f"[LocatorWriter] Locators -> {locators_path}")
        logger.info(f"[LocatorWriter] Prompts  -> {prompts_path}")
        return WrittenFiles(locators_path=locators_path, prompts_path=prompts_path)
