"""
Run configuration: an optional ``config.json`` merged with CLI options.
"""

from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, List, Optional, Union
import json
import logging
import os

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "config.json"

# config.json keys that predate the current option names
_ALIASES = {
    "tagFilter": "filters",
    "scanHidden": "scan_hidden",
    "scanAll": "scan_all",
    "outputDir": "output_dir",
    "promptType": "prompt_type",
    "customExample": "custom_example",
    "advancedMetadata": "advanced_metadata",
    "pollInterval": "poll_interval",
    "maxElements": "max_elements",
}


@dataclass
class ExtractorConfig:
    """Configuration for a capture run."""
    url: Optional[str] = None
    framework: str = "playwright"
    prompt_type: str = "locator"  # locator, action, assertion
    custom_example: str = ""
    filters: Union[str, List[str], None] = None
    scan_all: bool = False
    scan_hidden: bool = False
    headless: bool = False
    output_dir: str = "output"
    timeout: int = 0  # idle seconds before auto-stop, 0 disables
    advanced_metadata: bool = False
    proxy: Optional[str] = None
    poll_interval: float = 0.5
    max_elements: int = 2000
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExtractorConfig":
        known = {f.name for f in fields(cls)} - {"extra"}
        values: Dict[str, Any] = {}
        extra: Dict[str, Any] = {}
        for key, value in data.items():
            name = _ALIASES.get(key, key)
            if name in known:
                values[name] = value
            else:
                extra[key] = value
        if extra:
            logger.warning(f"[Config] Ignoring unknown keys: {', '.join(sorted(extra))}")
        return cls(extra=extra, **values)

    def merged(self, overrides: Dict[str, Any]) -> "ExtractorConfig":
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def load_config(path: str = DEFAULT_CONFIG_FILE) -> ExtractorConfig:
    """
    Load ``path`` if it exists. A missing or invalid file yields defaults.
    """
    if not os.path.exists(path):
        return ExtractorConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"[Config] Invalid {path}: {e}")
        return ExtractorConfig()

    if not isinstance(data, dict):
        logger.warning(f"[Config] {path} must hold a JSON object, ignoring it")
        return ExtractorConfig()

    logger.info(f"[Config] Loaded {path} successfully")
    return ExtractorConfig.from_dict(data)
