from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from .policy import DEFAULT_POLICY, ExclusionPolicy

logger = logging.getLogger(__name__)

ENV_CONFIG_PATH = "GRAPHSAVE_CONFIG"


@dataclass
class SaveGraphConfig:
    """
    Save system configuration with sensible defaults.

    You can override by pointing GRAPHSAVE_CONFIG at a JSON file with keys:
      - compress: bool (default False), zlib+base64 the snapshot text
      - indent: int or null (default null), pretty-print snapshot text
      - save_dir: str or null (default: platform user data directory)
      - log_level: level name used by configure_logging (default null)
      - exclude_types: list of qualified type names never persisted
      - exclude_attributes: {qualified type name: [attribute names]}

    Exclusions from the file are added to the built-in ones.
    """

    compress: bool = False
    indent: Optional[int] = None
    save_dir: Optional[str] = None
    log_level: Optional[str] = None
    exclusions: ExclusionPolicy = field(default_factory=lambda: DEFAULT_POLICY)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "SaveGraphConfig":
        cfg = cls()
        if "compress" in raw:
            cfg.compress = bool(raw["compress"])
        if "indent" in raw:
            cfg.indent = None if raw["indent"] is None else int(raw["indent"])
        if "save_dir" in raw:
            cfg.save_dir = None if raw["save_dir"] is None else str(raw["save_dir"])
        if "log_level" in raw:
            cfg.log_level = None if raw["log_level"] is None else str(raw["log_level"])
        if "exclude_types" in raw or "exclude_attributes" in raw:
            cfg.exclusions = DEFAULT_POLICY.merged(ExclusionPolicy.from_dict(raw))
        return cfg

    @classmethod
    def from_json(cls, path: Path) -> "SaveGraphConfig":
        """Load configuration from JSON file. Missing fields fallback to defaults."""
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
        if not isinstance(raw, dict):
            raise ValueError(f"Config file {path} must contain a JSON object")
        return cls.from_dict(raw)

    @classmethod
    def load(cls) -> "SaveGraphConfig":
        """Load from GRAPHSAVE_CONFIG if set, otherwise return defaults."""
        location = os.getenv(ENV_CONFIG_PATH)
        if not location:
            return cls()
        path = Path(location)
        try:
            cfg = cls.from_json(path)
        except (OSError, ValueError) as e:
            logger.warning("Failed to load save config from %s: %s", path, e)
            return cls()
        logger.info("Loaded save config from %s", path)
        return cfg

    def to_json(self, path: Path) -> None:
        """Persist configuration to a JSON file (exclusions beyond the defaults only)."""
        extra = self.exclusions.to_dict()
        defaults = DEFAULT_POLICY.to_dict()
        data: Dict[str, Any] = {
            "compress": self.compress,
            "indent": self.indent,
            "save_dir": self.save_dir,
            "log_level": self.log_level,
            "exclude_types": [t for t in extra["exclude_types"] if t not in defaults["exclude_types"]],
            "exclude_attributes": extra["exclude_attributes"],
        }
        with path.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, sort_keys=True)
