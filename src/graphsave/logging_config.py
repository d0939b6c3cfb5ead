from __future__ import annotations

import logging
import os
from typing import Optional

from .config import SaveGraphConfig

ENV_LOG_LEVEL = "GRAPHSAVE_LOG_LEVEL"
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def resolve_level(default_level: int = logging.INFO, config: Optional[SaveGraphConfig] = None) -> int:
    """Pick the log level: GRAPHSAVE_LOG_LEVEL, then ``config.log_level``, then the default.

    Unknown level names are ignored.
    """
    for name in (os.getenv(ENV_LOG_LEVEL), config.log_level if config is not None else None):
        if not name:
            continue
        level = logging.getLevelName(name.upper())
        if isinstance(level, int):
            return level
    return default_level


def configure_logging(default_level: int = logging.INFO, config: Optional[SaveGraphConfig] = None) -> None:
    """Configure the root logger for applications embedding graphsave."""
    logging.basicConfig(level=resolve_level(default_level, config), format=LOG_FORMAT)
