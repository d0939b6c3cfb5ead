from __future__ import annotations

import logging
import os
import re
import shutil
import threading
from pathlib import Path
from typing import List, Optional

from platformdirs import user_data_dir

from .errors import SaveNotFoundError, SaveStoreError

logger = logging.getLogger(__name__)

SLOT_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
SAVE_SUFFIX = ".save"


class SaveStore:
    """Named save slots on disk with atomic writes and a one-deep backup.

    Every write goes to ``<slot>.save.tmp`` first, is fsynced and then moved
    into place; the previous contents are kept as ``<slot>.save.bak`` and used
    when the primary file is missing or unreadable.
    """

    def __init__(self, root_dir: Optional[Path] = None, app_name: str = "graphsave") -> None:
        self.root_dir = Path(root_dir) if root_dir else Path(user_data_dir(appname=app_name)) / "saves"
        self.root_dir.mkdir(parents=True, exist_ok=True)
        self.lock = threading.RLock()

    def slot_path(self, slot: str) -> Path:
        if not SLOT_PATTERN.match(slot):
            raise SaveStoreError(f"Invalid slot name {slot!r}; use letters, digits, '_' or '-'")
        return self.root_dir / f"{slot}{SAVE_SUFFIX}"

    def backup_path(self, slot: str) -> Path:
        path = self.slot_path(slot)
        return path.with_suffix(path.suffix + ".bak")

    # Public API

    def write(self, slot: str, data: str) -> Path:
        path = self.slot_path(slot)
        with self.lock:
            try:
                self._atomic_write(path, data)
            except OSError as e:
                raise SaveStoreError(f"Failed to write slot {slot!r}: {e}") from e
        logger.info("Saved slot %s to %s", slot, path)
        return path

    def read(self, slot: str) -> str:
        """Read a slot, falling back to its backup when the primary is unreadable."""
        path = self.slot_path(slot)
        bak = self.backup_path(slot)
        with self.lock:
            try:
                return path.read_text(encoding="utf-8")
            except FileNotFoundError:
                if not bak.exists():
                    raise SaveNotFoundError(slot) from None
                primary_error: Exception = FileNotFoundError(str(path))
            except (OSError, UnicodeDecodeError) as e:
                primary_error = e
            logger.warning("Primary save for slot %s unreadable (%s); trying backup", slot, primary_error)
            try:
                return bak.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                raise SaveStoreError(f"Unable to read slot {slot!r}: {primary_error}") from e

    def read_backup(self, slot: str) -> str:
        bak = self.backup_path(slot)
        try:
            return bak.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise SaveNotFoundError(slot) from None

    def exists(self, slot: str) -> bool:
        return self.slot_path(slot).exists() or self.backup_path(slot).exists()

    def delete(self, slot: str) -> None:
        with self.lock:
            for path in (self.slot_path(slot), self.backup_path(slot)):
                if path.exists():
                    path.unlink()
        logger.info("Deleted slot %s", slot)

    def slots(self) -> List[str]:
        return sorted(p.name[: -len(SAVE_SUFFIX)] for p in self.root_dir.glob(f"*{SAVE_SUFFIX}"))

    # Internal utilities

    def _atomic_write(self, path: Path, text: str) -> None:
        """Write text to path atomically, keeping the previous file as path.bak.

        Strategy:
        - Write to path.tmp
        - Flush and fsync
        - Move existing path to path.bak (replace if exists)
        - Rename path.tmp to path
        """
        tmp = path.with_suffix(path.suffix + ".tmp")
        bak = path.with_suffix(path.suffix + ".bak")
        with tmp.open("w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        if path.exists():
            shutil.copy2(str(path), str(bak))
        os.replace(tmp, path)
