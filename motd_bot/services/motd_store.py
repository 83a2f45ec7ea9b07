"""
motd_bot/services/motd_store.py
Current message of the day, shared by the web page and the Discord command.

Readers get one immutable snapshot, so message and timestamp always belong to
the same update. Writers serialize on a lock that also covers the file write.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
import time
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MOTDSnapshot:
    message: str
    last_updated: int


class MOTDStore:
    def __init__(self, path: str | Path, default_message: str):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._snapshot = self._load(default_message)

    def _load(self, default_message: str) -> MOTDSnapshot:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info(f"No saved MOTD at {self.path}, using default")
            return MOTDSnapshot(default_message, int(time.time()))
        except OSError as e:
            logger.error(f"Could not read saved MOTD from {self.path}: {e}")
            return MOTDSnapshot(default_message, int(time.time()))

        try:
            data = json.loads(raw)
            if isinstance(data, dict) and isinstance(data.get("message"), str):
                return MOTDSnapshot(data["message"], int(data.get("last_updated") or time.time()))
        except ValueError:
            pass

        # Plain-text file holding only the message
        try:
            mtime = int(self.path.stat().st_mtime)
        except OSError:
            mtime = int(time.time())
        return MOTDSnapshot(raw, mtime)

    def get(self) -> tuple[str, int]:
        snap = self._snapshot
        return snap.message, snap.last_updated

    @property
    def message(self) -> str:
        return self._snapshot.message

    @property
    def last_updated(self) -> int:
        return self._snapshot.last_updated

    def set(self, message: str) -> bool:
        """
        Replace the message and persist it. On a write failure the previous
        snapshot is restored and False is returned; the file on disk keeps the
        previous value.
        """
        with self._lock:
            previous = self._snapshot
            snap = MOTDSnapshot(message, max(int(time.time()), previous.last_updated))
            self._snapshot = snap
            try:
                self._persist(snap)
            except OSError as e:
                self._snapshot = previous
                logger.error(f"Failed to save MOTD to {self.path}: {e}")
                return False
        logger.info(f"MOTD updated ({len(message)} chars)")
        return True

    def _persist(self, snap: MOTDSnapshot) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps({"message": snap.message, "last_updated": snap.last_updated})
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp, self.path)
        except OSError:
            try:
                os.unlink(tmp)
            except OSError:
                pass
            raise
