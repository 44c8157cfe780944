import threading
from pathlib import Path
from typing import Set

from reframe.core.common.errors import ExportBusyError


class ActiveExports:
    """
    Tracks which sources have an export in flight.
    At most one export per source; a second request is rejected, never queued.
    """

    def __init__(self):
        self._sources: Set[str] = set()
        self._lock = threading.Lock()

    @staticmethod
    def _key(source_path: Path) -> str:
        return str(Path(source_path).resolve())

    def acquire(self, source_path: Path) -> None:
        key = self._key(source_path)
        with self._lock:
            if key in self._sources:
                raise ExportBusyError(f"An export for {source_path} is already in progress")
            self._sources.add(key)

    def release(self, source_path: Path) -> None:
        with self._lock:
            self._sources.discard(self._key(source_path))

    def is_active(self, source_path: Path) -> bool:
        with self._lock:
            return self._key(source_path) in self._sources
