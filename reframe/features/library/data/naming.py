import threading
import time
from pathlib import Path
from typing import Callable, Optional

from reframe.core.config.settings import settings
from ..domain.interfaces import IOutputNamer


def epoch_millis() -> int:
    return time.time_ns() // 1_000_000


class TimestampOutputNamer(IOutputNamer):
    """
    Names outputs `<prefix><epoch-ms><suffix>` inside the storage root.

    Stamps are strictly increasing within a process, even when the clock
    stalls or steps back, so concurrent exports never collide and file names
    sort by recency.
    """

    def __init__(self, root: Path,
                 prefix: str = settings.OUTPUT_PREFIX,
                 sidecar_suffix: str = settings.SIDECAR_SUFFIX,
                 clock: Optional[Callable[[], int]] = None):
        self.root = Path(root)
        self.prefix = prefix
        self.sidecar_suffix = sidecar_suffix
        self.clock = clock or epoch_millis
        self._last_stamp = 0
        self._lock = threading.Lock()

    def next_path(self, suffix: str = settings.OUTPUT_EXTENSION) -> Path:
        with self._lock:
            stamp = max(self.clock(), self._last_stamp + 1)
            candidate = self._path_for(stamp, suffix)
            # Another process may have written into the root already
            while candidate.exists() or self._sidecar_for(candidate).exists():
                stamp += 1
                candidate = self._path_for(stamp, suffix)
            self._last_stamp = stamp
            return candidate

    def _path_for(self, stamp: int, suffix: str) -> Path:
        return self.root / f"{self.prefix}{stamp}{suffix}"

    def _sidecar_for(self, path: Path) -> Path:
        return path.with_name(path.name + self.sidecar_suffix)
