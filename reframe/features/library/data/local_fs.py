import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Sequence

from reframe.core.config.settings import settings
from reframe.core.common.errors import MetadataReadError, PathContainmentError
from reframe.features.provenance.domain.interfaces import IProvenanceStore
from ..domain.interfaces import ILibraryIndex
from ..domain.models import LibraryEntry, StorageInfo

logger = logging.getLogger(__name__)


class LocalLibraryIndex(ILibraryIndex):
    """
    Lists and deletes exports in a flat, exclusively owned directory.

    Writers only ever create new files here, so listing needs no locking
    against an in-flight export; it may simply not see the newest file yet.
    """

    def __init__(self, root: Path, provenance: IProvenanceStore,
                 video_extensions: Sequence[str] = settings.VIDEO_EXTENSIONS):
        self.root = Path(root)
        self.provenance = provenance
        self.video_extensions = tuple(ext.lower() for ext in video_extensions)

    def ensure_root(self) -> Path:
        """Creates the storage root on first use."""
        if not self.root.exists():
            self.root.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created storage root: {self.root}")
        return self.root

    def is_video(self, path: Path) -> bool:
        return path.suffix.lower() in self.video_extensions

    def list(self) -> List[LibraryEntry]:
        if not self.root.exists():
            return []

        entries = []
        for path in self.root.iterdir():
            # Sidecars, legacy "_processed" markers and anything else non-video are skipped
            if not path.is_file() or not self.is_video(path):
                continue

            try:
                stat = path.stat()
            except FileNotFoundError:
                # Deleted between iterdir() and stat()
                continue

            entries.append(LibraryEntry(
                path=path,
                size_bytes=stat.st_size,
                modified_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                record=self._read_record(path),
            ))

        entries.sort(key=lambda e: (e.modified_at, e.path.name), reverse=True)
        return entries

    def contains(self, path: Path) -> bool:
        """True only for paths that resolve to a direct child of the root."""
        resolved = Path(path).resolve()
        return resolved.parent == self.root.resolve()

    def delete(self, path: Path) -> None:
        path = Path(path)
        if not self.contains(path):
            logger.error(f"Refusing to delete outside storage root: {path}")
            raise PathContainmentError(f"{path} is outside the storage root {self.root}")
        if not self.is_video(path):
            # Sidecars go with their video, never on their own
            raise PathContainmentError(f"{path} is not a library video")

        if not path.is_file():
            raise FileNotFoundError(f"Video file not found: {path}")

        # Output first: a crash in between leaves an orphan sidecar, which
        # list() ignores and prune_orphans() collects.
        path.unlink()
        self.provenance.delete(path)
        logger.info(f"Video deleted: {path}")

    def clear(self) -> int:
        """Deletes every video in the library. Returns how many were removed."""
        entries = self.list()
        for entry in entries:
            self.delete(entry.path)
        self.prune_orphans()
        return len(entries)

    def prune_orphans(self) -> List[Path]:
        """Removes sidecars whose output no longer exists."""
        if not self.root.exists():
            return []

        removed = []
        for sidecar in self.root.iterdir():
            if not self.provenance.is_sidecar(sidecar):
                continue
            target = self.provenance.output_of(sidecar)
            if not target.exists():
                sidecar.unlink()
                removed.append(sidecar)
                logger.info(f"Removed orphan sidecar: {sidecar}")
        return removed

    def storage_info(self) -> StorageInfo:
        entries = self.list()
        return StorageInfo(count=len(entries), total_bytes=sum(e.size_bytes for e in entries))

    def _read_record(self, path: Path):
        try:
            return self.provenance.read(path)
        except MetadataReadError as e:
            logger.warning(f"Treating {path.name} as original: {e}")
            return None
