from datetime import timedelta
from pathlib import Path
from typing import Callable, List, Optional

from reframe.core.config.settings import settings
from reframe.core.database.connection import init_db
from reframe.core.jobs.data.repository import SqlJobJournal
from reframe.features.edit_parameters.domain.models import EditParameters, NormalizedRect
from reframe.features.library.domain.models import LibraryEntry, StorageInfo
from reframe.features.provenance.domain.models import ProvenanceRecord
from ..data.ffmpeg_adapter import FFmpegFrameTransform
from ..data.ffprobe_adapter import FFprobeMediaProbe
from ..domain.models import ExportEvent, ExportOutcome
from .manager import ExportManager

_manager: Optional[ExportManager] = None


def get_manager() -> ExportManager:
    """
    Default wiring: settings.STORAGE_ROOT, FFmpeg/ffprobe and the SQL journal.
    Built on first use.
    """
    global _manager
    if _manager is None:
        settings.ensure_dirs()
        init_db()
        probe = FFprobeMediaProbe()
        _manager = ExportManager(
            storage_root=settings.STORAGE_ROOT,
            transform=FFmpegFrameTransform(probe=probe),
            probe=probe,
            journal=SqlJobJournal(),
        )
    return _manager


def save_edited_video(source_path: str,
                      start: float,
                      end: float,
                      brightness: float = 0.0,
                      contrast: float = 1.0,
                      rotation: int = 0,
                      crop: Optional[NormalizedRect] = None,
                      on_event: Optional[Callable[[ExportEvent], None]] = None) -> ExportOutcome:
    """
    Public Service API: export an edited copy of a video into the library.

    Args:
        source_path: Absolute path to the source video.
        start: Trim start in seconds.
        end: Trim end in seconds.
        brightness: -50..50, 0 leaves the picture unchanged.
        contrast: 0.5..2.0, 1.0 leaves the picture unchanged.
        rotation: Clockwise degrees, a multiple of 90.
        crop: Region to keep, in normalized coordinates.
        on_event: Receives every progress event, including the terminal one.
    """
    edits = EditParameters(
        source_path=Path(source_path),
        trim_start=timedelta(seconds=start),
        trim_end=timedelta(seconds=end),
        brightness=brightness,
        contrast=contrast,
        rotation=rotation,
        crop=crop,
    )
    return get_manager().run(edits, on_event=on_event)


def list_library() -> List[LibraryEntry]:
    return get_manager().library.list()


def delete_video(path: str) -> None:
    get_manager().library.delete(Path(path))


def storage_info() -> StorageInfo:
    return get_manager().library.storage_info()


def get_edit_history(path: str) -> List[ProvenanceRecord]:
    """Lineage of a library file, newest edit first. Empty for originals."""
    return get_manager().provenance.chain_of(Path(path))
