from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from reframe.core.common.enums import ExportState
from reframe.features.provenance.domain.models import ProvenanceRecord


@dataclass(frozen=True)
class VideoInfo:
    duration_seconds: float
    width: Optional[int] = None
    height: Optional[int] = None

    @property
    def frame_size(self) -> Optional[Tuple[int, int]]:
        if self.width and self.height:
            return self.width, self.height
        return None


@dataclass(frozen=True)
class ExportOutcome:
    """
    Terminal status of one export.
    `error` is set for FAILED; `warnings` carries non-fatal problems such as
    a sidecar that could not be written.
    """
    status: ExportState
    source_path: Path
    output_path: Optional[Path] = None
    error: Optional[BaseException] = None
    warnings: Tuple[BaseException, ...] = field(default_factory=tuple)
    record: Optional[ProvenanceRecord] = None
    trivial: bool = False

    @property
    def succeeded(self) -> bool:
        return self.status == ExportState.SUCCEEDED


@dataclass(frozen=True)
class ExportEvent:
    """
    One item of the progress stream. The last event of every run carries the outcome.
    """
    state: ExportState
    progress: float
    outcome: Optional[ExportOutcome] = None

    @property
    def is_terminal(self) -> bool:
        return self.outcome is not None
