from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from reframe.core.common.enums import ExportState


@dataclass(frozen=True)
class JobRecord:
    """
    Read-only snapshot of one journaled export.
    """
    id: UUID
    source_path: str
    state: ExportState
    progress: float
    output_path: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)
    result_meta: Dict[str, Any] = field(default_factory=dict)
    error_message: Optional[str] = None
    warning_message: Optional[str] = None
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
