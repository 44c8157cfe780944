from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from reframe.features.edit_parameters.domain.models import EditParameters

SCHEMA_VERSION = "1.0"


@dataclass(frozen=True)
class ProvenanceRecord:
    """
    Lineage of one exported file: where it came from, which edits produced
    it and when. Written once, next to its output, and never modified.
    """
    original_path: str
    processed_at: datetime
    edits: EditParameters
    version: str = SCHEMA_VERSION

    @classmethod
    def create(cls, edits: EditParameters, now: Optional[datetime] = None) -> "ProvenanceRecord":
        # Absolute, so the chain stays walkable from any working directory
        return cls(
            original_path=str(Path(edits.source_path).resolve()),
            processed_at=now or datetime.now(timezone.utc),
            edits=edits,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "originalPath": self.original_path,
            "processedAt": self.processed_at.isoformat(),
            "edits": self.edits.to_dict(),
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProvenanceRecord":
        # Unknown keys are ignored so newer writers stay readable
        return cls(
            original_path=str(data["originalPath"]),
            processed_at=datetime.fromisoformat(data["processedAt"]),
            edits=EditParameters.from_dict(data["edits"]),
            version=str(data.get("version", SCHEMA_VERSION)),
        )
