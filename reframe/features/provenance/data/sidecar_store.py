import json
import logging
from pathlib import Path
from typing import List, Optional

from reframe.core.config.settings import settings
from reframe.core.common.errors import LineageCycleError, MetadataReadError, MetadataWriteError
from ..domain.interfaces import IProvenanceStore
from ..domain.models import ProvenanceRecord

logger = logging.getLogger(__name__)


class SidecarProvenanceStore(IProvenanceStore):
    """
    Stores each record as JSON in `<output filename><suffix>`, next to the output.
    """

    def __init__(self, suffix: str = settings.SIDECAR_SUFFIX, max_hops: int = settings.MAX_LINEAGE_HOPS):
        self.suffix = suffix
        self.max_hops = max_hops

    def sidecar_path(self, output_path: Path) -> Path:
        output_path = Path(output_path)
        return output_path.with_name(output_path.name + self.suffix)

    def is_sidecar(self, path: Path) -> bool:
        return Path(path).name.endswith(self.suffix)

    def output_of(self, sidecar_path: Path) -> Path:
        sidecar_path = Path(sidecar_path)
        return sidecar_path.with_name(sidecar_path.name[: -len(self.suffix)])

    def write(self, output_path: Path, record: ProvenanceRecord) -> Path:
        sidecar = self.sidecar_path(output_path)
        payload = json.dumps(record.to_dict(), indent=2)

        try:
            # "x": outputs are never overwritten in place, neither are their records
            with open(sidecar, "x", encoding="utf-8") as f:
                f.write(payload)
        except FileExistsError as e:
            raise MetadataWriteError(f"Sidecar already exists: {sidecar}") from e
        except OSError as e:
            raise MetadataWriteError(f"Could not write sidecar {sidecar}: {e}") from e

        logger.info(f"Provenance saved: {sidecar}")
        return sidecar

    def read(self, output_path: Path) -> Optional[ProvenanceRecord]:
        sidecar = self.sidecar_path(output_path)
        try:
            content = sidecar.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

        try:
            return ProvenanceRecord.from_dict(json.loads(content))
        except (ValueError, KeyError, TypeError) as e:
            raise MetadataReadError(f"Unreadable sidecar {sidecar}: {e}") from e

    def is_processed(self, path: Path) -> bool:
        return self.sidecar_path(path).exists()

    def original_of(self, path: Path) -> Optional[str]:
        record = self.read(path)
        return record.original_path if record else None

    def chain_of(self, output_path: Path) -> List[ProvenanceRecord]:
        chain: List[ProvenanceRecord] = []
        current = Path(output_path)
        visited = {self._key(current)}

        while True:
            record = self.read(current)
            if record is None:
                return chain
            chain.append(record)

            if len(chain) > self.max_hops:
                raise LineageCycleError(
                    f"Lineage of {output_path} exceeds {self.max_hops} hops"
                )

            current = Path(record.original_path)
            key = self._key(current)
            if key in visited:
                raise LineageCycleError(
                    f"Lineage of {output_path} loops back to {current} after {len(chain)} hops"
                )
            visited.add(key)

    def delete(self, output_path: Path) -> bool:
        sidecar = self.sidecar_path(output_path)
        try:
            sidecar.unlink()
        except FileNotFoundError:
            return False
        logger.info(f"Provenance removed: {sidecar}")
        return True

    @staticmethod
    def _key(path: Path) -> str:
        return str(path.resolve())
