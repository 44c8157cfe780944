import logging
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Optional, Tuple

from reframe.core.config.settings import settings
from reframe.core.jobs.domain.interfaces import IJobJournal
from reframe.features.edit_parameters.domain.models import Duration, EditParameters
from reframe.features.library.data.local_fs import LocalLibraryIndex
from reframe.features.library.data.naming import TimestampOutputNamer
from reframe.features.provenance.data.sidecar_store import SidecarProvenanceStore
from reframe.features.provenance.domain.interfaces import IProvenanceStore
from ..domain.interfaces import IFrameTransform, IMediaProbe
from ..domain.models import ExportEvent, ExportOutcome
from .export_job import ExportJob
from .registry import ActiveExports

logger = logging.getLogger(__name__)


class ExportManager:
    """
    Creates export jobs against one storage root and runs them in the background.
    It doesn't know *how* frames are transformed; the injected transform does.
    """

    def __init__(self,
                 storage_root: Path,
                 transform: IFrameTransform,
                 probe: Optional[IMediaProbe] = None,
                 provenance: Optional[IProvenanceStore] = None,
                 journal: Optional[IJobJournal] = None,
                 max_workers: int = settings.EXPORT_WORKERS):
        self.storage_root = Path(storage_root)
        self.transform = transform
        self.probe = probe
        self.provenance = provenance or SidecarProvenanceStore()
        self.library = LocalLibraryIndex(self.storage_root, self.provenance)
        self.namer = TimestampOutputNamer(self.storage_root)
        self.journal = journal
        self.registry = ActiveExports()
        self.executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="reframe-export")

    def is_busy(self, source_path: Path) -> bool:
        return self.registry.is_active(source_path)

    def submit(self, edits: EditParameters, source_duration: Optional[Duration] = None) -> ExportJob:
        """
        Creates a job and reserves its source.

        Raises:
            ExportBusyError: Synchronously, if the source already has an export in flight.
            SourceMissingError: If the duration has to be probed and the source is gone.
        """
        # Reserve first: a rejected request never probes or journals anything
        self.registry.acquire(edits.source_path)
        try:
            if source_duration is None:
                if self.probe is None:
                    raise ValueError("source_duration is required when no media probe is configured")
                source_duration = self.probe.probe(edits.source_path).duration_seconds

            self.library.ensure_root()
            job = ExportJob(
                edits=edits,
                source_duration=source_duration,
                transform=self.transform,
                provenance=self.provenance,
                namer=self.namer,
                registry=self.registry,
                journal=self.journal,
                claimed=True,
            )
        except BaseException:
            self.registry.release(edits.source_path)
            raise
        logger.info(f"Export Submitted: {job.id} [{edits.source_path}]")
        return job

    def start(self, edits: EditParameters, source_duration: Optional[Duration] = None,
              on_event: Optional[Callable[[ExportEvent], None]] = None) -> Tuple[ExportJob, "Future[ExportOutcome]"]:
        """Submits a job and executes it on the worker pool."""
        job = self.submit(edits, source_duration)
        future = self.executor.submit(job.execute, on_event)
        # A future cancelled before it ran never reaches run(): free the source
        future.add_done_callback(lambda f: job.cancel() if f.cancelled() else None)
        return job, future

    def run(self, edits: EditParameters, source_duration: Optional[Duration] = None,
            on_event: Optional[Callable[[ExportEvent], None]] = None) -> ExportOutcome:
        """Submits a job and executes it on the calling thread."""
        return self.submit(edits, source_duration).execute(on_event)

    def shutdown(self, wait: bool = True) -> None:
        self.executor.shutdown(wait=wait, cancel_futures=True)
