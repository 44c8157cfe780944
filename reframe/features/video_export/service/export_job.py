import logging
import math
import threading
import uuid
from contextlib import closing
from pathlib import Path
from typing import Callable, Iterator, List, Optional

from reframe.core.config.settings import settings
from reframe.core.common.enums import ExportState
from reframe.core.common.errors import (
    ExportBusyError,
    ReframeError,
    MetadataWriteError,
    SourceMissingError,
    TransformError,
    ValidationError,
    VerificationError,
)
from reframe.core.jobs.domain.interfaces import IJobJournal
from reframe.features.edit_parameters.domain.models import (
    Duration,
    EditParameters,
    ValidParameters,
    to_timedelta,
)
from reframe.features.edit_parameters.service.validation import validate
from reframe.features.library.domain.interfaces import IOutputNamer
from reframe.features.provenance.domain.interfaces import IProvenanceStore
from reframe.features.provenance.domain.models import ProvenanceRecord
from ..domain.interfaces import IFrameTransform
from ..domain.models import ExportEvent, ExportOutcome
from .registry import ActiveExports

logger = logging.getLogger(__name__)


class ExportJob:
    """
    One export of one EditParameters value, from validation to a verified
    output with its provenance record.

    IDLE -> VALIDATING -> EXPORTING -> WRITING_METADATA -> VERIFYING
    -> SUCCEEDED | FAILED, or CANCELLED at any checkpoint before the
    record is written.

    run() returns a lazy, finite stream of ExportEvent whose last item
    carries the ExportOutcome. A job runs once. Failed and cancelled runs
    leave their partial output on disk for inspection.

    Pass claimed=True when the caller has already acquired the source in
    `registry`; the job then owns and releases that reservation.
    """

    def __init__(self,
                 edits: EditParameters,
                 source_duration: Duration,
                 transform: IFrameTransform,
                 provenance: IProvenanceStore,
                 namer: IOutputNamer,
                 registry: ActiveExports,
                 journal: Optional[IJobJournal] = None,
                 chunk_size: int = settings.COPY_CHUNK_SIZE,
                 claimed: bool = False):
        self.id = uuid.uuid4()
        self.edits = edits
        self.source_duration = to_timedelta(source_duration)
        self.transform = transform
        self.provenance = provenance
        self.namer = namer
        self.registry = registry
        self.journal = journal
        self.chunk_size = chunk_size

        self.state = ExportState.IDLE
        self.progress = 0.0
        self.output_path: Optional[Path] = None
        self.outcome: Optional[ExportOutcome] = None

        self._trivial = False
        self._warnings: List[BaseException] = []
        self._claimed = claimed
        self._started = False
        self._cancel = threading.Event()

        if self.journal:
            self.journal.open(self.id, str(edits.source_path), edits.to_dict())

    @property
    def source_path(self) -> Path:
        return self.edits.source_path

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def claim(self) -> None:
        """
        Reserves the source for this job.

        Raises:
            ExportBusyError: If another export for the same source is in flight.
        """
        if not self._claimed:
            self.registry.acquire(self.source_path)
            self._claimed = True

    def cancel(self) -> None:
        """Asks the job to stop at its next checkpoint. Safe from any thread."""
        self._cancel.set()
        if not self._started:
            self._release()

    def run(self) -> Iterator[ExportEvent]:
        if self._started:
            raise RuntimeError(f"Export job {self.id} has already run")
        self._started = True
        return self._events()

    def execute(self, on_event: Optional[Callable[[ExportEvent], None]] = None) -> ExportOutcome:
        """Drives run() to completion and returns the outcome."""
        for event in self.run():
            if on_event:
                on_event(event)
        return self.outcome

    # --- Pipeline ---

    def _events(self) -> Iterator[ExportEvent]:
        try:
            try:
                self.claim()
            except ExportBusyError as e:
                yield self._fail(e)
                return
            try:
                yield from self._pipeline()
            except Exception as e:
                # Journal or filesystem trouble outside the guarded stages
                error = ReframeError(f"Export {self.id} failed in {self.state.value}: {e}")
                error.__cause__ = e
                yield self._fail(error)
        except GeneratorExit:
            # Consumer walked away: treat as cancellation, but never yield here
            if self.outcome is None:
                self._cancel.set()
                self._finish(ExportState.CANCELLED)
            raise
        finally:
            self._release()

    def _pipeline(self) -> Iterator[ExportEvent]:
        yield self._enter(ExportState.VALIDATING)
        if self.cancelled:
            yield self._finish(ExportState.CANCELLED)
            return

        if not self.source_path.is_file():
            yield self._fail(SourceMissingError(f"Source file no longer exists: {self.source_path}"))
            return

        try:
            params = validate(self.edits, self.source_duration)
        except ValidationError as e:
            yield self._fail(e)
            return
        self._trivial = params.is_trivial

        # 1. Render (or copy) into a fresh path
        yield self._enter(ExportState.EXPORTING)
        try:
            with closing(self._render(params)) as stream:
                for fraction in stream:
                    if self.cancelled:
                        break
                    yield self._advance(fraction)
        except TransformError as e:
            yield self._fail(e)
            return
        except Exception as e:
            error = TransformError(f"Export of {self.source_path} failed: {e}")
            error.__cause__ = e
            yield self._fail(error)
            return

        if self.cancelled:
            yield self._finish(ExportState.CANCELLED)
            return
        yield self._advance(1.0)

        # 2. Lineage
        yield self._enter(ExportState.WRITING_METADATA)
        if self.cancelled:
            yield self._finish(ExportState.CANCELLED)
            return
        record = self._write_record()

        # 3. Post-checks
        yield self._enter(ExportState.VERIFYING)
        try:
            size = self.output_path.stat().st_size
        except FileNotFoundError:
            size = None
        except OSError as e:
            error = VerificationError(f"Output {self.output_path} cannot be inspected: {e}")
            error.__cause__ = e
            yield self._fail(error)
            return

        if not size:
            yield self._fail(VerificationError(
                f"Output {self.output_path} is {'empty' if size == 0 else 'missing'}"
            ))
            return

        yield self._finish(ExportState.SUCCEEDED, record=record, size_bytes=size)

    def _render(self, params: ValidParameters) -> Iterator[float]:
        if params.is_trivial:
            logger.info(f"Export {self.id}: no edits detected, copying original file")
            self.output_path = self.namer.next_path(self._copy_suffix())
            yield from self._copy(self.source_path, self.output_path)
        else:
            logger.info(f"Export {self.id}: applying edits to {self.source_path}")
            self.output_path = self.namer.next_path(settings.OUTPUT_EXTENSION)
            yield from self.transform.transform(self.source_path, params, self.output_path)

    def _copy(self, source: Path, destination: Path) -> Iterator[float]:
        """Byte-for-byte copy in chunks, refusing to overwrite an existing file."""
        total = source.stat().st_size
        copied = 0
        with open(source, "rb") as src, open(destination, "xb") as dst:
            for block in iter(lambda: src.read(self.chunk_size), b""):
                dst.write(block)
                copied += len(block)
                yield copied / total

    def _copy_suffix(self) -> str:
        suffix = self.source_path.suffix.lower()
        return suffix if suffix in settings.VIDEO_EXTENSIONS else settings.OUTPUT_EXTENSION

    def _write_record(self) -> Optional[ProvenanceRecord]:
        record = ProvenanceRecord.create(self.edits)
        try:
            self.provenance.write(self.output_path, record)
        except MetadataWriteError as e:
            # The video itself is fine; it just looks like an original now
            logger.warning(f"Export {self.id}: provenance not saved for {self.output_path}: {e}")
            self._warnings.append(e)
            return None
        return record

    # --- State bookkeeping ---

    def _enter(self, state: ExportState) -> ExportEvent:
        self.state = state
        logger.info(f"Export {self.id} [{self.source_path.name}] -> {state.value}")
        if self.journal:
            self.journal.update(self.id, state, self.progress,
                                output_path=str(self.output_path) if self.output_path else None)
        return ExportEvent(state=state, progress=self.progress)

    def _advance(self, fraction: float) -> ExportEvent:
        # Progress never goes backwards and never leaves [0, 1]
        if math.isfinite(fraction):
            self.progress = max(self.progress, min(1.0, max(0.0, fraction)))
        return ExportEvent(state=self.state, progress=self.progress)

    def _fail(self, error: BaseException) -> ExportEvent:
        logger.error(f"Export {self.id} Failed in {self.state.value}: {error}")
        return self._finish(ExportState.FAILED, error=error)

    def _finish(self, status: ExportState, error: Optional[BaseException] = None,
                record: Optional[ProvenanceRecord] = None, size_bytes: Optional[int] = None) -> ExportEvent:
        self.state = status
        self.outcome = ExportOutcome(
            status=status,
            source_path=self.source_path,
            output_path=self.output_path,
            error=error,
            warnings=tuple(self._warnings),
            record=record,
            trivial=self._trivial,
        )

        if status == ExportState.SUCCEEDED:
            logger.info(f"Export {self.id} Completed: {self.output_path} ({size_bytes} bytes)")
        elif status == ExportState.CANCELLED:
            logger.info(f"Export {self.id} Cancelled; partial output kept: {self.output_path}")

        if self.journal:
            meta = {"trivial": self._trivial}
            if size_bytes is not None:
                meta["size_bytes"] = size_bytes
            try:
                self.journal.close(
                    self.id, status, self.progress,
                    output_path=str(self.output_path) if self.output_path else None,
                    error_message=str(error) if error else None,
                    warning_message="; ".join(str(w) for w in self._warnings) or None,
                    result_meta=meta,
                )
            except Exception as e:
                # The outcome stands; only its history row is stale
                logger.error(f"Export {self.id}: journal not closed as {status.value}: {e}")
        return ExportEvent(state=status, progress=self.progress, outcome=self.outcome)

    def _release(self) -> None:
        if self._claimed:
            self.registry.release(self.source_path)
            self._claimed = False
