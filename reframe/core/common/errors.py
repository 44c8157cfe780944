# File: reframe/core/common/errors.py


class ReframeError(Exception):
    """Base class for every error raised by reframe."""


class ValidationError(ReframeError, ValueError):
    """
    An edit parameter violates its domain.
    Recoverable: the caller fixes the named field and resubmits.
    """

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}")


class SourceMissingError(ReframeError, FileNotFoundError):
    """The source file vanished between pick and export."""


class TransformError(ReframeError, RuntimeError):
    """The frame transform (or the plain copy) failed to produce the output."""


class VerificationError(ReframeError, RuntimeError):
    """The output was written but failed its post-checks."""


class MetadataWriteError(ReframeError, OSError):
    """
    The provenance sidecar could not be written.
    The output video is still usable but now looks like an original.
    """


class MetadataReadError(ReframeError, ValueError):
    """A sidecar exists but cannot be decoded into a provenance record."""


class LineageCycleError(ReframeError, RuntimeError):
    """Following provenance links revisited a file or exceeded the hop bound."""


class PathContainmentError(ReframeError, PermissionError):
    """Attempt to delete something that is not a video directly inside the storage root."""


class ExportBusyError(ReframeError, RuntimeError):
    """Another export for the same source is already in flight."""


class ProbeError(ReframeError, RuntimeError):
    """Media metadata could not be read from a file."""
