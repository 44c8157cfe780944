from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterator

from reframe.features.edit_parameters.domain.models import ValidParameters
from .models import VideoInfo


class IFrameTransform(ABC):
    """
    Contract for the frame transform capability.
    Abstracts away the underlying tool (FFmpeg) from the export pipeline.
    """

    @abstractmethod
    def transform(self, source_path: Path, params: ValidParameters, output_path: Path) -> Iterator[float]:
        """
        Renders the edited video into `output_path`, yielding progress as it goes.

        Progress values are non-decreasing fractions in [0, 1]. Exhausting the
        iterator means the output is fully written; closing it early must
        stop the work and release any open handles.

        Raises:
            TransformError: If the output cannot be produced.
        """
        pass


class IMediaProbe(ABC):
    @abstractmethod
    def probe(self, path: Path) -> VideoInfo:
        """
        Reads duration and frame size of a video file.

        Raises:
            SourceMissingError: If the file does not exist.
            ProbeError: If the file cannot be read as a video.
        """
        pass
