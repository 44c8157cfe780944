import json
import logging
import subprocess
from pathlib import Path

from reframe.core.config.settings import settings
from reframe.core.common.errors import ProbeError, SourceMissingError
from ..domain.interfaces import IMediaProbe
from ..domain.models import VideoInfo

logger = logging.getLogger(__name__)


class FFprobeMediaProbe(IMediaProbe):
    """
    Concrete implementation of IMediaProbe using ffprobe's JSON output.
    """

    def __init__(self, binary: str = settings.FFPROBE_BINARY):
        self.binary = binary

    def probe(self, path: Path) -> VideoInfo:
        path = Path(path)
        if not path.is_file():
            raise SourceMissingError(f"Media file not found: {path}")

        cmd = [
            self.binary,
            "-v", "error",
            "-select_streams", "v:0",
            "-show_entries", "stream=width,height:format=duration",
            "-of", "json",
            str(path),
        ]

        try:
            result = subprocess.run(cmd, check=True, capture_output=True, text=True)
        except subprocess.CalledProcessError as e:
            error_message = e.stderr if e.stderr else "Unknown ffprobe error"
            logger.error(f"ffprobe failed for {path}. STDERR: {error_message}")
            raise ProbeError(f"Could not probe {path}: {error_message}") from e
        except OSError as e:
            raise ProbeError(f"Could not run {self.binary}: {e}") from e

        return self.parse(result.stdout, path)

    @staticmethod
    def parse(output: str, path: Path) -> VideoInfo:
        try:
            data = json.loads(output)
            duration = float(data["format"]["duration"])
        except (ValueError, KeyError, TypeError) as e:
            raise ProbeError(f"No duration reported for {path}") from e

        streams = data.get("streams") or [{}]
        stream = streams[0]
        return VideoInfo(
            duration_seconds=duration,
            width=stream.get("width"),
            height=stream.get("height"),
        )
