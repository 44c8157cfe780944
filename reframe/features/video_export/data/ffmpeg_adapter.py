import logging
import subprocess
import tempfile
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from reframe.core.config.settings import settings
from reframe.core.common.errors import ProbeError, TransformError
from reframe.features.edit_parameters.domain.models import EditParameters, ValidParameters
from ..domain.interfaces import IFrameTransform, IMediaProbe

logger = logging.getLogger(__name__)

# transpose=1 is 90 degrees clockwise, transpose=2 counter-clockwise
ROTATION_FILTERS = {
    90: "transpose=1",
    180: "hflip,vflip",
    270: "transpose=2",
}


def build_filter_chain(edits: EditParameters, frame_size: Optional[Tuple[int, int]] = None) -> Optional[str]:
    """
    Builds the -vf graph: crop, then color, then rotation.
    Crop comes first because its coordinates refer to the source frame.
    """
    parts: List[str] = []

    if edits.has_crop():
        if frame_size:
            x, y, w, h = edits.crop.to_pixels(*frame_size)
            parts.append(f"crop={w}:{h}:{x}:{y}")
        else:
            crop = edits.crop
            parts.append(
                f"crop=trunc(iw*{crop.width:.6f}/2)*2:trunc(ih*{crop.height:.6f}/2)*2"
                f":trunc(iw*{crop.left:.6f}):trunc(ih*{crop.top:.6f})"
            )

    if edits.has_color_adjustment():
        matrix = edits.color_matrix()
        scale, offset = matrix[0], matrix[4]
        channel = f"val*{scale:g}{offset:+g}"
        parts.append(f"lutrgb=r={channel}:g={channel}:b={channel}")

    rotation = ROTATION_FILTERS.get(edits.rotation)
    if rotation:
        parts.append(rotation)

    if not parts:
        return None

    # libx264 needs 4:2:0 after RGB filters
    parts.append("format=yuv420p")
    return ",".join(parts)


class FFmpegFrameTransform(IFrameTransform):
    """
    Concrete implementation of IFrameTransform using FFmpeg.
    Re-encodes the video stream (frame-accurate trims) and reports progress
    from `-progress pipe:1`.
    """

    def __init__(self, probe: Optional[IMediaProbe] = None, binary: str = settings.FFMPEG_BINARY):
        self.probe = probe
        self.binary = binary

    def build_command(self, source_path: Path, params: ValidParameters, output_path: Path,
                      frame_size: Optional[Tuple[int, int]] = None) -> List[str]:
        # -n: never overwrite; outputs are always fresh paths
        # -ss before -i: fast input seeking
        # -progress pipe:1: machine-readable key=value progress on stdout
        edits = params.edits
        cmd = [
            self.binary,
            "-hide_banner",
            "-nostdin",
            "-n",
            "-ss", f"{edits.trim_start.total_seconds():.3f}",
            "-i", str(source_path),
            "-t", f"{params.trim_duration.total_seconds():.3f}",
        ]

        video_filter = build_filter_chain(edits, frame_size)
        if video_filter:
            cmd += ["-vf", video_filter]

        cmd += [
            "-c:v", "libx264",
            "-c:a", "aac",
            "-progress", "pipe:1",
            "-nostats",
            "-loglevel", "error",
            str(output_path),
        ]
        return cmd

    def transform(self, source_path: Path, params: ValidParameters, output_path: Path) -> Iterator[float]:
        frame_size = self._frame_size(source_path) if params.edits.has_crop() else None
        cmd = self.build_command(source_path, params, output_path, frame_size)
        total = params.trim_duration.total_seconds()

        logger.info(f"Executing FFmpeg Export: {' '.join(cmd)}")

        # stderr goes to a temp file so a chatty ffmpeg can never block on a full pipe
        with tempfile.TemporaryFile() as stderr:
            try:
                process = subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=stderr, text=True)
            except OSError as e:
                raise TransformError(f"Could not run {self.binary}: {e}") from e

            try:
                for line in process.stdout:
                    fraction = self._parse_progress(line, total)
                    if fraction is not None:
                        yield fraction
                return_code = process.wait()
            finally:
                # Reached on normal exit, on errors and when the consumer closes us
                if process.poll() is None:
                    logger.info(f"Stopping FFmpeg for {output_path}")
                    process.kill()
                    process.wait()
                process.stdout.close()

            if return_code != 0:
                stderr.seek(0)
                error_message = stderr.read().decode("utf-8", errors="replace").strip() or "Unknown FFmpeg error"
                logger.error(f"FFmpeg Export Failed. STDERR: {error_message}")
                raise TransformError(f"Video export failed: {error_message}")

        yield 1.0

    def _frame_size(self, source_path: Path) -> Optional[Tuple[int, int]]:
        if self.probe is None:
            return None
        try:
            return self.probe.probe(source_path).frame_size
        except ProbeError as e:
            logger.warning(f"Falling back to relative crop for {source_path}: {e}")
            return None

    @staticmethod
    def _parse_progress(line: str, total_seconds: float) -> Optional[float]:
        key, _, value = line.strip().partition("=")
        if key == "progress" and value == "end":
            return 1.0
        # Despite its name, out_time_ms is in microseconds too
        if key not in ("out_time_us", "out_time_ms") or total_seconds <= 0:
            return None
        try:
            elapsed = int(value) / 1_000_000
        except ValueError:
            # "N/A" before the first frame
            return None
        return min(1.0, max(0.0, elapsed / total_seconds))
