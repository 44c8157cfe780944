# File: reframe/core/config/settings.py

import os
import shutil
from pathlib import Path


class Settings:
    # --- Paths ---
    # reframe/core/config/settings.py -> reframe/core/config -> reframe/core -> reframe -> ROOT
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent.parent
    DATA_DIR: Path = Path(os.getenv("REFRAME_DATA_DIR", str(BASE_DIR / "data")))

    # The library owns this directory exclusively. Outputs and sidecars live
    # directly inside it, never in subdirectories.
    STORAGE_ROOT: Path = Path(os.getenv("REFRAME_STORAGE_ROOT", str(DATA_DIR / "EditedVideos")))

    # --- Database (export journal) ---
    @property
    def DATABASE_URL(self) -> str:
        url = os.getenv("REFRAME_DATABASE_URL")
        if url:
            return url
        return f"sqlite:///{self.DATA_DIR / 'reframe.db'}"

    # --- External Tools ---
    # Auto-detect ffmpeg/ffprobe or use env var
    FFMPEG_BINARY: str = os.getenv("FFMPEG_BINARY_PATH", shutil.which("ffmpeg") or "ffmpeg")
    FFPROBE_BINARY: str = os.getenv("FFPROBE_BINARY_PATH", shutil.which("ffprobe") or "ffprobe")

    # --- Library Layout ---
    OUTPUT_PREFIX: str = "edited_video_"
    OUTPUT_EXTENSION: str = ".mp4"
    SIDECAR_SUFFIX: str = ".meta"
    VIDEO_EXTENSIONS = (".mp4", ".mov", ".avi", ".mkv", ".3gp", ".webm", ".flv")

    # --- Export Pipeline ---
    MAX_LINEAGE_HOPS: int = int(os.getenv("REFRAME_MAX_LINEAGE_HOPS", "64"))
    COPY_CHUNK_SIZE: int = 65536
    EXPORT_WORKERS: int = int(os.getenv("REFRAME_EXPORT_WORKERS", "2"))

    def ensure_dirs(self):
        """Creates necessary data directories if they don't exist."""
        self.DATA_DIR.mkdir(parents=True, exist_ok=True)
        self.STORAGE_ROOT.mkdir(parents=True, exist_ok=True)


settings = Settings()
