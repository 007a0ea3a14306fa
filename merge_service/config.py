import os
from dataclasses import dataclass
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from .merge_engine.schemas import MAX_CLIPS, MIN_CLIPS, MODES, REENCODE


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("true", "1", "yes")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


@dataclass
class MergeConfig:
    """Everything a merge session needs, passed explicitly at construction."""

    workspace_root: str = "tmp"
    archive_dir: str = "merged_videos"
    archive: bool = False
    mode: str = REENCODE
    ffmpeg_bin: Optional[str] = None
    download_timeout: float = 60.0
    transcode_timeout: Optional[float] = 1800.0
    max_clip_bytes: int = 0
    chunk_size: int = 64 * 1024
    min_clips: int = MIN_CLIPS
    max_clips: int = MAX_CLIPS

    def __post_init__(self) -> None:
        if self.mode not in MODES:
            raise ValueError(f"mode must be one of {MODES}, got {self.mode!r}")
        if self.min_clips < 1 or self.min_clips > self.max_clips:
            raise ValueError(f"invalid clip bounds [{self.min_clips}, {self.max_clips}]")
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if self.max_clip_bytes < 0:
            raise ValueError("max_clip_bytes must not be negative")

    @classmethod
    def from_env(cls) -> "MergeConfig":
        # Load .env if present
        load_dotenv(find_dotenv(usecwd=True))
        transcode_timeout = _env_float("MERGE_TRANSCODE_TIMEOUT", 1800.0)
        return cls(
            workspace_root=os.environ.get("MERGE_WORKSPACE_ROOT", "tmp"),
            archive_dir=os.environ.get("MERGE_ARCHIVE_DIR", "merged_videos"),
            archive=_env_bool("MERGE_ARCHIVE", False),
            mode=os.environ.get("MERGE_MODE", REENCODE).strip().lower(),
            ffmpeg_bin=os.environ.get("FFMPEG_BIN") or None,
            download_timeout=_env_float("MERGE_DOWNLOAD_TIMEOUT", 60.0),
            transcode_timeout=transcode_timeout if transcode_timeout > 0 else None,
            max_clip_bytes=_env_int("MERGE_MAX_CLIP_BYTES", 0),
            chunk_size=_env_int("MERGE_CHUNK_SIZE", 64 * 1024),
            min_clips=_env_int("MERGE_MIN_CLIPS", MIN_CLIPS),
            max_clips=_env_int("MERGE_MAX_CLIPS", MAX_CLIPS),
        )
