from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple
from urllib.parse import urlparse

from .errors import ValidationError


COPY = "copy"
REENCODE = "reencode"
MODES = (COPY, REENCODE)

MIN_CLIPS = 2
MAX_CLIPS = 10


@dataclass(frozen=True)
class MergeRequest:
    sources: Tuple[str, ...]

    @classmethod
    def from_payload(cls, payload: Any, min_clips: int = MIN_CLIPS, max_clips: int = MAX_CLIPS) -> "MergeRequest":
        """
        Validate an inbound ``{"clips": [...]}`` body. Raises ValidationError
        before anything touches the filesystem.
        """
        if not isinstance(payload, dict):
            raise ValidationError("request body must be a JSON object")
        clips = payload.get("clips")
        if not isinstance(clips, list):
            raise ValidationError("clips must be an array")
        if len(clips) < min_clips or len(clips) > max_clips:
            raise ValidationError(f"clips must contain {min_clips} to {max_clips} video URLs")
        for i, clip in enumerate(clips):
            if not isinstance(clip, str) or not clip.strip():
                raise ValidationError(f"clips[{i}] must be a non-empty string")
            parsed = urlparse(clip.strip())
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise ValidationError(f"clips[{i}] must be an absolute http(s) URL")
        return cls(sources=tuple(c.strip() for c in clips))

    def __len__(self) -> int:
        return len(self.sources)


@dataclass(frozen=True)
class Session:
    id: str
    clip_dir: str
    output_dir: str

    @property
    def dirs(self) -> Tuple[str, str]:
        return (self.clip_dir, self.output_dir)


@dataclass
class ClipArtifact:
    index: int
    source: str
    path: str
    status: str = "pending"  # pending | downloaded | failed
    size_bytes: int = 0


@dataclass
class ConcatManifest:
    path: str
    entries: List[str] = field(default_factory=list)


@dataclass
class MergedArtifact:
    path: str
    size_bytes: int
    mode: str = REENCODE
    archived_path: Optional[str] = None
