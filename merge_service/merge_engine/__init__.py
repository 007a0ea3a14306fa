"""
Merge engine: per-request sessions that download clips, concatenate them
with ffmpeg and stream the result back. Each request gets its own
workspace, removed on every exit path.
"""

from .errors import (
    FetchError,
    ManifestError,
    MergeError,
    OutputMissingError,
    StreamError,
    TranscodeError,
    ValidationError,
    WorkspaceError,
)
from .pipeline import MergePipeline
from .schemas import COPY, REENCODE, MergeRequest
from .workspace import WorkspaceManager

__all__ = [
    "COPY",
    "REENCODE",
    "FetchError",
    "ManifestError",
    "MergeError",
    "MergePipeline",
    "MergeRequest",
    "OutputMissingError",
    "StreamError",
    "TranscodeError",
    "ValidationError",
    "WorkspaceError",
    "WorkspaceManager",
]
