from __future__ import annotations

import logging
import os
import shutil
from typing import TYPE_CHECKING, Callable, Iterator, List, Optional

from .errors import MergeError, StreamError
from .manifest import build_manifest
from .media import fetch_clips
from .render import TranscodeRunner
from .schemas import ClipArtifact, ConcatManifest, MergedArtifact, MergeRequest, Session
from .streamer import iter_file
from .utils import ensure_dir
from .workspace import WorkspaceManager

if TYPE_CHECKING:
    from ..config import MergeConfig


logger = logging.getLogger(__name__)

CREATED = "created"
FETCHING = "fetching"
MANIFEST_READY = "manifest_ready"
TRANSCODING = "transcoding"
STREAMING = "streaming"
ABORTING = "aborting"
CLOSED = "closed"

OUTPUT_NAME = "merged.mp4"


class MergePipeline:
    """One merge request, from workspace allocation to cleanup.

    ``prepare()`` runs fetch, manifest and transcode; ``stream()`` hands the
    merged file out chunk by chunk. The workspace is released exactly once by
    ``close()``, which every exit path (failure, end of stream, stream cut
    short, response closed) reaches.
    """

    def __init__(
        self,
        config: MergeConfig,
        workspace: Optional[WorkspaceManager] = None,
        runner: Optional[TranscodeRunner] = None,
        fetcher: Callable[..., List[ClipArtifact]] = fetch_clips,
    ):
        self.config = config
        self.workspace = workspace or WorkspaceManager(config.workspace_root)
        self.runner = runner or TranscodeRunner(ffmpeg=config.ffmpeg_bin, timeout=config.transcode_timeout)
        self.fetcher = fetcher
        self.state = CREATED
        self.session: Optional[Session] = None
        self.clips: List[ClipArtifact] = []
        self.manifest: Optional[ConcatManifest] = None
        self.artifact: Optional[MergedArtifact] = None
        self.error: Optional[MergeError] = None

    @property
    def session_id(self) -> str:
        return self.session.id if self.session else "-"

    def _enter(self, state: str) -> None:
        logger.debug("[MERGE] %s %s -> %s", self.session_id, self.state, state)
        self.state = state

    def prepare(self, request: MergeRequest) -> MergedArtifact:
        if self.state != CREATED:
            raise RuntimeError(f"pipeline already used (state={self.state})")
        try:
            self.session = self.workspace.open()
            logger.info("[MERGE] Session %s started with %d clips", self.session.id, len(request))

            self._enter(FETCHING)
            self.clips = self.fetcher(
                self.session,
                request.sources,
                timeout=self.config.download_timeout,
                chunk_size=self.config.chunk_size,
                max_bytes=self.config.max_clip_bytes,
            )

            self.manifest = build_manifest(self.session, self.clips)
            self._enter(MANIFEST_READY)

            self._enter(TRANSCODING)
            output_path = os.path.join(self.session.output_dir, OUTPUT_NAME)
            self.artifact = self.runner.run(self.manifest, output_path, self.config.mode)
        except MergeError as e:
            self.abort(e)
            raise
        except Exception as e:
            err = MergeError(f"Unexpected error in session {self.session_id}: {e}")
            self.abort(err)
            raise err from e
        except BaseException:
            self.abort(MergeError(f"Session {self.session_id} interrupted while {self.state}"))
            raise

        if self.config.archive:
            self._archive()
        return self.artifact

    def _archive(self) -> None:
        # Best effort: the copy is a debug aid, never a reason to fail.
        dest = os.path.join(self.config.archive_dir, f"merged-{self.session.id}.mp4")
        try:
            ensure_dir(self.config.archive_dir)
            shutil.copyfile(self.artifact.path, dest)
        except OSError as e:
            logger.warning("[MERGE] Could not archive %s: %s", self.session.id, e)
            return
        self.artifact.archived_path = dest
        logger.info("[MERGE] Saved merged video: %s", dest)

    def stream(self) -> Iterator[bytes]:
        if self.state != TRANSCODING or self.artifact is None:
            raise RuntimeError(f"nothing to stream (state={self.state})")
        self._enter(STREAMING)
        return self._stream(self.artifact.path)

    def _stream(self, path: str) -> Iterator[bytes]:
        sent = 0
        try:
            for chunk in iter_file(path, self.config.chunk_size):
                yield chunk
                sent += len(chunk)
        except GeneratorExit:
            self.abort(StreamError(f"stream closed by caller after {sent} bytes"))
            raise
        except MergeError as e:
            self.abort(e)
            raise
        finally:
            self.close()

    def abort(self, error: MergeError) -> None:
        logger.error("[MERGE] Session %s failed while %s: %s", self.session_id, self.state, error)
        self.error = error
        self._enter(ABORTING)
        self.close()

    def close(self) -> None:
        if self.state == CLOSED:
            return
        self._enter(CLOSED)
        if self.session is not None:
            self.workspace.close(self.session)
