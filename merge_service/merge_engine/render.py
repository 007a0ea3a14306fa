import logging
import os
import shlex
import subprocess
from typing import List, Optional

import imageio_ffmpeg

from .errors import OutputMissingError, TranscodeError
from .schemas import COPY, MODES, REENCODE, ConcatManifest, MergedArtifact
from .utils import file_size, tail


logger = logging.getLogger(__name__)

REENCODE_ARGS = [
    "-c:v", "libx264", "-preset", "fast", "-crf", "18",
    "-c:a", "aac", "-b:a", "192k",
]
COPY_ARGS = ["-c", "copy"]


def ffmpeg_bin(explicit: Optional[str] = None) -> str:
    exe = explicit or os.environ.get("FFMPEG_BIN")
    if exe:
        return exe
    try:
        return imageio_ffmpeg.get_ffmpeg_exe()
    except RuntimeError as e:
        # No bundled or system binary found; a PATH lookup at run time decides.
        logger.warning("[MERGE] imageio-ffmpeg could not locate ffmpeg (%s); using 'ffmpeg'", e)
        return "ffmpeg"


def build_concat_command(ffmpeg: str, manifest_path: str, output_path: str, mode: str) -> List[str]:
    if mode == COPY:
        codec_args = COPY_ARGS
    elif mode == REENCODE:
        codec_args = REENCODE_ARGS
    else:
        raise ValueError(f"Unknown merge mode {mode!r}; expected one of {MODES}")
    return [
        ffmpeg,
        "-y", "-nostdin", "-hide_banner", "-loglevel", "error",
        "-f", "concat", "-safe", "0",
        "-i", manifest_path,
        *codec_args,
        "-movflags", "+faststart",
        output_path,
    ]


class TranscodeRunner:
    """Runs the ffmpeg concat and checks that it really produced a file."""

    def __init__(self, ffmpeg: Optional[str] = None, timeout: Optional[float] = None):
        self._ffmpeg = ffmpeg
        self.timeout = timeout

    @property
    def ffmpeg(self) -> str:
        if not self._ffmpeg:
            self._ffmpeg = ffmpeg_bin()
        return self._ffmpeg

    def _run_ffmpeg(self, cmd: List[str]) -> None:
        """Run ffmpeg and raise with stderr tail on failure for better diagnostics."""
        try:
            proc = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            raise TranscodeError(f"ffmpeg timed out after {self.timeout}s", stderr_tail=tail(e.stderr)) from e
        except OSError as e:
            raise TranscodeError(f"ffmpeg could not be started: {e}") from e
        if proc.returncode != 0:
            stderr_tail = tail(proc.stderr)
            raise TranscodeError(
                f"ffmpeg failed (code {proc.returncode}):\n{stderr_tail}",
                returncode=proc.returncode,
                stderr_tail=stderr_tail,
            )

    def run(self, manifest: ConcatManifest, output_path: str, mode: str = REENCODE) -> MergedArtifact:
        cmd = build_concat_command(self.ffmpeg, manifest.path, output_path, mode)
        logger.info("[MERGE] Running FFmpeg (%s mode)", mode)
        logger.debug("[MERGE] %s", shlex.join(cmd))
        self._run_ffmpeg(cmd)

        # A zero exit status is not trusted on its own.
        size = file_size(output_path)
        if not os.path.isfile(output_path) or size == 0:
            raise OutputMissingError(f"ffmpeg reported success but {output_path} is missing or empty")
        return MergedArtifact(path=output_path, size_bytes=size, mode=mode)
