"""ffmpeg concat-demuxer descriptor (``concat.txt``) writing and parsing."""

import os
from typing import List, Sequence

from .errors import ManifestError
from .schemas import ClipArtifact, ConcatManifest, Session


MANIFEST_NAME = "concat.txt"


def escape_concat_path(path: str) -> str:
    """Quote ``path`` for a ``file`` directive. Single quotes become '\\''."""
    if "\n" in path or "\r" in path:
        raise ManifestError(f"Path contains a line break: {path!r}")
    return "'" + path.replace("'", "'\\''") + "'"


def build_manifest(session: Session, artifacts: Sequence[ClipArtifact]) -> ConcatManifest:
    entries: List[str] = []
    for clip in artifacts:
        if clip.status != "downloaded":
            raise ManifestError(f"Clip {clip.index} was not downloaded (status={clip.status})")
        entries.append(os.path.abspath(clip.path))

    path = os.path.join(session.clip_dir, MANIFEST_NAME)
    content = "\n".join(f"file {escape_concat_path(p)}" for p in entries) + "\n"
    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
    except OSError as e:
        raise ManifestError(f"Could not write manifest {path}: {e}") from e
    return ConcatManifest(path=path, entries=entries)


def parse_manifest(text: str) -> List[str]:
    """
    Read back the paths of ``file`` directives, undoing the quoting applied by
    escape_concat_path. Only understands the subset this module writes.
    """
    paths: List[str] = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        directive, _, arg = line.partition(" ")
        if directive != "file":
            raise ValueError(f"Unexpected directive: {directive}")
        out = []
        i = 0
        quoted = False
        while i < len(arg):
            ch = arg[i]
            if ch == "'":
                quoted = not quoted
            elif ch == "\\" and not quoted and i + 1 < len(arg):
                i += 1
                out.append(arg[i])
            elif ch.isspace() and not quoted:
                raise ValueError(f"Unquoted whitespace in: {line}")
            else:
                out.append(ch)
            i += 1
        if quoted:
            raise ValueError(f"Unterminated quote in: {line}")
        paths.append("".join(out))
    return paths
