from typing import Iterable, Iterator

from flask import Response

from .errors import StreamError
from .schemas import MergedArtifact


VIDEO_MIMETYPE = "video/mp4"
DOWNLOAD_NAME = "merged.mp4"


def iter_file(path: str, chunk_size: int = 64 * 1024) -> Iterator[bytes]:
    """Yield the file in chunks as they are read; never loads it whole."""
    try:
        with open(path, "rb") as f:
            while True:
                chunk = f.read(chunk_size)
                if not chunk:
                    break
                yield chunk
    except OSError as e:
        raise StreamError(f"Could not read {path}: {e}") from e


def build_response(artifact: MergedArtifact, body: Iterable[bytes]) -> Response:
    resp = Response(body, mimetype=VIDEO_MIMETYPE, direct_passthrough=True)
    resp.headers["Content-Disposition"] = f"inline; filename={DOWNLOAD_NAME}"
    resp.headers["Content-Length"] = str(artifact.size_bytes)
    return resp
