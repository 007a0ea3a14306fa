import logging
import os
from typing import List, Sequence

import requests

from .errors import FetchError
from .schemas import ClipArtifact, Session


logger = logging.getLogger(__name__)

DOWNLOAD_CHUNK = 64 * 1024


def clip_filename(index: int) -> str:
    return f"clip_{index:03d}.mp4"


def download(url: str, dest: str, timeout: float = 60, chunk_size: int = DOWNLOAD_CHUNK, max_bytes: int = 0) -> int:
    """
    Stream ``url`` into ``dest`` and return the number of bytes written.
    Raises requests.HTTPError on non-2xx responses and IOError when the body
    is empty or larger than ``max_bytes`` (0 means no limit).
    """
    total = 0
    with requests.get(url, stream=True, timeout=timeout) as r:
        r.raise_for_status()
        with open(dest, "wb") as f:
            for chunk in r.iter_content(chunk_size=chunk_size):
                if not chunk:
                    continue
                total += len(chunk)
                if max_bytes and total > max_bytes:
                    raise IOError(f"clip exceeds {max_bytes} bytes")
                f.write(chunk)
    if total == 0:
        raise IOError("downloaded file is empty")
    return total


def fetch_clips(
    session: Session,
    sources: Sequence[str],
    timeout: float = 60,
    chunk_size: int = DOWNLOAD_CHUNK,
    max_bytes: int = 0,
) -> List[ClipArtifact]:
    """
    Download every source into the session's clip directory, one at a time
    and in order. The first failure raises FetchError; later clips are not
    requested.
    """
    artifacts: List[ClipArtifact] = []
    for i, url in enumerate(sources):
        clip = ClipArtifact(index=i, source=url, path=os.path.join(session.clip_dir, clip_filename(i)))
        artifacts.append(clip)
        logger.info("[MERGE] %s downloading clip %d/%d", session.id, i + 1, len(sources))
        try:
            clip.size_bytes = download(url, clip.path, timeout=timeout, chunk_size=chunk_size, max_bytes=max_bytes)
        except (requests.RequestException, OSError) as e:
            clip.status = "failed"
            raise FetchError(i, url, e) from e
        clip.status = "downloaded"
    return artifacts
