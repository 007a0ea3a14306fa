import logging
import os
import shutil
from pathlib import Path


logger = logging.getLogger(__name__)


def ensure_dir(path: str | Path) -> None:
    Path(path).mkdir(parents=True, exist_ok=True)


def remove_tree(path: str | Path) -> bool:
    """
    Recursively delete ``path``. Missing paths are fine; other failures are
    logged and reported through the return value instead of raised.
    """
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        return True
    except OSError as e:
        logger.warning("[MERGE] Could not remove %s: %s", path, e)
        return False
    return True


def file_size(path: str | Path) -> int:
    try:
        return os.path.getsize(path)
    except OSError:
        return 0


def tail(text: bytes | str | None, limit: int = 2000) -> str:
    if not text:
        return ""
    if isinstance(text, bytes):
        text = text.decode("utf-8", errors="ignore")
    return text[-limit:]
