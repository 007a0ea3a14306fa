import logging
import os
import uuid
from pathlib import Path

from .errors import WorkspaceError
from .schemas import Session
from .utils import ensure_dir, remove_tree


logger = logging.getLogger(__name__)


class WorkspaceManager:
    """Allocates one pair of scratch directories per merge session.

    Clips are staged under ``<root>/clips/<id>`` and the merged output under
    ``<root>/output/<id>``; the uuid keeps concurrent sessions disjoint.
    """

    def __init__(self, root: str):
        self.root = str(Path(root).resolve())
        self.clips_root = os.path.join(self.root, "clips")
        self.output_root = os.path.join(self.root, "output")

    def open(self) -> Session:
        session_id = uuid.uuid4().hex
        session = Session(
            id=session_id,
            clip_dir=os.path.join(self.clips_root, session_id),
            output_dir=os.path.join(self.output_root, session_id),
        )
        created: list[str] = []
        try:
            for d in session.dirs:
                ensure_dir(os.path.dirname(d))
                # Fresh directory only; an existing one would mean an id clash.
                os.mkdir(d)
                created.append(d)
        except OSError as e:
            for d in created:
                remove_tree(d)
            raise WorkspaceError(f"Could not create workspace for session {session_id}: {e}") from e
        logger.debug("[MERGE] Workspace ready for %s", session_id)
        return session

    def close(self, session: Session) -> bool:
        ok = True
        for d in session.dirs:
            ok = remove_tree(d) and ok
        if ok:
            logger.info("[MERGE] Cleaned temp files for %s", session.id)
        return ok

    def exists(self, session: Session) -> bool:
        return any(os.path.exists(d) for d in session.dirs)
