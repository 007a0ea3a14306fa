from __future__ import annotations

from typing import Optional


class MergeError(Exception):
    """Base class for every failure raised by the merge pipeline.

    ``public_message`` is what the HTTP layer sends back to the caller;
    ``str(err)`` keeps the detailed diagnostic for the logs.
    """

    status_code = 500
    public_message = "Unexpected server error"

    def __init__(self, message: str, public_message: Optional[str] = None):
        super().__init__(message)
        if public_message is not None:
            self.public_message = public_message


class ValidationError(MergeError):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message, public_message=message)


class WorkspaceError(MergeError):
    public_message = "Failed to allocate merge workspace"


class FetchError(MergeError):
    def __init__(self, index: int, source: str, cause: BaseException):
        self.index = index
        self.source = source
        self.cause = cause
        super().__init__(
            f"clip {index} ({source}) failed to download: {cause}",
            public_message=f"Failed to download clip {index + 1}",
        )


class ManifestError(MergeError):
    public_message = "Failed to prepare merge"


class TranscodeError(MergeError):
    public_message = "Video merge failed"

    def __init__(self, message: str, returncode: Optional[int] = None, stderr_tail: str = ""):
        self.returncode = returncode
        self.stderr_tail = stderr_tail
        super().__init__(message)


class OutputMissingError(MergeError):
    public_message = "FFmpeg did not produce output file"


class StreamError(MergeError):
    public_message = "Failed to stream merged video"
