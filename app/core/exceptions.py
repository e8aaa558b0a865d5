"""
Avatar backend exceptions.

Per-fragment errors (ToolExecutionError, SynthesisError, wrapped in
PipelineStageError by the media pipeline) degrade a single
fragment to text-only. Request-level errors (ChatProcessingError,
AssetNotFoundError) fail the whole /chat request with status 500.
"""
from pathlib import Path
from typing import Optional, Sequence, Union


class AvatarBackendError(Exception):
    """Base class for all avatar backend errors."""


class ToolExecutionError(AvatarBackendError):
    """External command exited with a non-zero status (or could not start)."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: Optional[int],
        stderr: str = ""
    ):
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        name = self.command[0] if self.command else "<empty>"
        detail = stderr.strip() or "no error output"
        super().__init__(f"{name} failed (exit={returncode}): {detail}")


class SynthesisError(AvatarBackendError):
    """Speech synthesis call failed (credential, quota, network)."""


class ChatProcessingError(AvatarBackendError):
    """Language model call failed or its reply could not be parsed."""


class AssetNotFoundError(AvatarBackendError):
    """A bundled canned-response asset file is missing."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(f"Asset not found: {self.path}")


class PipelineStageError(AvatarBackendError):
    """A media pipeline stage failed for one fragment; the cause is chained."""

    def __init__(self, stage: str, index: int, cause: BaseException):
        self.stage = stage
        self.index = index
        self.cause = cause
        super().__init__(f"{stage} failed for message {index}: {cause}")
