"""
Core utilities for the avatar chat backend.
Provides the shared OpenAI client, external command execution, media file helpers and errors.
"""
from .openai_client import get_openai_client
from .tool_runner import run_command
from .media_files import read_file_base64, read_json_file
from .exceptions import (
    AvatarBackendError,
    ToolExecutionError,
    SynthesisError,
    ChatProcessingError,
    AssetNotFoundError,
    PipelineStageError,
)

__all__ = [
    # OpenAI
    "get_openai_client",
    # External tools
    "run_command",
    # Files
    "read_file_base64",
    "read_json_file",
    # Errors
    "AvatarBackendError",
    "ToolExecutionError",
    "SynthesisError",
    "ChatProcessingError",
    "AssetNotFoundError",
    "PipelineStageError",
]
