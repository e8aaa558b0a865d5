"""
Services package for business logic.

Service classes orchestrate Agent calls and external tools, and implement
business logic that doesn't belong in API endpoints.
"""
from .avatar_chat_service import AvatarChatService
from .canned_response_service import CannedResponseService
from .media_pipeline_service import MediaPipelineService

__all__ = [
    "AvatarChatService",
    "CannedResponseService",
    "MediaPipelineService",
]
