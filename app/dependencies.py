"""
FastAPI dependency providers.

Services are built lazily on first use and shared across requests.
"""
from functools import lru_cache

from agent.avatar.reply_agent import AvatarReplyAgent
from agent.tts.azure_tts_agent import AzureTTSAgent
from app.config import settings
from app.services.avatar_chat_service import AvatarChatService
from app.services.canned_response_service import CannedResponseService
from app.services.media_pipeline_service import MediaPipelineService


def get_tts_agent() -> AzureTTSAgent:
    return AzureTTSAgent.get_instance()


@lru_cache(maxsize=1)
def get_avatar_chat_service() -> AvatarChatService:
    """Shared AvatarChatService wired to the global settings."""
    return AvatarChatService(
        reply_agent=AvatarReplyAgent(settings),
        pipeline=MediaPipelineService(get_tts_agent(), settings),
        canned=CannedResponseService(settings.assets_dir),
        config=settings
    )
