"""
Configuration settings for the avatar chat backend.
Loads environment variables and provides application settings.
"""
from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


# 값이 비어있거나 "-" 이면 키가 설정되지 않은 것으로 간주
_PLACEHOLDER_KEYS = {"", "-"}


def _get_default_assets_dir() -> str:
    """
    Get default canned-response assets directory.

    backend/app/config.py -> backend/audios

    Returns:
        Absolute path to assets directory
    """
    current_file = Path(__file__).resolve()
    backend_dir = current_file.parent.parent
    return str(backend_dir / "audios")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # OpenAI (reply generation)
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o-mini"
    LLM_TEMPERATURE: float = 0.9
    LLM_TOP_P: float = 1.0
    LLM_TOP_K: int = 40
    LLM_MAX_OUTPUT_TOKENS: int = 1000
    # top_k는 OpenAI 공식 API에서 지원하지 않음 (호환 서버용)
    LLM_SEND_TOP_K: bool = False

    # Azure Speech (TTS)
    AZURE_SPEECH_KEY: str = ""
    AZURE_SPEECH_REGION: str = "koreacentral"
    AVATAR_VOICE_NAME: str = "en-US-JennyNeural"

    # Server
    PORT: int = 3000
    LOG_LEVEL: str = "info"

    # CORS
    CORS_ALLOWED_ORIGINS: str = "http://localhost:5173,http://localhost:3000"

    # Files (optional - auto-detected from project structure if not set)
    ASSETS_DIR: Optional[str] = None
    WORK_DIR: str = "tmp"
    KEEP_WORK_FILES: bool = False

    # External tools
    FFMPEG_PATH: str = "ffmpeg"
    RHUBARB_PATH: str = "./bin/rhubarb"
    TOOL_TIMEOUT_SECONDS: Optional[float] = None

    # Turn pipeline
    MAX_FRAGMENTS: int = Field(default=3, ge=1)
    PIPELINE_CONCURRENCY: int = Field(default=1, ge=1)

    class Config:
        env_file = ".env"
        case_sensitive = True
        frozen = True

    @property
    def allowed_origins_list(self) -> List[str]:
        """Convert CORS allowed origins string to list."""
        return [origin.strip() for origin in self.CORS_ALLOWED_ORIGINS.split(',')]

    @property
    def assets_dir(self) -> Path:
        """Canned-response assets directory (env override or project default)."""
        return Path(self.ASSETS_DIR or _get_default_assets_dir())

    @property
    def llm_configured(self) -> bool:
        return self.OPENAI_API_KEY.strip() not in _PLACEHOLDER_KEYS

    @property
    def tts_configured(self) -> bool:
        return self.AZURE_SPEECH_KEY.strip() not in _PLACEHOLDER_KEYS

    @property
    def credentials_configured(self) -> bool:
        """Both the language model and speech synthesis keys are present."""
        return self.llm_configured and self.tts_configured


# Global settings instance
settings = Settings()
