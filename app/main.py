"""
FastAPI application entry point for the avatar chat backend.

Run with:
    uvicorn app.main:app --port 3000
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from app.config import settings
from app.core.azure_speech_token_manager import AzureSpeechTokenManager
from app.api import chat, voices

import asyncio
import logging

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# 백그라운드 태스크 참조 유지 (GC 방지)
_background_tasks: set = set()

# Create FastAPI application
app = FastAPI(
    title="Avatar Chat Backend",
    description="LLM + TTS + lip-sync backend for the talking avatar",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(chat.router)
app.include_router(voices.router)


@app.on_event("startup")
async def startup_event():
    """Execute on application startup."""
    logger.info("Avatar Chat Backend starting...")
    logger.info(f"Port: {settings.PORT}")
    logger.info(f"CORS origins: {settings.CORS_ALLOWED_ORIGINS}")
    logger.info(f"Assets: {settings.assets_dir}, work dir: {settings.WORK_DIR}")
    logger.info("Endpoints: GET / (health), GET /voices, POST /chat")

    if not settings.credentials_configured:
        # 키가 없어도 서버는 뜨고, /chat은 고정 안내 응답을 반환
        logger.warning(
            "OPENAI_API_KEY or AZURE_SPEECH_KEY is missing: /chat will answer with the canned API key reminder"
        )

    if settings.tts_configured:
        # 첫 TTS 요청 지연 방지를 위해 토큰을 백그라운드에서 미리 발급
        task = asyncio.create_task(prefetch_azure_token())
        _background_tasks.add(task)
        task.add_done_callback(_background_tasks.discard)


async def prefetch_azure_token():
    """Azure Speech 토큰 사전 발급 (실패해도 앱 시작에는 영향 없음)"""
    try:
        token_manager = AzureSpeechTokenManager.get_instance()
        await token_manager.prefetch_token()
    except Exception as e:
        logger.warning(f"Azure Speech token prefetch failed (non-critical): {e}")


@app.get("/", response_class=PlainTextResponse, tags=["Root"])
async def root():
    """Liveness check."""
    return "Virtual Avatar Chatbot Backend is running!"


@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "message": "Avatar chat backend is running",
        "credentials_configured": settings.credentials_configured
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.PORT)
