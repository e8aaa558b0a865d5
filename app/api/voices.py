"""
Voices API 엔드포인트

아바타에 사용할 수 있는 Azure Neural Voices 목록 조회
"""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import logging

from agent.tts.azure_tts_agent import AzureTTSAgent
from app.dependencies import get_tts_agent

router = APIRouter(tags=["Voices"])
logger = logging.getLogger(__name__)


@router.get("/voices")
async def get_voices(agent: AzureTTSAgent = Depends(get_tts_agent)):
    """
    사용 가능한 음성 목록 조회

    Returns:
        list: Azure voices/list 응답 그대로
    """
    try:
        voices = await agent.list_voices()
        return JSONResponse(content=voices)

    except Exception as e:
        logger.error(f"Failed to fetch voices: {str(e)}")
        return JSONResponse(status_code=500, content={"error": "Failed to fetch voices"})
