"""
Avatar Chat API 엔드포인트

사용자 메시지를 받아 아바타 발화 목록(텍스트 + 음성 + 립싱크 + 표정 + 애니메이션)을 반환합니다.
"""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import logging
from typing import Optional

from app.dependencies import get_avatar_chat_service
from app.schemas.chat import ChatRequest, ChatResponse, ErrorResponse
from app.services.avatar_chat_service import AvatarChatService
from app.services.response_assembler import assemble_response, response_payload

router = APIRouter(tags=["Avatar Chat"])
logger = logging.getLogger(__name__)


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={500: {"model": ErrorResponse}}
)
async def chat(
    request: Optional[ChatRequest] = None,
    service: AvatarChatService = Depends(get_avatar_chat_service)
):
    """
    아바타 채팅

    message가 비어있으면 고정 인사 응답, API 키가 없으면 고정 안내 응답을 반환합니다.
    음성/립싱크 생성에 실패한 발화는 audio, lipsync 없이 텍스트만 반환됩니다.

    Args:
        request: 사용자 메시지 (선택)

    Returns:
        {"messages": [...]}
    """
    try:
        turn = await service.process_turn(request.message if request else None)
        logger.info(
            f"Chat turn {turn.outcome.value}: {len(turn.fragments)} messages, "
            f"{sum(1 for f in turn.fragments if f.has_media)} with audio"
        )
        return JSONResponse(content=response_payload(assemble_response(turn.fragments)))

    except Exception as e:
        logger.error(f"Chat error: {str(e)}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error="Failed to process message", details=str(e)).model_dump()
        )
