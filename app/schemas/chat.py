"""
Avatar Chat API Pydantic schemas for request/response validation.
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class ChatRequest(BaseModel):
    """아바타 채팅 요청 (message가 없으면 인사 응답)"""
    message: Optional[str] = Field(default=None, description="사용자 메시지")

    class Config:
        json_schema_extra = {
            "example": {
                "message": "How was your day?"
            }
        }


class FragmentResponse(BaseModel):
    """아바타 발화 단위 (텍스트 + 음성 + 립싱크 + 표정 + 애니메이션)"""
    text: str
    facialExpression: str
    animation: str
    audio: Optional[str] = Field(default=None, description="Base64 인코딩된 오디오")
    lipsync: Optional[Dict[str, Any]] = Field(default=None, description="Rhubarb 립싱크 JSON")


class ChatResponse(BaseModel):
    """아바타 채팅 응답"""
    messages: List[FragmentResponse]


class ErrorResponse(BaseModel):
    """요청 단위 실패 응답"""
    error: str
    details: Optional[str] = None
