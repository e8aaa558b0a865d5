"""
Response Assembler

파이프라인 결과를 fragment에 반영하고, 최종 {"messages": [...]} 응답으로 감쌉니다.
"""
from typing import Any, Dict, Sequence

from app.models.turn import Fragment, MediaOutputs, MediaResult, PipelineFailure
from app.schemas.chat import ChatResponse, FragmentResponse


def apply_media_result(fragment: Fragment, result: MediaResult) -> Fragment:
    """
    Project a pipeline result onto a fragment.

    Success attaches both audio and lipsync; failure leaves both absent
    so the client renders a text-only fragment.

    Args:
        fragment: Fragment to update in place
        result: MediaOutputs or PipelineFailure for the same index

    Returns:
        Fragment: The same fragment
    """
    if isinstance(result, MediaOutputs):
        fragment.audio = result.audio
        fragment.lipsync = result.lipsync
    elif isinstance(result, PipelineFailure):
        fragment.audio = None
        fragment.lipsync = None
    else:
        raise TypeError(f"Unexpected media result: {type(result).__name__}")
    return fragment


def to_fragment_response(fragment: Fragment) -> FragmentResponse:
    return FragmentResponse(
        text=fragment.text,
        facialExpression=fragment.facial_expression.value,
        animation=fragment.animation.value,
        audio=fragment.audio,
        lipsync=fragment.lipsync
    )


def assemble_response(fragments: Sequence[Fragment]) -> ChatResponse:
    """Wrap fragments as the transport envelope, keeping their order."""
    return ChatResponse(messages=[to_fragment_response(f) for f in fragments])


def response_payload(response: ChatResponse) -> Dict[str, Any]:
    """JSON body with absent audio/lipsync keys omitted."""
    payload = response.model_dump()
    for message in payload["messages"]:
        for key in ("audio", "lipsync"):
            if message.get(key) is None:
                message.pop(key, None)
    return payload
