"""
Avatar Chat Service

한 번의 채팅 턴을 처리합니다.

분기 (순서대로 평가, 일치하면 즉시 반환):
1. 메시지 없음       -> GREETING 고정 응답
2. API 키 누락       -> MISCONFIGURED 고정 응답
3. 그 외             -> LLM 응답 파싱 후 fragment별 미디어 파이프라인 실행

fragment 단위 미디어 실패는 텍스트만 있는 fragment로 강등되고,
LLM 호출/파싱 실패는 ChatProcessingError로 요청 전체가 실패합니다.
"""
import asyncio
import enum
import json
import logging
import re
import uuid
from typing import Any, List, Optional, Type, TypeVar

from agent.avatar.reply_agent import AvatarReplyAgent
from app.config import Settings, settings as default_settings
from app.core.exceptions import ChatProcessingError, PipelineStageError
from app.core.workspace import turn_workspace
from app.models.turn import (
    Animation,
    FacialExpression,
    Fragment,
    MediaResult,
    PipelineFailure,
    Turn,
    TurnOutcome,
)
from app.services.canned_response_service import CannedResponseService
from app.services.media_pipeline_service import MediaPipelineService
from app.services.response_assembler import apply_media_result
from app.utils.performance_logger import PerformanceLogger, perf_logger

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=enum.Enum)

_OPENING_FENCE_RE = re.compile(r"^```[a-zA-Z]*[ \t]*\n?")
_CLOSING_FENCE_RE = re.compile(r"\n?```$")


def strip_code_fences(raw_text: str) -> str:
    """
    Remove Markdown code fences (```json ... ```) around the model output.

    The opening and closing fences are stripped independently, so a reply
    cut off before its closing fence still parses.
    """
    text = raw_text.strip()
    text = _OPENING_FENCE_RE.sub("", text, count=1)
    text = _CLOSING_FENCE_RE.sub("", text.strip(), count=1)
    return text.strip()


def _coerce_enum(value: Any, enum_type: Type[E], fallback: E, index: int, field_name: str) -> E:
    try:
        return enum_type(value)
    except ValueError:
        logger.warning(
            f"[{index}] Unknown {field_name} {value!r} from model, using {fallback.value}"
        )
        return fallback


def parse_reply_fragments(raw_text: Optional[str], max_fragments: int) -> List[Fragment]:
    """
    Parse the language model output into fragments.

    Accepts a bare JSON array or an object with a "messages" array,
    optionally wrapped in a Markdown code fence. Keeps at most
    max_fragments entries. Unknown facialExpression/animation values
    become "default"/"Idle".

    Args:
        raw_text: Raw model output
        max_fragments: Upper bound on the number of fragments

    Returns:
        List[Fragment]: Fragments indexed from 0, without media

    Raises:
        ChatProcessingError: Missing output, invalid JSON, or unexpected shape
    """
    if raw_text is None or not raw_text.strip():
        raise ChatProcessingError("Language model returned no reply")

    cleaned = strip_code_fences(raw_text)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ChatProcessingError(f"Invalid JSON from language model: {e}") from e

    if isinstance(parsed, dict) and "messages" in parsed:
        parsed = parsed["messages"]

    if not isinstance(parsed, list):
        raise ChatProcessingError(
            f"Expected a list of messages, got {type(parsed).__name__}"
        )

    if len(parsed) > max_fragments:
        logger.warning(
            f"Model returned {len(parsed)} messages, keeping the first {max_fragments}"
        )
        parsed = parsed[:max_fragments]

    fragments = []
    for index, item in enumerate(parsed):
        if not isinstance(item, dict):
            raise ChatProcessingError(f"Message {index} is not an object")
        text = item.get("text")
        if not isinstance(text, str) or not text.strip():
            raise ChatProcessingError(f"Message {index} has no text")

        fragments.append(Fragment(
            index=index,
            text=text,
            facial_expression=_coerce_enum(
                item.get("facialExpression"), FacialExpression,
                FacialExpression.DEFAULT, index, "facialExpression"
            ),
            animation=_coerce_enum(
                item.get("animation"), Animation, Animation.IDLE, index, "animation"
            )
        ))
    return fragments


class AvatarChatService:
    """
    Turn orchestrator for the /chat endpoint.

    LLM, 미디어 파이프라인, 고정 응답을 조율합니다. 요청 간 상태를 저장하지 않습니다.
    """

    def __init__(
        self,
        reply_agent: AvatarReplyAgent,
        pipeline: MediaPipelineService,
        canned: CannedResponseService,
        config: Settings = default_settings,
        performance: PerformanceLogger = perf_logger
    ):
        self.reply_agent = reply_agent
        self.pipeline = pipeline
        self.canned = canned
        self.config = config
        self.performance = performance

    async def process_turn(self, message: Optional[str]) -> Turn:
        """
        Process one chat turn.

        Args:
            message: User message (None or blank triggers the greeting)

        Returns:
            Turn: Outcome and ordered fragments

        Raises:
            ChatProcessingError: Language model call or parsing failed
            AssetNotFoundError: Canned response asset missing
        """
        if message is None or not message.strip():
            return Turn(TurnOutcome.GREETING, await self.canned.select(TurnOutcome.GREETING))

        if not self.config.credentials_configured:
            logger.warning("API keys are not configured, serving canned response")
            return Turn(
                TurnOutcome.MISCONFIGURED,
                await self.canned.select(TurnOutcome.MISCONFIGURED)
            )

        turn_id = uuid.uuid4().hex[:8]
        self.performance.start_session(turn_id)
        try:
            logger.info(f"[turn {turn_id}] Processing message: {message[:50]}...")

            self.performance.start_timer(turn_id, "llm")
            raw_text = await self.reply_agent.process(message)
            self.performance.end_timer(turn_id, "llm")

            fragments = parse_reply_fragments(raw_text, self.config.MAX_FRAGMENTS)

            async with turn_workspace(self.config.WORK_DIR, self.config.KEEP_WORK_FILES) as work_dir:
                results = await self._run_pipelines(fragments, work_dir, turn_id)

            for fragment, result in zip(fragments, results):
                apply_media_result(fragment, result)

            return Turn(TurnOutcome.NORMAL, fragments)
        finally:
            self.performance.end_session(turn_id)

    async def _run_pipelines(self, fragments: List[Fragment], work_dir, turn_id: str) -> List[MediaResult]:
        """Results are returned in fragment order regardless of concurrency."""
        concurrency = max(1, self.config.PIPELINE_CONCURRENCY)

        if concurrency == 1:
            results = []
            for fragment in fragments:
                results.append(await self._process_fragment(fragment, work_dir, turn_id))
            return results

        semaphore = asyncio.Semaphore(concurrency)

        async def bounded(fragment: Fragment) -> MediaResult:
            async with semaphore:
                return await self._process_fragment(fragment, work_dir, turn_id)

        return list(await asyncio.gather(*(bounded(f) for f in fragments)))

    async def _process_fragment(self, fragment: Fragment, work_dir, turn_id: str) -> MediaResult:
        """Run the media pipeline for one fragment; failures become PipelineFailure."""
        try:
            return await self.pipeline.run(fragment.index, fragment.text, work_dir, session_id=turn_id)
        except PipelineStageError as e:
            logger.error(f"Error processing audio for message {fragment.index} ({e.stage}): {str(e.cause)}")
            return PipelineFailure(index=fragment.index, stage=e.stage, message=str(e.cause))
