"""
Canned Response Service

LLM과 미디어 파이프라인을 거치지 않는 고정 응답 (인사, API 키 누락 안내).
오디오/립싱크는 미리 만들어 둔 에셋 파일에서 읽습니다.
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Tuple

from app.core.exceptions import AssetNotFoundError
from app.core.media_files import read_file_base64, read_json_file
from app.models.turn import Animation, FacialExpression, Fragment, TurnOutcome

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CannedFragment:
    """고정 응답 한 조각과 에셋 이름 (확장자 제외)"""
    text: str
    facial_expression: FacialExpression
    animation: Animation
    asset: str


CANNED_FRAGMENTS: Dict[TurnOutcome, Tuple[CannedFragment, ...]] = {
    TurnOutcome.GREETING: (
        CannedFragment(
            text="Hey dear... How was your day?",
            facial_expression=FacialExpression.SMILE,
            animation=Animation.TALKING_1,
            asset="intro_0"
        ),
        CannedFragment(
            text="I missed you so much... Please don't go for so long!",
            facial_expression=FacialExpression.SAD,
            animation=Animation.CRYING,
            asset="intro_1"
        ),
    ),
    TurnOutcome.MISCONFIGURED: (
        CannedFragment(
            text="Please my dear, don't forget to add your API keys!",
            facial_expression=FacialExpression.ANGRY,
            animation=Animation.ANGRY,
            asset="api_0"
        ),
        CannedFragment(
            text="You don't want to ruin this with a crazy OpenAI and Azure bill, right?",
            facial_expression=FacialExpression.SMILE,
            animation=Animation.LAUGHING,
            asset="api_1"
        ),
    ),
}


class CannedResponseService:
    """Loads the fixed fragment sets for GREETING and MISCONFIGURED turns."""

    def __init__(self, assets_dir: Path):
        self.assets_dir = Path(assets_dir)

    async def select(self, outcome: TurnOutcome) -> List[Fragment]:
        """
        Build the canned fragments for an outcome.

        Args:
            outcome: GREETING or MISCONFIGURED

        Returns:
            List[Fragment]: Fragments with audio and lipsync loaded from assets

        Raises:
            KeyError: outcome has no canned response (NORMAL)
            AssetNotFoundError: an asset file is missing
        """
        entries = CANNED_FRAGMENTS[outcome]
        logger.info(f"Serving canned {outcome.value} response ({len(entries)} fragments)")

        fragments = []
        for index, entry in enumerate(entries):
            wav_path = self.assets_dir / f"{entry.asset}.wav"
            json_path = self.assets_dir / f"{entry.asset}.json"
            try:
                audio = await read_file_base64(wav_path)
                lipsync = await read_json_file(json_path)
            except FileNotFoundError as e:
                logger.error(f"Canned asset missing: {e.filename}")
                raise AssetNotFoundError(e.filename) from e
            fragments.append(Fragment(
                index=index,
                text=entry.text,
                facial_expression=entry.facial_expression,
                animation=entry.animation,
                audio=audio,
                lipsync=lipsync
            ))
        return fragments
