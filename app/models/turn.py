"""
Turn 도메인 모델

한 번의 /chat 요청(turn)과 그 응답 조각(fragment)을 표현하는 데이터 클래스들.
"""
import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union


class TurnOutcome(str, enum.Enum):
    """Which branch produced the turn's fragments."""
    GREETING = "GREETING"
    MISCONFIGURED = "MISCONFIGURED"
    NORMAL = "NORMAL"


class FacialExpression(str, enum.Enum):
    SMILE = "smile"
    SAD = "sad"
    ANGRY = "angry"
    SURPRISED = "surprised"
    FUNNY_FACE = "funnyFace"
    DEFAULT = "default"


class Animation(str, enum.Enum):
    TALKING_0 = "Talking_0"
    TALKING_1 = "Talking_1"
    TALKING_2 = "Talking_2"
    CRYING = "Crying"
    LAUGHING = "Laughing"
    RUMBA = "Rumba"
    IDLE = "Idle"
    TERRIFIED = "Terrified"
    ANGRY = "Angry"


@dataclass
class Fragment:
    """
    One avatar utterance.

    Attributes:
        index: Position in the reply (0-based, also used for file naming)
        text: Text to speak
        facial_expression: Expression cue for the avatar
        animation: Animation cue for the avatar
        audio: Base64 speech audio (None until media is attached)
        lipsync: Rhubarb viseme document (None until media is attached)
    """
    index: int
    text: str
    facial_expression: FacialExpression
    animation: Animation
    audio: Optional[str] = None
    lipsync: Optional[Dict[str, Any]] = None

    @property
    def has_media(self) -> bool:
        return self.audio is not None and self.lipsync is not None


@dataclass
class Turn:
    """Fragments produced for one request, in output order."""
    outcome: TurnOutcome
    fragments: List[Fragment] = field(default_factory=list)


# ========== Media pipeline artifacts ==========
# 각 단계는 이전 단계의 산출물 핸들을 입력으로 받습니다.

@dataclass(frozen=True)
class SpeechAudio:
    """Synthesized MP3 written by the TTS stage."""
    index: int
    path: Path


@dataclass(frozen=True)
class WaveAudio:
    """WAV transcoded from SpeechAudio (rhubarb input)."""
    index: int
    path: Path
    source: SpeechAudio


@dataclass(frozen=True)
class VisemeTrack:
    """Rhubarb JSON output for a WaveAudio."""
    index: int
    path: Path
    audio: SpeechAudio


@dataclass(frozen=True)
class MediaOutputs:
    """Transport-ready media for one fragment."""
    audio: str
    lipsync: Dict[str, Any]


@dataclass(frozen=True)
class PipelineFailure:
    """A pipeline run that did not produce media."""
    index: int
    stage: str
    message: str


MediaResult = Union[MediaOutputs, PipelineFailure]
