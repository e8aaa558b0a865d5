"""
공용 테스트 픽스처

외부 협력자(LLM, Azure TTS, ffmpeg, rhubarb)는 가짜 구현으로 대체합니다.
"""
import json
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set

import pytest

from app.config import Settings
from app.core.exceptions import ChatProcessingError, SynthesisError, ToolExecutionError
from app.services.avatar_chat_service import AvatarChatService
from app.services.canned_response_service import CannedResponseService
from app.services.media_pipeline_service import MediaPipelineService
from app.utils.performance_logger import PerformanceLogger

ASSET_NAMES = ["intro_0", "intro_1", "api_0", "api_1"]

FAKE_MP3_BYTES = b"ID3\x03\x00fake-mp3-\x00\xff\xfe"

LIPSYNC_DOC = {
    "metadata": {"soundFile": "message.wav", "duration": 0.5},
    "mouthCues": [
        {"start": 0.0, "end": 0.2, "value": "X"},
        {"start": 0.2, "end": 0.5, "value": "B"},
    ],
}


def make_settings(tmp_path: Path, **overrides) -> Settings:
    values = {
        "OPENAI_API_KEY": "sk-test",
        "AZURE_SPEECH_KEY": "azure-test",
        "ASSETS_DIR": str(tmp_path / "assets"),
        "WORK_DIR": str(tmp_path / "work"),
        "FFMPEG_PATH": "ffmpeg",
        "RHUBARB_PATH": "rhubarb",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeTTSAgent:
    """Writes fixed MP3 bytes; fails for texts listed in fail_texts."""

    def __init__(self, fail_texts: Optional[Set[str]] = None):
        self.fail_texts = fail_texts or set()
        self.calls: List[Dict] = []

    async def synthesize_to_file(self, text: str, voice_name: str, output_path: Path) -> Path:
        self.calls.append({"text": text, "voice_name": voice_name, "output_path": Path(output_path)})
        if text in self.fail_texts:
            raise SynthesisError(f"quota exceeded for {text!r}")
        Path(output_path).write_bytes(FAKE_MP3_BYTES)
        return Path(output_path)

    async def list_voices(self):
        return [{"ShortName": "en-US-JennyNeural", "Locale": "en-US", "Gender": "Female"}]


class FakeCommandRunner:
    """Imitates ffmpeg (copy) and rhubarb (write JSON); fails for chosen tools/files."""

    def __init__(self, fail_tool: Optional[str] = None, fail_index: Optional[int] = None):
        self.fail_tool = fail_tool
        self.fail_index = fail_index
        self.calls: List[List[str]] = []

    async def __call__(self, args: Sequence, cwd=None, timeout=None) -> str:
        cmd = [str(a) for a in args]
        self.calls.append(cmd)
        tool = Path(cmd[0]).name

        if tool == self.fail_tool and (
            self.fail_index is None or any(f"message_{self.fail_index}." in a for a in cmd)
        ):
            raise ToolExecutionError(cmd, 1, f"{tool}: simulated failure")

        if tool == "ffmpeg":
            source, target = Path(cmd[3]), Path(cmd[4])
            target.write_bytes(b"RIFF" + source.read_bytes())
        elif tool == "rhubarb":
            output = Path(cmd[cmd.index("-o") + 1])
            output.write_text(json.dumps(LIPSYNC_DOC), encoding="utf-8")
        return ""


class FakeReplyAgent:
    """Returns a preset raw model reply or raises a preset error."""

    def __init__(self, reply: Optional[str] = None, error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.messages: List[str] = []

    async def process(self, user_message: str) -> str:
        self.messages.append(user_message)
        if self.error is not None:
            raise self.error
        if self.reply is None:
            raise ChatProcessingError("Language model returned an empty reply")
        return self.reply


@pytest.fixture
def assets_dir(tmp_path: Path) -> Path:
    """Canned response assets (WAV bytes are just markers)."""
    directory = tmp_path / "assets"
    directory.mkdir()
    for name in ASSET_NAMES:
        (directory / f"{name}.wav").write_bytes(f"wav:{name}".encode())
        (directory / f"{name}.json").write_text(
            json.dumps({"metadata": {"soundFile": f"{name}.wav"}, "mouthCues": []}),
            encoding="utf-8"
        )
    return directory


@pytest.fixture
def settings(tmp_path: Path, assets_dir: Path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture
def tts_agent() -> FakeTTSAgent:
    return FakeTTSAgent()


@pytest.fixture
def command_runner() -> FakeCommandRunner:
    return FakeCommandRunner()


@pytest.fixture
def performance() -> PerformanceLogger:
    return PerformanceLogger()


@pytest.fixture
def pipeline(tts_agent, command_runner, settings, performance) -> MediaPipelineService:
    return MediaPipelineService(tts_agent, settings, command_runner, performance)


def build_chat_service(
    config: Settings,
    reply_agent: FakeReplyAgent,
    tts_agent: Optional[FakeTTSAgent] = None,
    command_runner: Optional[FakeCommandRunner] = None
) -> AvatarChatService:
    performance = PerformanceLogger()
    pipeline = MediaPipelineService(
        tts_agent or FakeTTSAgent(),
        config,
        command_runner or FakeCommandRunner(),
        performance
    )
    return AvatarChatService(
        reply_agent=reply_agent,
        pipeline=pipeline,
        canned=CannedResponseService(config.assets_dir),
        config=config,
        performance=performance
    )
