"""
Media Pipeline Service

아바타 발화 하나(fragment)의 텍스트를 음성 + 립싱크 데이터로 변환합니다.

단계 (순차 실행, 각 단계는 이전 단계의 파일을 입력으로 사용):
1. TTS 합성 (Azure)      -> message_{index}.mp3
2. ffmpeg 변환           -> message_{index}.wav
3. rhubarb 립싱크 추출    -> message_{index}.json
4. base64 인코딩 + JSON 파싱

단계 실패는 PipelineStageError(단계 이름, 원인 예외 체인)로 감싸서 올리고,
처리 정책은 AvatarChatService가 결정합니다.
"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable, Optional, Protocol, Sequence

from app.config import Settings, settings as default_settings
from app.core.exceptions import PipelineStageError
from app.core.media_files import read_file_base64, read_json_file
from app.core.tool_runner import run_command
from app.models.turn import MediaOutputs, SpeechAudio, VisemeTrack, WaveAudio
from app.utils.performance_logger import PerformanceLogger, perf_logger

logger = logging.getLogger(__name__)

CommandRunner = Callable[..., Awaitable[str]]

STAGE_SYNTHESIZE = "synthesize"
STAGE_TRANSCODE = "transcode"
STAGE_LIPSYNC = "lipsync"
STAGE_ENCODE = "encode"


class SpeechSynthesizer(Protocol):
    async def synthesize_to_file(self, text: str, voice_name: str, output_path: Path) -> Path:
        ...


class MediaPipelineService:
    """
    Runs TTS -> ffmpeg -> rhubarb -> encode for one fragment.

    Example:
        >>> pipeline = MediaPipelineService(AzureTTSAgent.get_instance())
        >>> outputs = await pipeline.run(0, "Hey dear!", work_dir)
        >>> outputs.lipsync["mouthCues"][0]
        {'start': 0.0, 'end': 0.12, 'value': 'X'}
    """

    def __init__(
        self,
        tts_agent: SpeechSynthesizer,
        config: Settings = default_settings,
        command_runner: CommandRunner = run_command,
        performance: PerformanceLogger = perf_logger
    ):
        self.tts_agent = tts_agent
        self.config = config
        self.command_runner = command_runner
        self.performance = performance

    @staticmethod
    def artifact_path(work_dir: Path, index: int, suffix: str) -> Path:
        return Path(work_dir) / f"message_{index}.{suffix}"

    async def run(
        self,
        index: int,
        text: str,
        work_dir: Path,
        session_id: Optional[str] = None
    ) -> MediaOutputs:
        """
        Produce audio and lipsync for one fragment.

        Args:
            index: Fragment index (used for file naming)
            text: Text to speak
            work_dir: Turn working directory
            session_id: Performance session (turn id) for stage timings

        Returns:
            MediaOutputs: base64 MP3 and parsed rhubarb document

        Raises:
            PipelineStageError: A stage failed. The cause is the SynthesisError,
                ToolExecutionError, FileNotFoundError or ValueError it raised
        """
        async with self._stage(STAGE_SYNTHESIZE, index, session_id):
            speech = await self.synthesize(index, text, work_dir)
        async with self._stage(STAGE_TRANSCODE, index, session_id):
            wave = await self.transcode(speech)
        async with self._stage(STAGE_LIPSYNC, index, session_id):
            track = await self.extract_visemes(wave)
        async with self._stage(STAGE_ENCODE, index, session_id):
            outputs = await self.encode(track)

        logger.info(f"[{index}] Message ready for playback")
        return outputs

    async def synthesize(self, index: int, text: str, work_dir: Path) -> SpeechAudio:
        output_path = self.artifact_path(work_dir, index, "mp3")
        logger.info(f"[{index}] Generating speech for: \"{text[:50]}...\"")
        await self.tts_agent.synthesize_to_file(
            text=text,
            voice_name=self.config.AVATAR_VOICE_NAME,
            output_path=output_path
        )
        return SpeechAudio(index=index, path=output_path)

    async def transcode(self, speech: SpeechAudio) -> WaveAudio:
        """MP3 -> WAV (rhubarb는 WAV만 입력으로 받음)"""
        wav_path = speech.path.with_suffix(".wav")
        logger.info(f"[{speech.index}] Converting MP3 to WAV")
        await self._run_tool([
            self.config.FFMPEG_PATH, "-y", "-i", speech.path, wav_path
        ])
        return WaveAudio(index=speech.index, path=wav_path, source=speech)

    async def extract_visemes(self, wave: WaveAudio) -> VisemeTrack:
        json_path = wave.path.with_suffix(".json")
        logger.info(f"[{wave.index}] Generating lip-sync")
        await self._run_tool([
            self.config.RHUBARB_PATH,
            "-f", "json",
            "-o", json_path,
            wave.path,
            "-r", "phonetic"
        ])
        return VisemeTrack(index=wave.index, path=json_path, audio=wave.source)

    async def encode(self, track: VisemeTrack) -> MediaOutputs:
        audio = await read_file_base64(track.audio.path)
        lipsync = await read_json_file(track.path)
        if not isinstance(lipsync, dict):
            raise ValueError(f"Unexpected lip-sync document in {track.path.name}")
        return MediaOutputs(audio=audio, lipsync=lipsync)

    async def _run_tool(self, args: Sequence) -> str:
        return await self.command_runner(args, timeout=self.config.TOOL_TIMEOUT_SECONDS)

    @asynccontextmanager
    async def _stage(
        self,
        name: str,
        index: int,
        session_id: Optional[str]
    ) -> AsyncIterator[None]:
        """Time a stage and wrap any escaping exception in PipelineStageError."""
        event_name = f"{name}[{index}]"
        if session_id:
            self.performance.start_timer(session_id, event_name)
        try:
            yield
        except Exception as e:
            raise PipelineStageError(name, index, e) from e
        finally:
            if session_id:
                self.performance.end_timer(session_id, event_name)
