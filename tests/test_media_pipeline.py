"""
MediaPipelineService 테스트

TTS -> ffmpeg -> rhubarb -> 인코딩 순서와 단계별 실패 처리.
"""
import base64

import pytest

from app.core.exceptions import PipelineStageError, SynthesisError, ToolExecutionError
from app.models.turn import MediaOutputs
from app.services.media_pipeline_service import MediaPipelineService

from conftest import FAKE_MP3_BYTES, LIPSYNC_DOC, FakeCommandRunner, FakeTTSAgent


class TestMediaPipelineService:
    """미디어 파이프라인 테스트"""

    @pytest.mark.asyncio
    async def test_run_produces_audio_and_lipsync(self, pipeline, tmp_path):
        outputs = await pipeline.run(0, "Hey dear!", tmp_path)

        assert isinstance(outputs, MediaOutputs)
        assert base64.b64decode(outputs.audio) == FAKE_MP3_BYTES
        assert outputs.lipsync == LIPSYNC_DOC

    @pytest.mark.asyncio
    async def test_stages_run_in_order_on_indexed_files(self, pipeline, tts_agent, command_runner, settings, tmp_path):
        await pipeline.run(2, "Second", tmp_path)

        assert tts_agent.calls[0]["output_path"] == tmp_path / "message_2.mp3"
        assert tts_agent.calls[0]["voice_name"] == settings.AVATAR_VOICE_NAME

        ffmpeg_cmd, rhubarb_cmd = command_runner.calls
        assert ffmpeg_cmd == ["ffmpeg", "-y", "-i", str(tmp_path / "message_2.mp3"), str(tmp_path / "message_2.wav")]
        assert rhubarb_cmd == [
            "rhubarb", "-f", "json",
            "-o", str(tmp_path / "message_2.json"),
            str(tmp_path / "message_2.wav"),
            "-r", "phonetic",
        ]

    @pytest.mark.asyncio
    async def test_synthesis_failure_skips_tools(self, settings, command_runner, performance, tmp_path):
        pipeline = MediaPipelineService(
            FakeTTSAgent(fail_texts={"boom"}), settings, command_runner, performance
        )

        with pytest.raises(PipelineStageError) as exc_info:
            await pipeline.run(0, "boom", tmp_path)

        assert exc_info.value.stage == "synthesize"
        assert isinstance(exc_info.value.__cause__, SynthesisError)
        assert command_runner.calls == []

    @pytest.mark.asyncio
    async def test_transcode_failure_skips_lipsync(self, settings, tts_agent, performance, tmp_path):
        runner = FakeCommandRunner(fail_tool="ffmpeg")
        pipeline = MediaPipelineService(tts_agent, settings, runner, performance)

        with pytest.raises(PipelineStageError) as exc_info:
            await pipeline.run(0, "Hello", tmp_path)

        assert exc_info.value.stage == "transcode"
        assert isinstance(exc_info.value.cause, ToolExecutionError)
        assert [call[0] for call in runner.calls] == ["ffmpeg"]

    @pytest.mark.asyncio
    async def test_lipsync_failure_is_tagged(self, settings, tts_agent, performance, tmp_path):
        runner = FakeCommandRunner(fail_tool="rhubarb")
        pipeline = MediaPipelineService(tts_agent, settings, runner, performance)

        with pytest.raises(PipelineStageError) as exc_info:
            await pipeline.run(0, "Hello", tmp_path)

        assert exc_info.value.stage == "lipsync"
        assert exc_info.value.index == 0

    @pytest.mark.asyncio
    async def test_missing_tool_output_fails_encode_stage(self, settings, tts_agent, performance, tmp_path):
        async def silent_runner(args, cwd=None, timeout=None):
            return ""

        pipeline = MediaPipelineService(tts_agent, settings, silent_runner, performance)

        with pytest.raises(PipelineStageError) as exc_info:
            await pipeline.run(0, "Hello", tmp_path)

        assert exc_info.value.stage == "encode"
        assert type(exc_info.value.cause) is FileNotFoundError

    @pytest.mark.asyncio
    async def test_stage_timings_are_recorded(self, pipeline, performance, tmp_path):
        performance.start_session("turn-1")

        await pipeline.run(1, "Hello", tmp_path, session_id="turn-1")

        stats = performance.get_stats("turn-1")
        assert set(stats["events"]) == {"synthesize[1]", "transcode[1]", "lipsync[1]", "encode[1]"}
