"""
Azure TTS Agent (싱글톤 패턴)

Azure Speech SDK를 사용하여 아바타 발화 텍스트를 MP3 파일로 합성하는 Agent입니다.
사용 가능한 음성 목록은 Azure Speech REST API(voices/list)로 조회합니다.
"""
import logging
import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import aiohttp
import azure.cognitiveservices.speech as speechsdk

from app.config import Settings, settings as default_settings
from app.core.azure_speech_token_manager import AzureSpeechTokenManager
from app.core.exceptions import SynthesisError

logger = logging.getLogger(__name__)


class AzureTTSAgent:
    """
    Azure TTS Agent (싱글톤)

    Features:
    - Azure Speech SDK TTS (MP3 파일 출력)
    - 토큰 기반 인증 (AzureSpeechTokenManager)
    - 음성 목록 조회

    Example:
        >>> agent = AzureTTSAgent.get_instance()
        >>> await agent.synthesize_to_file(
        ...     text="Hey dear!",
        ...     voice_name="en-US-JennyNeural",
        ...     output_path=Path("tmp/message_0.mp3")
        ... )
    """

    _instance: Optional['AzureTTSAgent'] = None

    # rhubarb 입력 전 ffmpeg로 WAV 변환하므로 MP3로 저장
    OUTPUT_FORMAT = speechsdk.SpeechSynthesisOutputFormat.Audio24Khz48KBitRateMonoMp3

    def __init__(
        self,
        config: Settings = default_settings,
        token_manager: Optional[AzureSpeechTokenManager] = None
    ):
        """
        Initialize TTS Agent.

        Note: 앱에서는 get_instance()를 사용하세요.
        """
        self.config = config
        self.token_manager = token_manager or AzureSpeechTokenManager(
            config.AZURE_SPEECH_KEY, config.AZURE_SPEECH_REGION
        )
        logger.info("Azure TTS Agent initialized")

    @classmethod
    def get_instance(cls) -> 'AzureTTSAgent':
        """싱글톤 인스턴스 반환"""
        if cls._instance is None:
            cls._instance = cls(token_manager=AzureSpeechTokenManager.get_instance())
            logger.info("Created new AzureTTSAgent singleton instance")
        return cls._instance

    async def synthesize_to_file(
        self,
        text: str,
        voice_name: str,
        output_path: Union[str, Path]
    ) -> Path:
        """
        텍스트를 음성으로 변환하여 MP3 파일로 저장

        Args:
            text: 변환할 텍스트
            voice_name: Azure 뉴럴 음성 이름 (예: en-US-JennyNeural)
            output_path: 저장할 MP3 경로

        Returns:
            Path: 저장된 파일 경로

        Raises:
            SynthesisError: TTS 처리 실패 시
        """
        output_path = Path(output_path)
        if not text or not text.strip():
            raise SynthesisError("Empty text provided for TTS")

        logger.info(f"Starting TTS: voice={voice_name}, text_length={len(text)}")
        token, region = await self.token_manager.get_token()

        speech_config = speechsdk.SpeechConfig(
            subscription=None,
            region=region,
            auth_token=token
        )
        speech_config.speech_synthesis_voice_name = voice_name
        speech_config.set_speech_synthesis_output_format(self.OUTPUT_FORMAT)

        audio_config = speechsdk.audio.AudioOutputConfig(filename=str(output_path))
        synthesizer = speechsdk.SpeechSynthesizer(
            speech_config=speech_config,
            audio_config=audio_config
        )

        try:
            result = await asyncio.to_thread(lambda: synthesizer.speak_text_async(text).get())
        except RuntimeError as e:
            logger.error(f"TTS processing failed: {str(e)}", exc_info=True)
            raise SynthesisError(f"TTS processing failed: {str(e)}") from e
        finally:
            # 파일 핸들 해제
            del synthesizer

        if result.reason == speechsdk.ResultReason.SynthesizingAudioCompleted:
            logger.info(f"TTS success: {len(result.audio_data)} bytes -> {output_path.name}")
            return output_path

        if result.reason == speechsdk.ResultReason.Canceled:
            cancellation = result.cancellation_details
            error_msg = f"TTS canceled: {cancellation.reason}, {cancellation.error_details}"
        else:
            error_msg = f"Unexpected TTS result reason: {result.reason}"
        logger.error(error_msg)
        raise SynthesisError(error_msg)

    async def list_voices(self) -> List[Dict[str, Any]]:
        """
        사용 가능한 Azure Neural Voices 목록 조회

        Returns:
            List[Dict[str, Any]]: Azure voices/list 응답 그대로

        Raises:
            SynthesisError: 조회 실패 시
        """
        endpoint = (
            f"https://{self.config.AZURE_SPEECH_REGION}.tts.speech.microsoft.com"
            "/cognitiveservices/voices/list"
        )
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(
                    endpoint,
                    headers={"Ocp-Apim-Subscription-Key": self.config.AZURE_SPEECH_KEY},
                    timeout=aiohttp.ClientTimeout(total=10)
                ) as response:
                    response.raise_for_status()
                    voices = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Failed to list voices: {str(e)}")
            raise SynthesisError(f"Failed to list voices: {str(e)}") from e

        logger.info(f"Fetched {len(voices)} voices for region {self.config.AZURE_SPEECH_REGION}")
        return voices
