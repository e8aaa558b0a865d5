"""
Azure Speech Token Manager (싱글톤 패턴)

Azure Speech SDK 인증 토큰을 발급하고 캐싱하는 유틸리티입니다.
aiohttp를 사용한 비동기 토큰 발급으로 블로킹을 방지합니다.
"""
import logging
import aiohttp
import asyncio
from datetime import datetime, timedelta
from typing import Optional, Tuple

from app.config import settings
from app.core.exceptions import SynthesisError

logger = logging.getLogger(__name__)


class AzureSpeechTokenManager:
    """
    Azure Speech Service 토큰 관리자 (싱글톤)

    Features:
    - 토큰 비동기 발급 (aiohttp 사용, 논블로킹)
    - 9분 캐싱 (10분 유효 기간, 1분 여유)

    Example:
        >>> manager = AzureSpeechTokenManager.get_instance()
        >>> token, region = await manager.get_token()
    """

    _instance: Optional['AzureSpeechTokenManager'] = None

    def __init__(self, api_key: str, region: str):
        self.api_key = api_key
        self.region = region
        self.token_endpoint = f"https://{region}.api.cognitive.microsoft.com/sts/v1.0/issueToken"

        self._cached_token: Optional[str] = None
        self._token_expiry: Optional[datetime] = None
        self._lock = asyncio.Lock()

        logger.info(f"Azure Speech Token Manager initialized for region: {self.region}")

    @classmethod
    def get_instance(cls) -> 'AzureSpeechTokenManager':
        """싱글톤 인스턴스 반환 (전역 settings 사용)"""
        if cls._instance is None:
            cls._instance = cls(settings.AZURE_SPEECH_KEY, settings.AZURE_SPEECH_REGION)
        return cls._instance

    async def get_token(self) -> Tuple[str, str]:
        """
        Azure Speech 토큰 발급 (캐싱 포함, 비동기)

        Returns:
            Tuple[str, str]: (token, region)

        Raises:
            SynthesisError: Azure 토큰 발급 실패
        """
        if self._is_token_valid():
            return self._cached_token, self.region

        async with self._lock:
            # 락 획득 후 다시 캐시 확인 (다른 코루틴이 이미 갱신했을 수 있음)
            if self._is_token_valid():
                return self._cached_token, self.region

            logger.info(f"🔑 Requesting new Azure Speech token from region: {self.region}")
            start_time = datetime.now()

            try:
                async with aiohttp.ClientSession() as session:
                    async with session.post(
                        self.token_endpoint,
                        headers={"Ocp-Apim-Subscription-Key": self.api_key},
                        timeout=aiohttp.ClientTimeout(total=10)
                    ) as response:
                        response.raise_for_status()
                        token = await response.text()

            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                elapsed = (datetime.now() - start_time).total_seconds()
                logger.error(f"❌ Failed to get Azure Speech token after {elapsed:.2f}s: {str(e)}")
                raise SynthesisError(f"Failed to issue Azure Speech token: {str(e)}") from e

            self._cached_token = token
            self._token_expiry = datetime.now() + timedelta(minutes=9)

            elapsed = (datetime.now() - start_time).total_seconds()
            logger.info(f"✅ Azure Speech token issued in {elapsed:.2f}s")
            return self._cached_token, self.region

    def _is_token_valid(self) -> bool:
        if self._cached_token is None or self._token_expiry is None:
            return False
        return datetime.now() < self._token_expiry

    async def prefetch_token(self) -> bool:
        """
        토큰 사전 발급 (앱 시작 시 호출)

        Returns:
            bool: 성공 여부
        """
        try:
            await self.get_token()
            return True
        except SynthesisError as e:
            logger.warning(f"⚠️ Failed to pre-fetch Azure Speech token: {e}")
            return False
