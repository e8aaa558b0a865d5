"""
모든 AI Agent의 베이스 클래스.
공유된 OpenAI 클라이언트를 제공하고 process() 인터페이스를 정의합니다.
"""
from abc import ABC, abstractmethod
from typing import Optional

from openai import AsyncOpenAI
from app.core.openai_client import get_openai_client


class BaseAgent(ABC):
    """
    모든 AI Agent의 추상 베이스 클래스.

    모든 AI Agent는 다음을 준수해야 합니다:
    1. BaseAgent를 상속받을 것
    2. process() 메서드를 구현할 것
    3. OpenAI API 호출 시 self.client를 사용할 것

    client를 넘기지 않으면 싱글톤 OpenAI 클라이언트를 공유합니다.
    테스트에서는 가짜 클라이언트를 주입할 수 있습니다.
    """

    def __init__(self, client: Optional[AsyncOpenAI] = None):
        self.client: AsyncOpenAI = client or get_openai_client()

    @abstractmethod
    async def process(self, *args, **kwargs):
        """
        각 Agent가 반드시 구현해야 하는 핵심 처리 메서드.

        Raises:
            Exception: AI 처리 실패 시
        """
        pass
