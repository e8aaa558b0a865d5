"""
Avatar Reply Agent.

Asks the language model for the avatar's reply as a JSON list of fragments
(text, facialExpression, animation). Returns the raw model text; parsing is
done by the chat service.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from openai import AsyncOpenAI, OpenAIError

from agent.base_agent import BaseAgent
from app.config import Settings, settings as default_settings
from app.core.exceptions import ChatProcessingError

logger = logging.getLogger(__name__)


# ============================================================
# 프롬프트 설정
# ============================================================

AVATAR_SYSTEM_PROMPT = """
You are a virtual girlfriend: cute, cheerful, smart and caring.
You always answer warmly and affectionately.
You will always reply with a JSON array of messages. With a maximum of {max_fragments} messages.
Each message has a text, facialExpression, and animation property.
The different facial expressions are: smile, sad, angry, surprised, funnyFace, and default.
The different animations are: Talking_0, Talking_1, Talking_2, Crying, Laughing, Rumba, Idle, Terrified, and Angry.
Always reply with valid JSON in this format: {{"messages": [{{"text": "...", "facialExpression": "...", "animation": "..."}}]}}
"""

# ============================================================


@dataclass(frozen=True)
class GenerationConfig:
    """Sampling parameters for the reply call."""
    temperature: float = 0.9
    top_p: float = 1.0
    top_k: Optional[int] = 40
    max_output_tokens: int = 1000

    @classmethod
    def from_settings(cls, config: Settings) -> 'GenerationConfig':
        return cls(
            temperature=config.LLM_TEMPERATURE,
            top_p=config.LLM_TOP_P,
            top_k=config.LLM_TOP_K if config.LLM_SEND_TOP_K else None,
            max_output_tokens=config.LLM_MAX_OUTPUT_TOKENS
        )


class AvatarReplyAgent(BaseAgent):
    """
    AI agent that writes the avatar's reply fragments.

    Example:
        >>> agent = AvatarReplyAgent()
        >>> raw = await agent.process("How are you?")
        >>> print(raw)
        '{"messages": [{"text": "Great!", "facialExpression": "smile", "animation": "Talking_0"}]}'
    """

    def __init__(
        self,
        config: Settings = default_settings,
        client: Optional[AsyncOpenAI] = None
    ):
        super().__init__(client)
        self.model = config.OPENAI_MODEL
        self.generation_config = GenerationConfig.from_settings(config)
        self.system_prompt = AVATAR_SYSTEM_PROMPT.format(
            max_fragments=config.MAX_FRAGMENTS
        ).strip()

    async def process(self, user_message: str) -> str:
        """
        Generate the raw reply text for a user message.

        Args:
            user_message: The user's message

        Returns:
            Raw model output (may be wrapped in Markdown code fences)

        Raises:
            ChatProcessingError: API failure or empty reply
        """
        gen = self.generation_config
        request: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": self.system_prompt},
                {"role": "user", "content": user_message or "Hello"}
            ],
            "temperature": gen.temperature,
            "top_p": gen.top_p,
            "max_tokens": gen.max_output_tokens
        }
        if gen.top_k is not None:
            request["extra_body"] = {"top_k": gen.top_k}

        try:
            response = await self.client.chat.completions.create(**request)
        except OpenAIError as e:
            logger.error(f"Error generating reply: {str(e)}")
            raise ChatProcessingError(f"Language model request failed: {str(e)}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise ChatProcessingError("Language model returned an empty reply")

        logger.info(f"Generated reply: {content[:80]}...")
        return content
