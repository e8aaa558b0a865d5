"""
OpenAI client singleton for shared use across all AI agents.
"""
from openai import AsyncOpenAI
from app.config import settings

# Global client instance
_client = None


def get_openai_client() -> AsyncOpenAI:
    """
    Get or create OpenAI client singleton.

    Only one client is created so HTTP connections are pooled across
    requests. The client is built lazily so the app can start (and serve
    the canned "missing API key" reply) without OPENAI_API_KEY set.

    Returns:
        AsyncOpenAI: Shared OpenAI client instance
    """
    global _client

    if _client is None:
        _client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY or "-")

    return _client
