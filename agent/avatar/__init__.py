"""
Avatar Agent module.
Provides the language-model reply generation for the talking avatar.
"""
from agent.avatar.reply_agent import AvatarReplyAgent, GenerationConfig

__all__ = ["AvatarReplyAgent", "GenerationConfig"]
