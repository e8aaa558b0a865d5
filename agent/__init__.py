"""
AI Agent package for backend-python.
All AI agents inherit from BaseAgent and implement the process() method.
"""
from .base_agent import BaseAgent

__all__ = ["BaseAgent"]
