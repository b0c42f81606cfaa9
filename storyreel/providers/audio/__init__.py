"""Narration (text-to-speech) providers"""

from .openai_tts import OpenAITTSProvider

__all__ = ["OpenAITTSProvider"]
