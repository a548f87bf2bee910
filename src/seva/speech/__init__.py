"""Text-to-speech for assistant replies."""

from .client import ElevenLabsSpeechClient, SpeechStream

__all__ = ["ElevenLabsSpeechClient", "SpeechStream"]
