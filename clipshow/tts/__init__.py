from .elevenlabs_tts import ElevenLabsTTS, VoiceConfig

__all__ = ["ElevenLabsTTS", "VoiceConfig"]
