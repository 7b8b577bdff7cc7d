"""
ElevenLabs Text-to-Speech integration for intro and transition narration
"""

from pathlib import Path
from typing import Optional, Union
import httpx
from pydantic import BaseModel
import logging

from ..intelligence.errors import SynthesisFailure

logger = logging.getLogger(__name__)


class VoiceConfig(BaseModel):
    """Configuration for the narrator voice"""

    voice_id: str
    model_id: str = "eleven_monolingual_v1"
    stability: float = 0.3
    similarity_boost: float = 0.7


class ElevenLabsTTS:
    """
    Narration synthesizer: one fixed voice, binary response written verbatim.
    """

    BASE_URL = "https://api.elevenlabs.io/v1"

    def __init__(
        self,
        api_key: Optional[str],
        voice: VoiceConfig,
        timeout: float = 60.0,
    ):
        self.api_key = api_key
        self.voice = voice
        self.timeout = timeout
        if not self.api_key:
            logger.warning("ELEVENLABS_API_KEY not set - narration will fail")

    @classmethod
    def from_settings(cls, settings) -> "ElevenLabsTTS":
        return cls(
            api_key=settings.elevenlabs_api_key,
            voice=VoiceConfig(
                voice_id=settings.elevenlabs_voice_id,
                model_id=settings.elevenlabs_model_id,
                stability=settings.elevenlabs_stability,
                similarity_boost=settings.elevenlabs_similarity_boost,
            ),
            timeout=settings.http_timeout_seconds,
        )

    async def synthesize(self, path: Union[str, Path], text: str) -> Path:
        """Generate speech for `text` and write it to `path`"""
        path = Path(path)
        if not text or not text.strip():
            raise SynthesisFailure(f"No text to synthesize for {path.name}")
        if not self.api_key:
            raise SynthesisFailure("ElevenLabs API key not configured")

        url = f"{self.BASE_URL}/text-to-speech/{self.voice.voice_id}/stream"

        headers = {
            "Accept": "audio/mpeg",
            "Content-Type": "application/json",
            "xi-api-key": self.api_key,
        }

        payload = {
            "text": text,
            "model_id": self.voice.model_id,
            "voice_settings": {
                "stability": self.voice.stability,
                "similarity_boost": self.voice.similarity_boost,
            },
        }

        logger.info(f"Generating audio for {path.name}")
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    url,
                    json=payload,
                    headers=headers,
                    timeout=self.timeout,
                )
        except httpx.HTTPError as e:
            raise SynthesisFailure(f"TTS request error for {path.name}: {e}") from e

        if response.status_code != 200:
            raise SynthesisFailure(
                f"TTS request failed: {response.status_code} - {response.text[:200]}"
            )

        path.write_bytes(response.content)
        logger.info(f"Saved audio: {path}")
        return path
