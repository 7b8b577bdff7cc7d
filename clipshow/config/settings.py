"""
Configuration settings for the ClipShow episode builder
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Google Gemini (content suggester)
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.0-flash"
    gemini_temperature: float = 0.7

    # ElevenLabs (narration)
    elevenlabs_api_key: Optional[str] = None
    elevenlabs_voice_id: str = "fJE3lSefh7YI494JMYYz"
    elevenlabs_model_id: str = "eleven_monolingual_v1"
    elevenlabs_stability: float = 0.3
    elevenlabs_similarity_boost: float = 0.7

    # YouTube Data API (video search)
    youtube_api_key: Optional[str] = None
    search_results_per_query: int = 5
    search_queries_per_topic: int = 3
    caption_languages: list[str] = Field(default_factory=lambda: ["en", "en-GB", "en-US"])

    # Supabase (storage + metadata)
    supabase_url: Optional[str] = None
    supabase_service_key: Optional[str] = None
    storage_bucket: str = "audio-files"
    episodes_table: str = "episodes"
    intros_table: str = "intros"
    clips_table: str = "clips"
    transitions_table: str = "transitions"

    # Assembly
    work_dir: str = "work"
    topic_concurrency: int = 1
    skip_topic_on_media_failure: bool = True
    skip_topic_on_synthesis_failure: bool = False
    treat_zero_boundary_as_missing: bool = True
    keep_artifacts: bool = False

    # External tools
    ffmpeg_binary: str = "ffmpeg"
    ytdlp_binary: str = "yt-dlp"
    audio_codec: str = "libmp3lame"
    http_timeout_seconds: float = 60.0

    # Logging
    log_level: str = "INFO"
    log_dir: Optional[str] = "logs"

    # Server
    host: str = "0.0.0.0"
    port: int = 5000
    debug: bool = False


@lru_cache
def get_settings() -> Settings:
    """Get application settings singleton"""
    return Settings()
