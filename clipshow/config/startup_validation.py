"""
Startup Validation Module for ClipShow.

Validates the credentials and executables the episode pipeline depends on.
Reports per-service status so the app can start in a degraded mode and log
exactly what is missing.
"""

import logging
import shutil
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from enum import Enum

from .settings import Settings, get_settings

logger = logging.getLogger(__name__)


class ServiceStatus(Enum):
    """Status of a validated service."""
    AVAILABLE = "available"
    DEGRADED = "degraded"
    UNAVAILABLE = "unavailable"


@dataclass
class ValidationResult:
    """Result of a single validation check."""
    service: str
    status: ServiceStatus
    message: str
    required: bool = True
    details: Optional[Dict[str, Any]] = None


@dataclass
class StartupValidation:
    """Complete startup validation results."""
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    services: Dict[str, ValidationResult] = field(default_factory=dict)

    def add_result(self, result: ValidationResult):
        """Add a validation result."""
        self.services[result.service] = result

        if result.status == ServiceStatus.UNAVAILABLE:
            if result.required:
                self.is_valid = False
                self.errors.append(f"[{result.service}] {result.message}")
            else:
                self.warnings.append(f"[{result.service}] {result.message}")
        elif result.status == ServiceStatus.DEGRADED:
            self.warnings.append(f"[{result.service}] {result.message}")

    def log_summary(self):
        """Log validation summary."""
        for service, result in self.services.items():
            if result.status == ServiceStatus.AVAILABLE:
                logger.info(f"{service}: {result.status.value}")
            else:
                logger.warning(f"{service}: {result.status.value} - {result.message}")

        for error in self.errors:
            logger.error(f"Startup check failed: {error}")

        if self.is_valid:
            logger.info("Startup validation passed")
        else:
            logger.error("Startup validation failed - episode creation will not work")


def _validate_api_key(service: str, env_name: str, value: Optional[str], min_length: int = 20) -> ValidationResult:
    if not value:
        return ValidationResult(
            service=service,
            status=ServiceStatus.UNAVAILABLE,
            message=f"{env_name} environment variable not set.",
        )

    if len(value) < min_length:
        return ValidationResult(
            service=service,
            status=ServiceStatus.UNAVAILABLE,
            message=f"{env_name} appears to be invalid (too short).",
        )

    return ValidationResult(
        service=service,
        status=ServiceStatus.AVAILABLE,
        message=f"{service} configured",
    )


def validate_gemini_api(settings: Settings) -> ValidationResult:
    """Validate the Gemini key used by the content suggester."""
    return _validate_api_key("Gemini API", "GEMINI_API_KEY", settings.gemini_api_key)


def validate_elevenlabs(settings: Settings) -> ValidationResult:
    """Validate the ElevenLabs key used for narration."""
    return _validate_api_key("ElevenLabs", "ELEVENLABS_API_KEY", settings.elevenlabs_api_key)


def validate_youtube(settings: Settings) -> ValidationResult:
    """Validate the YouTube Data API key used for search."""
    return _validate_api_key("YouTube Data API", "YOUTUBE_API_KEY", settings.youtube_api_key)


def validate_supabase(settings: Settings) -> ValidationResult:
    """Validate Supabase credentials."""
    missing = []
    if not settings.supabase_url:
        missing.append("SUPABASE_URL")
    if not settings.supabase_service_key:
        missing.append("SUPABASE_SERVICE_KEY")

    if missing:
        return ValidationResult(
            service="Supabase",
            status=ServiceStatus.UNAVAILABLE,
            message=f"Missing environment variables: {', '.join(missing)}.",
            details={"missing": missing},
        )

    return ValidationResult(
        service="Supabase",
        status=ServiceStatus.AVAILABLE,
        message="Supabase configured",
    )


def validate_executable(name: str, binary: str) -> ValidationResult:
    """Check an external executable is on PATH."""
    path = shutil.which(binary)
    if not path:
        return ValidationResult(
            service=name,
            status=ServiceStatus.UNAVAILABLE,
            message=f"'{binary}' not found on PATH.",
        )

    return ValidationResult(
        service=name,
        status=ServiceStatus.AVAILABLE,
        message=f"Found {path}",
        details={"path": path},
    )


def run_startup_validation(
    settings: Optional[Settings] = None,
    exit_on_failure: bool = False,
    log_summary: bool = True,
) -> StartupValidation:
    """
    Run complete startup validation.

    Args:
        settings: Settings to validate (defaults to the cached settings)
        exit_on_failure: Exit process if validation fails
        log_summary: Log validation summary

    Returns:
        StartupValidation with all results
    """
    settings = settings or get_settings()
    validation = StartupValidation()

    validation.add_result(validate_gemini_api(settings))
    validation.add_result(validate_elevenlabs(settings))
    validation.add_result(validate_youtube(settings))
    validation.add_result(validate_supabase(settings))
    validation.add_result(validate_executable("ffmpeg", settings.ffmpeg_binary))
    validation.add_result(validate_executable("yt-dlp", settings.ytdlp_binary))

    if log_summary:
        validation.log_summary()

    if exit_on_failure and not validation.is_valid:
        logger.error("Startup validation failed. Exiting.")
        sys.exit(1)

    return validation


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run_startup_validation(exit_on_failure=True)
