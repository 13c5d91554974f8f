import logging
from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings

from services.errors import ConfigurationError
from services.location_resolver import validate_location


logger = logging.getLogger(__name__)


class AppMode(str, Enum):
    DEV = "dev"
    PROD = "prod"


class AIBackend(str, Enum):
    # Gemini Developer API, authenticated with an API key
    GEMINI = "gemini"
    # Vertex AI, authenticated with a service account; region-aware
    VERTEX = "vertex"


class NoChangePolicy(str, Enum):
    # Echo the original image for targets equal to the current weight
    PASSTHROUGH = "passthrough"
    # Reject the whole request if any target equals the current weight
    REJECT = "reject"


class Settings(BaseSettings):
    # Application mode - defaults to DEV for safety
    APP_MODE: AppMode = AppMode.DEV

    # Debug mode - MUST be False in production
    DEBUG: bool = False

    LOG_LEVEL: str = "INFO"

    # Which generative backend serves image calls
    AI_BACKEND: AIBackend = AIBackend.GEMINI

    # Gemini Developer API
    GEMINI_API_KEY: str = ""

    # Vertex AI service account
    GOOGLE_PROJECT_ID: str = ""
    GOOGLE_CLIENT_EMAIL: str = ""
    GOOGLE_PRIVATE_KEY: str = ""
    GOOGLE_PRIVATE_KEY_ID: str = ""
    # Explicit region; when empty the region is picked from request geography
    GOOGLE_LOCATION: Optional[str] = None

    IMAGE_MODEL: str = "gemini-2.5-flash-image-preview"

    # Total attempts per target (first call included)
    GENERATION_MAX_RETRIES: int = Field(2, ge=1, le=10)
    GENERATION_BASE_DELAY_MS: int = Field(1000, ge=0)
    GENERATION_JITTER_MS: int = Field(100, ge=0)
    API_TIMEOUT_SECONDS: float = Field(120.0, gt=0)

    NO_CHANGE_POLICY: NoChangePolicy = NoChangePolicy.PASSTHROUGH

    # Reported when the backend image header cannot be read
    DEFAULT_IMAGE_WIDTH: int = Field(1024, gt=0)
    DEFAULT_IMAGE_HEIGHT: int = Field(1024, gt=0)

    @property
    def has_vertex_credentials(self) -> bool:
        return bool(self.GOOGLE_CLIENT_EMAIL and self.GOOGLE_PRIVATE_KEY)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra env variables


def _validate_settings(settings: Settings) -> Settings:
    """
    Validate settings and fail fast on misconfiguration.

    Raises ConfigurationError for an unsupported explicit region and, in
    production, for DEBUG or missing backend credentials.
    """
    if settings.GOOGLE_LOCATION and settings.GOOGLE_LOCATION.strip():
        validate_location(settings.GOOGLE_LOCATION)

    if settings.APP_MODE == AppMode.PROD:
        if settings.DEBUG:
            error_msg = (
                "DEBUG=True in production! "
                "Set DEBUG=False or remove the DEBUG environment variable."
            )
            logger.critical(error_msg)
            raise ConfigurationError(error_msg)

        if settings.AI_BACKEND == AIBackend.GEMINI and not settings.GEMINI_API_KEY:
            error_msg = "GEMINI_API_KEY is required when AI_BACKEND=gemini"
            logger.critical(error_msg)
            raise ConfigurationError(error_msg)

        if settings.AI_BACKEND == AIBackend.VERTEX and not (
            settings.has_vertex_credentials and settings.GOOGLE_PROJECT_ID
        ):
            error_msg = (
                "Google Cloud Service Account credentials are required when "
                "AI_BACKEND=vertex (GOOGLE_PROJECT_ID, GOOGLE_CLIENT_EMAIL, "
                "GOOGLE_PRIVATE_KEY)"
            )
            logger.critical(error_msg)
            raise ConfigurationError(error_msg)

    elif settings.AI_BACKEND == AIBackend.GEMINI and not settings.GEMINI_API_KEY:
        logger.warning("No GEMINI_API_KEY configured. Set it in .env")

    return settings


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Validated on first access; misconfiguration raises ConfigurationError.
    """
    settings = Settings()
    return _validate_settings(settings)
