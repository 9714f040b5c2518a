"""
Settings configuration for Slidesmith.
"""
import os
from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import AliasChoices, Field


class Settings(BaseSettings):
    """Application settings."""

    # App settings
    APP_ENV: str = Field("development", env="APP_ENV")
    # Diagnostic mode: error details and raw-response captures are exposed
    DEBUG: bool = Field(False, env="DEBUG")
    LOG_LEVEL: str = Field("INFO", env="LOG_LEVEL")

    # API settings
    API_HOST: str = Field("0.0.0.0", env="API_HOST")
    API_PORT: int = Field(3001, validation_alias=AliasChoices("PORT", "API_PORT"))
    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["*"], env="CORS_ORIGINS")

    # Logging
    LOGFIRE_TOKEN: Optional[str] = Field(None, env="LOGFIRE_TOKEN")

    # Hosted backend (Gemini)
    # Either an API key or a Vertex AI service account is required
    GEMINI_API_KEY: Optional[str] = Field(None, env="GEMINI_API_KEY")
    GCP_ENABLED: bool = Field(False, env="GCP_ENABLED")
    GCP_PROJECT_ID: Optional[str] = Field(None, env="GCP_PROJECT_ID")
    GCP_LOCATION: str = Field("us-central1", env="GCP_LOCATION")
    GCP_SERVICE_ACCOUNT_JSON: Optional[str] = Field(None, env="GCP_SERVICE_ACCOUNT_JSON")

    HOSTED_MODEL_NAME: str = Field("gemini-2.5-flash", env="HOSTED_MODEL_NAME")
    HOSTED_TEMPERATURE: float = Field(0.7, ge=0.0, le=2.0, env="HOSTED_TEMPERATURE")
    HOSTED_TOP_P: float = Field(0.8, ge=0.0, le=1.0, env="HOSTED_TOP_P")
    HOSTED_TOP_K: int = Field(40, env="HOSTED_TOP_K")
    HOSTED_MAX_OUTPUT_TOKENS: int = Field(4096, env="HOSTED_MAX_OUTPUT_TOKENS")
    HOSTED_TIMEOUT: int = Field(120, env="HOSTED_TIMEOUT")

    # Local backend (OpenAI-compatible chat completions, LM Studio by default)
    # Local inference is slow: the timeout is an order of magnitude above the hosted one
    LOCAL_MODEL_URL: str = Field("http://localhost:1234", env="LOCAL_MODEL_URL")
    LOCAL_MODEL_NAME: Optional[str] = Field(None, env="LOCAL_MODEL_NAME")
    LOCAL_TEMPERATURE: float = Field(0.1, ge=0.0, le=2.0, env="LOCAL_TEMPERATURE")
    LOCAL_MAX_TOKENS: int = Field(8192, env="LOCAL_MAX_TOKENS")
    LOCAL_TIMEOUT: int = Field(1200, env="LOCAL_TIMEOUT")

    # Generation pipeline
    PROMPT_DIR: Optional[str] = Field(
        None,
        env="PROMPT_DIR",
        description="Directory holding hosted_prompt.txt and local_prompt.txt (default: config/prompts)"
    )
    TOPIC_MAX_LENGTH: int = Field(200, env="TOPIC_MAX_LENGTH")
    SOURCE_TEXT_MAX_CHARS: int = Field(10000, env="SOURCE_TEXT_MAX_CHARS")
    MAX_IMAGES_PER_SLIDE: int = Field(4, ge=1, env="MAX_IMAGES_PER_SLIDE")
    STRICT_FRAGMENT_EXTRACTION: bool = Field(
        False,
        env="STRICT_FRAGMENT_EXTRACTION",
        description="Use a balanced-bracket scan instead of the last-closing-bracket heuristic"
    )

    # Uploads and temporary images
    MAX_UPLOAD_BYTES: int = Field(10 * 1024 * 1024, env="MAX_UPLOAD_BYTES")
    ALLOWED_UPLOAD_EXTENSIONS: List[str] = Field(
        default_factory=lambda: [".pdf", ".docx", ".txt"],
        env="ALLOWED_UPLOAD_EXTENSIONS"
    )
    UPLOAD_DIR: str = Field("uploads", env="UPLOAD_DIR")
    TEMP_IMAGE_DIR: str = Field("temp_images", env="TEMP_IMAGE_DIR")
    TEMP_IMAGE_MAX_AGE_HOURS: int = Field(24, ge=1, env="TEMP_IMAGE_MAX_AGE_HOURS")
    DEBUG_CAPTURE_DIR: str = Field("debug_captures", env="DEBUG_CAPTURE_DIR")

    # Image search proxy (Unsplash)
    UNSPLASH_ACCESS_KEY: Optional[str] = Field(None, env="UNSPLASH_ACCESS_KEY")
    IMAGE_SEARCH_THROTTLE_SECONDS: float = Field(5.0, ge=0.0, env="IMAGE_SEARCH_THROTTLE_SECONDS")
    IMAGE_SEARCH_TIMEOUT: int = Field(10, env="IMAGE_SEARCH_TIMEOUT")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env

    @property
    def has_hosted_credentials(self) -> bool:
        """Check if the hosted backend has a usable credential."""
        if self.GEMINI_API_KEY:
            return True
        return bool(self.GCP_ENABLED and self.GCP_SERVICE_ACCOUNT_JSON)

    @property
    def has_image_search(self) -> bool:
        return bool(self.UNSPLASH_ACCESS_KEY)

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.APP_ENV.lower() == "production" or os.environ.get('RAILWAY_PROJECT_ID') is not None

    def validate_settings(self) -> None:
        """
        Validate that settings are consistent.

        Missing backend credentials are not fatal here: the local backend may be
        the only one in use, and the hosted backend reports its own
        configuration problem when selected.
        """
        if self.GCP_ENABLED and not self.GEMINI_API_KEY and not self.GCP_SERVICE_ACCOUNT_JSON:
            raise ValueError(
                "GCP_ENABLED is true but GCP_SERVICE_ACCOUNT_JSON is not set.\n"
                "Paste the service account key JSON into GCP_SERVICE_ACCOUNT_JSON or set GEMINI_API_KEY."
            )

        if not self.has_hosted_credentials:
            from src.utils.logger import setup_logger
            logger = setup_logger(__name__)
            logger.warning(
                "Hosted backend has no credential: set GEMINI_API_KEY or "
                "GCP_ENABLED + GCP_SERVICE_ACCOUNT_JSON to enable it"
            )


def get_settings() -> Settings:
    """Get a settings instance built from the current environment."""
    return Settings()


# For modules that read settings once at import
settings = get_settings()
