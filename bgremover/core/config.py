from functools import lru_cache

from pydantic_settings import BaseSettings

from bgremover.utils.secrets import get_secret_or_env, parse_list_secret


class Settings(BaseSettings):
    """Application settings loaded from environment variables and Secret Manager.

    Configuration is loaded from:
    1. Environment variables (local dev)
    2. .env file (if present)
    3. Google Cloud Secret Manager (production, secrets only)

    Example:
        GEMINI_API_KEY=...
        GEMINI_MODEL=gemini-2.5-flash-image
        MAX_UPLOAD_SIZE_MB=10
    """

    # API Configuration
    api_host: str = "0.0.0.0"  # API server bind address
    api_port: int = 8000  # API server port
    debug: bool = False  # Enable debug mode (verbose logs, error details)

    # Google Cloud Platform Configuration
    google_cloud_project: str = ""  # GCP project ID (enables Secret Manager)

    # Remote inference
    gemini_model: str = "gemini-2.5-flash-image"  # Image-capable Gemini model

    # Uploads & results
    max_upload_size_mb: int = 10  # Largest accepted upload
    download_filename: str = "background-removed.png"  # Name offered for downloads
    loading_refresh_seconds: int = 2  # Page refresh interval while loading

    # Secrets (loaded from Secret Manager in production, env vars in dev)
    _gemini_api_key: str | None = None
    _cors_origins: list[str] | None = None

    @property
    def gemini_api_key(self) -> str | None:
        """Get the Gemini API key from the environment or Secret Manager."""
        if self._gemini_api_key is None:
            self._gemini_api_key = get_secret_or_env(
                self.google_cloud_project,
                "gemini-api-key",
                "GEMINI_API_KEY",
                fallback_env_vars=("API_KEY",),
            )
        return self._gemini_api_key

    @property
    def cors_origins(self) -> list[str] | None:
        """Get CORS origins from Secret Manager or environment."""
        if self._cors_origins is None:
            secret_value = get_secret_or_env(
                self.google_cloud_project,
                "cors-origins",
                "CORS_ORIGINS"
            )
            self._cors_origins = parse_list_secret(secret_value)
        return self._cors_origins

    @property
    def max_upload_size(self) -> int:
        """Upload limit in bytes."""
        return self.max_upload_size_mb * 1024 * 1024

    def is_production(self) -> bool:
        """Check if running in production mode.

        Returns:
            bool: True if debug=False and GCP project is configured
        """
        return not self.debug and self.google_cloud_project != ""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Settings are loaded once and reused throughout the application lifecycle.

    Returns:
        Settings: The application settings instance
    """
    return Settings()


settings = get_settings()
