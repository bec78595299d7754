"""Configuration management for the Maxemail transfer client."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )

    ENV: str = "local"
    SERVICE_NAME: str = "maxemail-transfer"
    SERVICE_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    # Connection Configuration
    MAXEMAIL_HOST: str = "mxm.xtremepush.com"
    MAXEMAIL_USER: str | None = None
    MAXEMAIL_PASS: str | None = None
    MAXEMAIL_USE_SSL: bool = True
    REQUEST_TIMEOUT: float | None = None  # seconds, None = no deadline

    # Transfer Configuration
    HELPER_LOG_LEVEL: str = "DEBUG"
    DOWNLOAD_DIR: str | None = None  # None = platform temp directory

    @property
    def base_url(self) -> str:
        """Build the service root URL from host and SSL flag."""
        scheme = "https" if self.MAXEMAIL_USE_SSL else "http"
        return f"{scheme}://{self.MAXEMAIL_HOST}"


# Singleton settings instance
settings = Settings()
