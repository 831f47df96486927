from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="DECKVAULT_")

    app_name: str = "DeckVault"
    debug: bool = False
    log_level: str = "INFO"

    database_url: str = "postgresql+asyncpg://localhost:5432/deckvault"

    # Comma separated list of allowed CORS origins
    cors_origins: str = "http://localhost:4200"

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


settings = Settings()


# =============================================================================
# PAGINATION LIMITS
# =============================================================================

DEFAULT_PAGE = 1

# Used whenever the requested limit is missing or outside [1, MAX_PAGE_LIMIT]
DEFAULT_PAGE_LIMIT = 10

MAX_PAGE_LIMIT = 100
