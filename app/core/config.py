from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Everything has a local-development default, so the app boots
    without a .env file.

    OAuth providers (optional, each needs both id and secret):
      - GOOGLE_CLIENT_ID / GOOGLE_CLIENT_SECRET
      - FACEBOOK_CLIENT_ID / FACEBOOK_CLIENT_SECRET
      - DISCORD_CLIENT_ID / DISCORD_CLIENT_SECRET

    A provider without credentials is simply not registered.
    """

    PROJECT_NAME: str = "Shop Session Backend"
    ENVIRONMENT: str = "development"

    # Flat-file user store
    USERS_FILE: str = "users.json"

    # Static frontend, served at "/" if the directory exists
    STATIC_DIR: str = "public"

    # Session cookie
    SESSION_NAME: str = "connect.sid"
    SESSION_SECRET: str = "changeme_local_secret"
    SESSION_MAX_AGE: int = 24 * 60 * 60

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # OAuth providers
    GOOGLE_CLIENT_ID: str | None = None
    GOOGLE_CLIENT_SECRET: str | None = None
    GOOGLE_CALLBACK_URL: str = "http://localhost:3000/auth/google/callback"

    FACEBOOK_CLIENT_ID: str | None = None
    FACEBOOK_CLIENT_SECRET: str | None = None
    FACEBOOK_CALLBACK_URL: str = "http://localhost:3000/auth/facebook/callback"

    DISCORD_CLIENT_ID: str | None = None
    DISCORD_CLIENT_SECRET: str | None = None
    DISCORD_CALLBACK_URL: str = "http://localhost:3000/auth/discord/callback"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    def provider_credentials(self, provider: str) -> tuple[str, str] | None:
        """
        Return (client_id, client_secret) for a provider, or None
        if either one is missing.
        """
        prefix = provider.upper()
        client_id = getattr(self, f"{prefix}_CLIENT_ID", None)
        client_secret = getattr(self, f"{prefix}_CLIENT_SECRET", None)
        if not (client_id and client_secret):
            return None
        return client_id, client_secret

    def callback_url(self, provider: str) -> str:
        return getattr(self, f"{provider.upper()}_CALLBACK_URL")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
