"""
Settings for the Identity API.

Values come from the process environment first, then from a .env file in
the working directory, then from the defaults below. .env.example lists
the variables an operator normally sets; the real .env is never committed.

Usage:
    from app.config import settings
    settings.SESSION_COOKIE_NAME
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Identity API configuration.

    SECRET_KEY has no default: the session cookie is signed with it, and
    starting without one must fail loudly.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    APP_NAME: str = "Identity API"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Any SQLAlchemy async URL; the default keeps a SQLite file under ./data
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/identity.db"

    # Provision every RoleName at startup. Self-registration depends on
    # the STUDENT row existing.
    SEED_ROLES_ON_STARTUP: bool = True

    # Form-login sessions
    SECRET_KEY: str
    SESSION_COOKIE_NAME: str = "identity_session"
    SESSION_MAX_AGE_SECONDS: int = 8 * 60 * 60

    # GET /api/usuarios
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    # Frontends allowed to call the API with credentials
    ALLOWED_ORIGINS: list[str] = ["http://localhost:3000"]


settings = Settings()
