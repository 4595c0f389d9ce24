from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./news.db"
    # Empty means sessions are kept in-process.
    REDIS_URL: str = ""
    APP_ENV: str = "development"
    DEBUG: bool = False
    SECRET_KEY: str = "change-me-in-production"

    # Sessions
    SESSION_COOKIE: str = "newsdesk_session"
    SESSION_TTL_SECONDS: int = 60 * 60 * 24

    # Auth
    BCRYPT_ROUNDS: int = 10
    DEFAULT_ADMIN_NAME: str = "Admin"
    DEFAULT_ADMIN_EMAIL: str = "admin@example.com"
    DEFAULT_ADMIN_PASSWORD: str = "admin123"

    # Files
    UPLOAD_DIR: str = "uploads"
    PUBLIC_DIR: str = "public"
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024

    # Keep the first publish time when a published article is re-saved.
    PRESERVE_PUBLISH_TIME: bool = True

    # Server
    HOST: str = "127.0.0.1"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
