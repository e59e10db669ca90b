import secrets

from pydantic_settings import BaseSettings


def _generate_dev_secret() -> str:
    """Generate a random secret for local development only."""
    return secrets.token_hex(32)


class Settings(BaseSettings):
    # App
    app_name: str = "Smart Campus Assistant"
    debug: bool = False
    environment: str = "development"  # development, production
    log_level: str = ""  # DEBUG, INFO, WARNING, ERROR, CRITICAL (empty = auto based on environment)
    log_to_file: bool = True

    # Database (SQLite for local dev, PostgreSQL for production)
    database_url: str = "sqlite:///./campus_assistant.db"

    # JWT: must be set via SECRET_KEY env var in production.
    # In development, a random key is generated per-process if not set.
    secret_key: str = ""
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7

    # Frontend / CORS (comma-separated origins)
    frontend_url: str = "http://localhost:5173"
    allowed_origins: str = ""

    # Rate limiting on auth endpoints
    rate_limit_enabled: bool = True

    # Anthropic Claude
    anthropic_api_key: str = ""
    claude_model: str = "claude-sonnet-4-5-20250929"

    # Prompt context bounds (characters of document text sent to the model)
    chat_context_chars: int = 8000
    summary_context_chars: int = 6000
    quiz_context_chars: int = 6000
    summary_timeout_seconds: float = 20.0

    # Uploads
    upload_dir: str = "./uploads"
    max_upload_size_mb: int = 25

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()

# Validate secret key
_KNOWN_WEAK_KEYS = {"your-secret-key-change-in-production", "changeme", "secret", ""}

if settings.secret_key in _KNOWN_WEAK_KEYS:
    if settings.environment == "production":
        raise RuntimeError(
            "SECRET_KEY is not set or uses a known weak default. "
            "Set a strong SECRET_KEY env var (e.g. `openssl rand -hex 32`)."
        )
    settings.secret_key = _generate_dev_secret()
