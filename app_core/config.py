import os
from dataclasses import dataclass, field, replace
from datetime import timedelta

from dotenv import load_dotenv
from flask import current_app

EXTENSION_KEY = "moviecatalog"
DEFAULT_SECRET = "dev-secret"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(name)
    if not raw:
        return default
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
    """Read-only process configuration, built once and handed to every component."""

    secret_key: str = DEFAULT_SECRET
    jwt_secret: str = DEFAULT_SECRET
    jwt_algorithm: str = "HS256"
    token_ttl: timedelta = timedelta(days=7)
    database_url: str | None = None
    bcrypt_rounds: int = 12
    default_page_size: int = 10
    max_page_size: int = 100
    cors_origins: tuple[str, ...] = field(default=("http://localhost:3000",))
    log_level: str = "INFO"
    testing: bool = False

    @classmethod
    def from_env(cls, **overrides) -> "Settings":
        load_dotenv()
        secret_key = os.getenv("SECRET_KEY", DEFAULT_SECRET)
        settings = cls(
            secret_key=secret_key,
            jwt_secret=os.getenv("JWT_SECRET") or secret_key,
            token_ttl=timedelta(hours=_env_int("JWT_EXPIRES_HOURS", 7 * 24)),
            database_url=os.getenv("DATABASE_URL") or None,
            bcrypt_rounds=_env_int("BCRYPT_ROUNDS", 12),
            default_page_size=_env_int("DEFAULT_PAGE_SIZE", 10),
            max_page_size=_env_int("MAX_PAGE_SIZE", 100),
            cors_origins=_env_list("CORS_ORIGINS", ("http://localhost:3000",)),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
        return replace(settings, **overrides) if overrides else settings

    @property
    def uses_default_secret(self) -> bool:
        return self.jwt_secret == DEFAULT_SECRET


def get_services():
    """Components built by create_app for the current application."""
    return current_app.extensions[EXTENSION_KEY]
