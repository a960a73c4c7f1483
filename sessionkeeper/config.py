from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


def _find_env_file() -> str | None:
    cur = Path(__file__).resolve()
    for parent in [cur.parent, *cur.parents]:
        candidate = parent / ".env"
        if candidate.exists():
            return str(candidate)
    return None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=_find_env_file() or ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # storage
    STORE_BACKEND: str = "redis"  # "redis" | "memory"
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    STORE_KEY_PREFIX: str = "session:"

    # auth service
    AUTH_BASE_URL: str = "http://localhost:8080"
    AUTH_API_PREFIX: str = "/v1"
    HTTP_TIMEOUT_SEC: float = 8.0

    # credentials
    ACCESS_TOKEN_NAME: str = "jwt"
    REFRESH_TOKEN_NAME: str = "jwt_refresh"
    REFRESH_TTL_SEC: int = 7 * 24 * 60 * 60
    EXPIRY_LEEWAY_SEC: int = 0
    TOKEN_TYPE: str = "bearer"

    KEEPALIVE_INTERVAL_SEC: float = 0
    LOG_LEVEL: str = "INFO"


settings = Settings()
