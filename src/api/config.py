import os
from typing import List


def _split_env_list(value: str) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item and item.strip()]


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    """Centralized application settings loaded from environment variables.

    This keeps security-sensitive values (JWT secrets, object store keys) and
    cross-cutting config (CORS, rate limits, logging) in one place.
    """

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "")
    DB_AUTO_CREATE: bool = _env_flag("DB_AUTO_CREATE")

    # JWT / Auth
    SECRET_KEY: str = os.getenv("SECRET_KEY", "")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
    JWT_ISSUER: str | None = os.getenv("JWT_ISSUER") or None
    JWT_AUDIENCE: str | None = os.getenv("JWT_AUDIENCE") or None

    # CORS
    # Comma-separated list, e.g. "http://localhost:3000,http://localhost:5173"
    _cors_origins_env: str = os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://localhost:5173,http://localhost:8000",
    )
    CORS_ORIGINS: List[str] = _split_env_list(_cors_origins_env)

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = _env_flag("RATE_LIMIT_ENABLED", "1")
    RATE_LIMIT_DEFAULT: str = os.getenv("RATE_LIMIT_DEFAULT", "100/minute")

    # Media storage (any S3-compatible endpoint: MinIO locally, AWS in prod)
    MEDIA_ENDPOINT: str | None = os.getenv("MEDIA_ENDPOINT") or None
    MEDIA_ACCESS_KEY: str | None = os.getenv("MEDIA_ACCESS_KEY") or None
    MEDIA_SECRET_KEY: str | None = os.getenv("MEDIA_SECRET_KEY") or None
    MEDIA_REGION: str = os.getenv("MEDIA_REGION", "us-east-1")
    MEDIA_BUCKET: str = os.getenv("MEDIA_BUCKET", "vidtube-media")
    # Base URL used to build public asset links; defaults to <endpoint>/<bucket>
    MEDIA_PUBLIC_URL: str | None = os.getenv("MEDIA_PUBLIC_URL") or None

    # Local spool directory for multipart uploads before they reach the store
    UPLOAD_TMP_DIR: str | None = os.getenv("UPLOAD_TMP_DIR") or None


settings = Settings()
