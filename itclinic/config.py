# itclinic/config.py
import logging
from typing import List, Optional

from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_JWT_SECRET = "change-me"


class StartupValidationError(Exception):
    """Raised when critical configuration is missing or unusable."""


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./itclinic.db"

    # Tokens are issued by the hosted auth provider; we only verify them.
    JWT_SECRET: str = DEFAULT_JWT_SECRET
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: Optional[str] = None

    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "*"

    SEED_DATA: bool = True
    ADMIN_EMAILS: str = ""

    class Config:
        env_file = ".env"

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def admin_emails(self) -> List[str]:
        return [e.strip().lower() for e in self.ADMIN_EMAILS.split(",") if e.strip()]


def validate_startup_config(config: Settings) -> None:
    """Fail fast on configuration the service cannot run with."""
    failures = []
    if not config.DATABASE_URL:
        failures.append("DATABASE_URL is empty")
    if not config.JWT_SECRET:
        failures.append("JWT_SECRET is empty")
    elif config.JWT_SECRET == DEFAULT_JWT_SECRET and not config.DEBUG:
        failures.append("JWT_SECRET is the default placeholder; set it or enable DEBUG")
    if config.JWT_ALGORITHM not in ("HS256", "HS384", "HS512"):
        failures.append(f"JWT_ALGORITHM must be an HMAC algorithm, got {config.JWT_ALGORITHM!r}")
    if logging.getLevelName(config.LOG_LEVEL.upper()) not in (10, 20, 30, 40, 50):
        failures.append(f"LOG_LEVEL is not a logging level: {config.LOG_LEVEL!r}")

    if failures:
        raise StartupValidationError("; ".join(failures))
    logger.info("Configuration validated (database=%s)", config.DATABASE_URL.split("://", 1)[0])


settings = Settings()
