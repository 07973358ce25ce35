import os
import logging
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

load_dotenv()
logger = logging.getLogger(__name__)


class Settings(BaseModel):
    database_url: str = ""
    db_name: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = Field(5000, ge=1, le=65535)
    log_level: str = "INFO"
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    redis_url: Optional[str] = None
    rate_limit_per_minute: int = Field(60, ge=1)

    cloudinary_cloud_name: Optional[str] = None
    cloudinary_api_key: Optional[str] = None
    cloudinary_api_secret: Optional[str] = None

    upstream_connect_timeout: float = Field(10.0, gt=0)
    upstream_read_timeout: float = Field(30.0, gt=0)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value):
        if isinstance(value, str):
            return [o.strip() for o in value.split(",") if o.strip()] or ["*"]
        return value

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level


ENV_KEYS = {
    "database_url": "DATABASE_URL",
    "db_name": "DB_NAME",
    "host": "HOST",
    "port": "PORT",
    "log_level": "LOG_LEVEL",
    "cors_origins": "CORS_ORIGINS",
    "redis_url": "REDIS_URL",
    "rate_limit_per_minute": "RATE_LIMIT_PER_MINUTE",
    "cloudinary_cloud_name": "CLOUDINARY_CLOUD_NAME",
    "cloudinary_api_key": "CLOUDINARY_API_KEY",
    "cloudinary_api_secret": "CLOUDINARY_API_SECRET",
    "upstream_connect_timeout": "UPSTREAM_CONNECT_TIMEOUT",
    "upstream_read_timeout": "UPSTREAM_READ_TIMEOUT",
}


def load_settings(environ=None) -> Settings:
    """Build Settings from the environment; unset or empty variables keep their defaults.

    Raises pydantic.ValidationError on malformed values (e.g. a non-numeric PORT).
    """
    environ = os.environ if environ is None else environ
    values = {}
    for field, key in ENV_KEYS.items():
        raw = environ.get(key)
        if raw is not None and raw.strip() != "":
            values[field] = raw.strip()
    return Settings(**values)


@lru_cache
def get_settings() -> Settings:
    return load_settings()
