import os
from functools import lru_cache
from typing import Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: Optional[str] = Field(None, alias="GYMIDLE_DATABASE_URL")
    database_pool_size: int = Field(10, alias="GYMIDLE_DATABASE_POOL_SIZE")
    database_max_overflow: int = Field(10, alias="GYMIDLE_DATABASE_MAX_OVERFLOW")
    database_echo: bool = Field(False, alias="GYMIDLE_DATABASE_ECHO")
    daily_reset_hour_utc: int = Field(0, ge=0, le=23, alias="GYMIDLE_DAILY_RESET_HOUR_UTC")
    max_conflict_retries: int = Field(3, ge=0, le=10, alias="GYMIDLE_MAX_CONFLICT_RETRIES")
    catalog_dir: Optional[str] = Field(None, alias="GYMIDLE_CATALOG_DIR")
    debug_endpoints: bool = Field(False, alias="GYMIDLE_DEBUG_ENDPOINTS")

    class Config:
        env_file = os.getenv("ENV_FILE", ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()  # type: ignore[arg-type]
    except ValidationError as exc:
        raise RuntimeError(f"Invalid backend configuration: {exc}") from exc
