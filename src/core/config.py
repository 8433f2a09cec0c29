from typing import Literal, Optional

from pydantic import Field, validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    app_name: str = Field(default="deadline-io", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment mode"
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", description="Log output format"
    )

    # I/O settings
    read_chunk_size: int = Field(
        default=2048, gt=0, description="Chunk size used by read_all in bytes"
    )
    io_worker_threads: Optional[int] = Field(
        default=None,
        gt=0,
        description="Worker threads running blocking syscalls (None: stdlib default)",
    )
    default_timeout_ms: Optional[float] = Field(
        default=None,
        ge=0,
        description="Timeout applied by the CLI when --timeout is omitted",
    )

    @validator("log_format", pre=True)
    def validate_log_format(cls, v, values):
        if "environment" in values:
            if values["environment"] == "production":
                return "json"
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


settings = get_settings()
