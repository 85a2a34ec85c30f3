from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_NAME = "grub-pbkdf2"
PACKAGE_NAME = "GRUB"
APP_VERSION = "2.0.0"


class Settings(BaseSettings):
    """工具配置。"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True)

    iteration_count: int = Field(default=10000, alias="GRUB_PBKDF2_ITERATION_COUNT")
    buflen: int = Field(default=64, alias="GRUB_PBKDF2_BUFLEN")
    saltlen: int = Field(default=64, alias="GRUB_PBKDF2_SALTLEN")

    random_device: str = Field(default="/dev/random", alias="GRUB_PBKDF2_RANDOM_DEVICE")
    tty_device: str = Field(default="/dev/tty", alias="GRUB_PBKDF2_TTY_DEVICE")

    log_level: str = Field(default="WARNING", alias="GRUB_PBKDF2_LOG_LEVEL")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"未知日志级别: {value}")
        return level

    @property
    def random_device_path(self) -> Path:
        return Path(self.random_device)

    @property
    def tty_device_path(self) -> Path:
        return Path(self.tty_device)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
