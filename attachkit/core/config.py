from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_root: str = Field(default=".", validation_alias="APP_ROOT")

    strict_deletes: bool = Field(default=False, validation_alias="ATTACHMENT_STRICT_DELETES")
    strict_thumbnails: bool = Field(default=True, validation_alias="ATTACHMENT_STRICT_THUMBNAILS")

    convert_bin: str = Field(default="convert", validation_alias="IMAGEMAGICK_CONVERT_BIN")
    identify_bin: str = Field(default="identify", validation_alias="IMAGEMAGICK_IDENTIFY_BIN")
    thumbnail_timeout_seconds: float = Field(default=30.0, validation_alias="THUMBNAIL_TIMEOUT_SECONDS")

    @computed_field
    @property
    def resolved_app_root(self) -> str:
        return str(Path(self.app_root).expanduser().resolve())


class AttachmentOptions(BaseModel):
    """Process-wide attachment behavior, fixed once constructed."""

    model_config = ConfigDict(frozen=True)

    app_root: str = "."
    strict_deletes: bool = False
    strict_thumbnails: bool = True
    convert_bin: str = "convert"
    identify_bin: str = "identify"
    thumbnail_timeout_seconds: float = 30.0

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> AttachmentOptions:
        settings = settings or get_settings()
        return cls(
            app_root=settings.resolved_app_root,
            strict_deletes=settings.strict_deletes,
            strict_thumbnails=settings.strict_thumbnails,
            convert_bin=settings.convert_bin,
            identify_bin=settings.identify_bin,
            thumbnail_timeout_seconds=settings.thumbnail_timeout_seconds,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
