"""Process-level defaults, read from ``SPECGEN_*`` environment variables or ``.env``."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SPECGEN_", env_file=".env", extra="ignore")

    log_level: str = "INFO"
    output_format: str = "auto"


def get_settings() -> Settings:
    return Settings()
