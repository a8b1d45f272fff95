"""
Configuration loader for the background-removal upload service.

Environment variables are centralized here to keep the rest of the code
focused on request handling and to make operational tuning clear.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

OUTPUT_STORES = {"none", "local", "r2"}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Server
    host: str = Field("0.0.0.0")
    port: int = Field(5000, ge=1, le=65535)

    # Intake
    upload_dir: Path = Field(Path("uploads"))

    # External capability
    rembg_model: str = Field("u2net")
    process_timeout_seconds: Optional[float] = Field(None, gt=0)
    expose_error_detail: bool = Field(True)

    # Optional output persistence
    output_store: str = Field("none")
    outputs_dir: Path = Field(Path("outputs"))

    # Cloudflare R2 / S3-compatible storage
    r2_endpoint: Optional[str] = Field(None)
    r2_access_key_id: Optional[str] = Field(None)
    r2_secret_access_key: Optional[str] = Field(None)
    r2_bucket_name: Optional[str] = Field(None)
    r2_public_base_url: Optional[str] = Field(None)

    log_level: str = Field("INFO")

    @field_validator("output_store")
    @classmethod
    def validate_output_store(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in OUTPUT_STORES:
            raise ValueError("OUTPUT_STORE must be one of none|local|r2")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings to avoid reparsing env on every call."""
    return Settings()
