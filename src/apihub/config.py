"""Settings loaded from the environment (``APIHUB_*``) or a ``.env`` file."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="APIHUB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    yapi_url: str = Field("", description="YAPI server, e.g. http://yapi.example.com")
    yapi_token: str = Field("", description="YAPI project token")
    yapi_project_id: int = Field(0, description="YAPI numeric project id")

    request_timeout: float = Field(30.0, description="Per-request timeout in seconds")
    page_size: int = Field(100, description="Page size for the paginated interface list")

    workspace: Path = Field(Path("apihub.json"), description="JSON file backing the local store")

    log_level: str = "INFO"
    log_json: bool = False


def get_settings() -> Settings:
    return Settings()
