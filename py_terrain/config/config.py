from pathlib import Path
from typing import Optional

from dotenv import dotenv_values
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

import os

# Explicitly load .env for local/dev environments only if values are missing from the environment
BASE_DIR = Path(__file__).resolve().parent.parent.parent
env_file = BASE_DIR / ".env"

if env_file.exists():
    file_env = dotenv_values(env_file)
    missing_keys = {k: v for k, v in file_env.items() if k not in os.environ and v is not None}
    for k, v in missing_keys.items():
        os.environ[k] = v


class Settings(BaseSettings):
    """Application settings pulled from TERRAIN_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TERRAIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="console", description="Logging format (console or json)")

    # Output Configuration
    output_dir: Path = Field(default=Path("."), description="Directory for rendered images")
    image_prefix: str = Field(default="output", description="File name prefix for rendered images")

    # Generation Configuration
    seed: Optional[int] = Field(
        default=None, description="Random seed; unset draws fresh OS entropy"
    )
    preset: str = Field(default="default", description="Pipeline preset (default or small)")


# Instantiate singleton settings object
settings = Settings()
