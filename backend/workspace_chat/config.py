import logging
import sys

from pydantic_settings import BaseSettings
from typing import Optional


def setup_logging():
    """Configure application logging."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # Set third-party loggers to WARNING to reduce noise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# Initialize logging on import
setup_logging()


class Settings(BaseSettings):
    # API Keys (server-side only)
    anthropic_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None

    # Upstream endpoints
    anthropic_base_url: str = "https://api.anthropic.com/v1"
    anthropic_version: str = "2023-06-01"
    openai_base_url: str = "https://api.openai.com/v1"

    # Model used when the client sends an unknown or empty model id
    default_model: str = "claude-4-sonnet"

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # Upstream timeout in seconds. None waits indefinitely.
    provider_timeout: Optional[float] = None

    # Workspace storage (in-memory unless overridden)
    database_url: str = "sqlite+aiosqlite:///:memory:"
    seed_demo_workspace: bool = True

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
