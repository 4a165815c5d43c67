from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


load_dotenv()


class Settings:
    """Claude proxy and upload settings, read from the environment (and .env).

    Only ANTHROPIC_API_KEY has no default; without it /api/claude answers
    with the missing-key sentinel.
    """

    def __init__(self) -> None:
        self.app_env: str = os.getenv("APP_ENV", "development")
        self.anthropic_api_key: Optional[str] = os.getenv("ANTHROPIC_API_KEY") or None
        self.anthropic_api_url: str = os.getenv(
            "ANTHROPIC_API_URL", "https://api.anthropic.com/v1/messages"
        )
        self.anthropic_version: str = os.getenv("ANTHROPIC_VERSION", "2023-06-01")
        self.claude_model: str = os.getenv("CLAUDE_MODEL", "claude-3-haiku-20240307")
        self.max_tokens: int = int(os.getenv("CLAUDE_MAX_TOKENS", "1000"))
        self.request_timeout: float = float(os.getenv("ANTHROPIC_TIMEOUT", "60.0"))
        self.upload_dir: str = os.getenv(
            "UPLOAD_DIR", os.path.join(os.getcwd(), "uploads")
        )
        self.upload_max_bytes: int = int(
            os.getenv("UPLOAD_MAX_BYTES", str(10 * 1024 * 1024))
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
