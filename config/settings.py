from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


load_dotenv()


# Sampling temperature each prompt variant was tuned with.
VARIANT_TEMPERATURES = {"markdown": 1.0, "html": 0.7}


class Settings:
    """Application settings loaded from environment variables.

    Keep all credentials and config centralized here.
    """

    def __init__(self) -> None:
        self.app_env: str = os.getenv("APP_ENV", "development")
        self.google_api_key: Optional[str] = os.getenv("GOOGLE_API_KEY")
        self.gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
        self.prompt_variant: str = os.getenv("PROMPT_VARIANT", "markdown").lower()
        if self.prompt_variant not in VARIANT_TEMPERATURES:
            raise ValueError(
                f"PROMPT_VARIANT must be one of {sorted(VARIANT_TEMPERATURES)}, "
                f"got {self.prompt_variant!r}"
            )
        self.temperature: float = float(
            os.getenv("MODEL_TEMPERATURE", VARIANT_TEMPERATURES[self.prompt_variant])
        )
        self.top_p: float = float(os.getenv("MODEL_TOP_P", "0.9"))
        self.history_limit: int = int(os.getenv("HISTORY_LIMIT", "10"))
        self.prompt_window: int = int(os.getenv("PROMPT_WINDOW", "8"))
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
        self.chat_api_url: str = os.getenv("CHAT_API_URL", "http://127.0.0.1:8000")
        self.client_timeout: float = float(os.getenv("CLIENT_TIMEOUT", "60"))


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
