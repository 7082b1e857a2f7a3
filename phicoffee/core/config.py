# phicoffee/core/config.py
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

SheetLayoutName = Literal["slotted", "summary"]


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - GOOGLE_SHEET_ID
      - GOOGLE_SERVICE_ACCOUNT_EMAIL + GOOGLE_PRIVATE_KEY
        (or GOOGLE_CREDENTIALS_FILE pointing to a service account JSON)

    Optional:
      - TELEGRAM_BOT_TOKEN / TELEGRAM_CHAT_ID (notifications are skipped
        with a warning when missing)
      - SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY (payment proof uploads)
      - PUBLIC_BASE_URL (used to build invoice links)
    """

    PROJECT_NAME: str = "Phicoffee Ordering API"
    API_PREFIX: str = ""
    PUBLIC_BASE_URL: str = "http://localhost:3000"
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Google Sheets
    GOOGLE_SHEET_ID: str = ""
    GOOGLE_SERVICE_ACCOUNT_EMAIL: str | None = None
    GOOGLE_PRIVATE_KEY: str | None = None
    GOOGLE_CREDENTIALS_FILE: str | None = None

    DELIVERY_SHEET_NAME: str = "NEW"
    SPOT_SHEET_NAME: str = "SPOT"
    FEEDBACK_SHEET_NAME: str = "FEEDBACK"
    DELIVERY_SHEET_LAYOUT: SheetLayoutName = "slotted"
    SPOT_SHEET_LAYOUT: SheetLayoutName = "slotted"

    # Telegram
    TELEGRAM_BOT_TOKEN: str | None = None
    TELEGRAM_CHAT_ID: str | None = None
    TELEGRAM_TIMEOUT_SECONDS: float = 10.0

    # Supabase Storage
    SUPABASE_URL: str | None = None
    SUPABASE_KEY: str | None = None
    SUPABASE_SERVICE_ROLE_KEY: str | None = None
    PAYMENT_PROOF_BUCKET: str = "payment-proofs"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def google_private_key(self) -> str | None:
        """Private key with escaped newlines restored (env files store it on one line)."""
        if self.GOOGLE_PRIVATE_KEY is None:
            return None
        return self.GOOGLE_PRIVATE_KEY.replace("\\n", "\n")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
