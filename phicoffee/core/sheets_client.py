# phicoffee/core/sheets_client.py
from functools import lru_cache

import gspread
from google.oauth2.service_account import Credentials

from phicoffee.core.config import get_settings

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]


def _get_credentials() -> Credentials:
    """
    Service account credentials.

    Resolution order:
      1. GOOGLE_CREDENTIALS_FILE (service account JSON on disk)
      2. GOOGLE_SERVICE_ACCOUNT_EMAIL + GOOGLE_PRIVATE_KEY from env
    """
    settings = get_settings()

    if settings.GOOGLE_CREDENTIALS_FILE:
        return Credentials.from_service_account_file(
            settings.GOOGLE_CREDENTIALS_FILE,
            scopes=SCOPES,
        )

    if not (settings.GOOGLE_SERVICE_ACCOUNT_EMAIL and settings.google_private_key):
        raise RuntimeError(
            "Google credentials missing. Set GOOGLE_CREDENTIALS_FILE or "
            "GOOGLE_SERVICE_ACCOUNT_EMAIL and GOOGLE_PRIVATE_KEY in .env."
        )

    info = {
        "type": "service_account",
        "client_email": settings.GOOGLE_SERVICE_ACCOUNT_EMAIL,
        "private_key": settings.google_private_key,
        "token_uri": "https://oauth2.googleapis.com/token",
    }
    return Credentials.from_service_account_info(info, scopes=SCOPES)


@lru_cache
def get_spreadsheet() -> gspread.Spreadsheet:
    """
    Open the order spreadsheet (cached per process).

    Raises:
        RuntimeError: if GOOGLE_SHEET_ID or credentials are not configured.
        gspread.exceptions.APIError / SpreadsheetNotFound: on upstream failure.
    """
    settings = get_settings()
    if not settings.GOOGLE_SHEET_ID:
        raise RuntimeError("Missing GOOGLE_SHEET_ID in .env")

    client = gspread.authorize(_get_credentials())
    return client.open_by_key(settings.GOOGLE_SHEET_ID)
