# phicoffee/core/supabase_client.py
from functools import lru_cache

from supabase import create_client, Client

from phicoffee.core.config import get_settings


@lru_cache
def supabase_admin() -> Client:
    """
    Create a Supabase client with the service role key.

    Use cases:
      - uploading payment proofs to the proof bucket
      - reading back their public URLs

    Falls back to SUPABASE_KEY (anon) when no service role key is set;
    in that case the bucket policy must allow anonymous inserts.

    Raises:
        RuntimeError: if SUPABASE_URL or both keys are missing.
    """
    settings = get_settings()
    key = settings.SUPABASE_SERVICE_ROLE_KEY or settings.SUPABASE_KEY
    if not (settings.SUPABASE_URL and key):
        raise RuntimeError("Missing SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY in .env")
    return create_client(settings.SUPABASE_URL, key)
