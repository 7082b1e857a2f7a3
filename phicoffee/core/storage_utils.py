# phicoffee/core/storage_utils.py
from datetime import datetime, timezone

from phicoffee.core.config import get_settings
from phicoffee.core.supabase_client import supabase_admin

PROOF_FOLDER = "payment-proofs"


def build_proof_path(order_id: str, ext: str, now: datetime | None = None) -> str:
    """
    Object path for a payment proof.

    Example:
        payment-proofs/SPOT-1760862309123-k3j9x0a2b-1760862311456.jpg
    """
    now = now or datetime.now(timezone.utc)
    epoch_ms = int(now.timestamp() * 1000)
    return f"{PROOF_FOLDER}/{order_id}-{epoch_ms}.{ext}"


def upload_to_storage(path: str, file_bytes: bytes, content_type: str) -> str:
    """
    Upload raw bytes to the payment proof bucket and return a public URL.

    Proofs are never overwritten ('upsert' is off), so a retry of the same
    order produces a new object instead of replacing evidence.

    Raises:
        Any exception raised by the Supabase client if upload fails.
    """
    bucket = supabase_admin().storage.from_(get_settings().PAYMENT_PROOF_BUCKET)
    bucket.upload(
        path,
        file_bytes,
        {"content-type": content_type, "cache-control": "3600", "upsert": "false"},
    )
    return bucket.get_public_url(path)


class SupabaseProofStore:
    """Proof store used by OrderService in production."""

    def upload(self, order_id: str, ext: str, content_type: str, file_bytes: bytes) -> str:
        return upload_to_storage(build_proof_path(order_id, ext), file_bytes, content_type)
