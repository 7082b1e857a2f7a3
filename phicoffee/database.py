# phicoffee/database.py
from functools import lru_cache

from phicoffee.core.config import get_settings
from phicoffee.core.sheets_client import get_spreadsheet
from phicoffee.core.storage_utils import SupabaseProofStore
from phicoffee.core.telegram_client import TelegramNotifier
from phicoffee.models.catalog import get_catalog
from phicoffee.models.order import OrderChannel
from phicoffee.repositories.feedback_repo import FeedbackRepository
from phicoffee.repositories.order_repo import OrderRepository
from phicoffee.services.feedback_service import FeedbackService
from phicoffee.services.order_mapper import SheetLayout
from phicoffee.services.order_service import OrderService

# ---------------------------------------------------------
# Google Sheets acts as the database.
#
# - one worksheet per order channel (delivery / spot) + FEEDBACK
# - the spreadsheet is opened lazily on first use, so the app can boot
#   (and serve /catalog, /schedule) without Google credentials
# ---------------------------------------------------------


def sheet_targets() -> dict[OrderChannel, tuple[str, SheetLayout]]:
    """Worksheet name and row layout per order channel, from settings."""
    settings = get_settings()
    return {
        OrderChannel.DELIVERY: (
            settings.DELIVERY_SHEET_NAME,
            SheetLayout(settings.DELIVERY_SHEET_LAYOUT),
        ),
        OrderChannel.SPOT: (
            settings.SPOT_SHEET_NAME,
            SheetLayout(settings.SPOT_SHEET_LAYOUT),
        ),
    }


@lru_cache
def get_order_service() -> OrderService:
    """
    FastAPI dependency that returns the process-wide OrderService.

    Usage:

        from fastapi import Depends

        @router.get("/example")
        def example_endpoint(service: OrderService = Depends(get_order_service)):
            ...
    """
    settings = get_settings()
    return OrderService(
        catalog=get_catalog(),
        order_repo=OrderRepository(get_spreadsheet),
        proof_store=SupabaseProofStore(),
        notifier=TelegramNotifier(),
        base_url=settings.PUBLIC_BASE_URL,
        sheets=sheet_targets(),
    )


@lru_cache
def get_feedback_service() -> FeedbackService:
    settings = get_settings()
    return FeedbackService(
        FeedbackRepository(get_spreadsheet, sheet_name=settings.FEEDBACK_SHEET_NAME)
    )
