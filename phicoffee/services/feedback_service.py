# phicoffee/services/feedback_service.py
import logging
from datetime import datetime, timezone
from typing import Any

from phicoffee.core.exceptions import OrderValidationError
from phicoffee.repositories.feedback_repo import FeedbackRepository
from phicoffee.schemas.feedback import FeedbackCreate
from phicoffee.services.order_mapper import FeedbackColumn

logger = logging.getLogger(__name__)


def _iso_utc(dt: datetime) -> str:
    """'2026-10-19T07:05:09.123Z'."""
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class FeedbackService:
    def __init__(self, repo: FeedbackRepository):
        self.repo = repo

    def submit_feedback(self, payload: FeedbackCreate, now: datetime | None = None) -> None:
        """
        Append one feedback row: [timestamp, order_id, rating, comment].

        The rating range is re-checked here so nothing out of range is ever
        appended, whatever built the payload.

        Raises:
            OrderValidationError: rating outside 1..5 or missing order id.
            UpstreamError: if the append fails.
        """
        if not payload.order_id or not 1 <= payload.rating <= 5:
            raise OrderValidationError("Invalid input")

        now = now or datetime.now(timezone.utc)
        row: list[Any] = [""] * len(FeedbackColumn)
        row[FeedbackColumn.TIMESTAMP] = _iso_utc(now)
        row[FeedbackColumn.ORDER_ID] = payload.order_id
        row[FeedbackColumn.RATING] = payload.rating
        row[FeedbackColumn.COMMENT] = payload.comment or ""
        self.repo.append_feedback_row(row)
        logger.info("Feedback recorded for order %s (rating=%s)", payload.order_id, payload.rating)
