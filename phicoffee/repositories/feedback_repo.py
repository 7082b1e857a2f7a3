# phicoffee/repositories/feedback_repo.py
import logging
from typing import Any, Sequence

from phicoffee.core.exceptions import UpstreamError
from phicoffee.repositories.order_repo import SHEETS_ERRORS, SheetRepository
from phicoffee.services.order_mapper import FEEDBACK_HEADER

logger = logging.getLogger(__name__)


class FeedbackRepository(SheetRepository):
    def __init__(self, spreadsheet_factory, sheet_name: str = "FEEDBACK"):
        super().__init__(spreadsheet_factory)
        self.sheet_name = sheet_name

    def append_feedback_row(self, row: Sequence[Any]) -> None:
        try:
            ws = self._worksheet(self.sheet_name, FEEDBACK_HEADER)
            ws.append_row(list(row), value_input_option="RAW")
        except SHEETS_ERRORS as e:
            logger.error("Appending feedback to '%s' failed: %s", self.sheet_name, e)
            raise UpstreamError("Failed to submit feedback", step="append_feedback") from e
