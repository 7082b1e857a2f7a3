# phicoffee/repositories/order_repo.py
import logging
from threading import Lock
from typing import Any, Callable, Sequence

from gspread.exceptions import GSpreadException, WorksheetNotFound
from requests import RequestException

from phicoffee.core.exceptions import UpstreamError

logger = logging.getLogger(__name__)

# Failures coming out of gspread / the HTTP transport underneath it
SHEETS_ERRORS = (GSpreadException, RequestException, RuntimeError)


class SheetRepository:
    """
    Thin wrapper around a gspread Spreadsheet.

    The spreadsheet is opened lazily through `spreadsheet_factory` so the app
    can start without Google credentials. Tests pass an in-memory fake via
    `from_spreadsheet(...)`.
    """

    def __init__(self, spreadsheet_factory: Callable[[], Any]):
        self._spreadsheet_factory = spreadsheet_factory
        self._ws_cache: dict[str, Any] = {}
        self._ws_lock = Lock()

    @classmethod
    def from_spreadsheet(cls, spreadsheet: Any):
        return cls(lambda: spreadsheet)

    def _worksheet(self, title: str, header: Sequence[str] | None = None):
        """
        Return a worksheet by title.

        A missing worksheet is created with `header` as its first row; without
        a header nothing is created and None is returned. Lookup and creation
        run under one lock per repository.
        """
        if title in self._ws_cache:
            return self._ws_cache[title]

        with self._ws_lock:
            if title in self._ws_cache:
                return self._ws_cache[title]

            spreadsheet = self._spreadsheet_factory()
            try:
                ws = spreadsheet.worksheet(title)
            except WorksheetNotFound:
                if header is None:
                    return None
                logger.info("Worksheet '%s' not found, creating it", title)
                ws = spreadsheet.add_worksheet(title=title, rows=1000, cols=len(header))
                ws.append_row(list(header), value_input_option="RAW")

            self._ws_cache[title] = ws
            return ws


class OrderRepository(SheetRepository):
    """
    Append-only order storage on top of Google Sheets.

    NOTE:
      - No in-place updates; status changes after submission are done by the
        vendor directly in the sheet.
      - Lookups are a linear scan of the whole sheet (no index).
    """

    def append_order_row(self, sheet: str, header: Sequence[str], row: Sequence[Any]) -> None:
        """
        Single append call, no retry.

        Raises:
            UpstreamError("Failed to save order"): on any Sheets failure.
        """
        try:
            ws = self._worksheet(sheet, header)
            ws.append_row(list(row), value_input_option="RAW")
        except SHEETS_ERRORS as e:
            logger.error("Appending order %s to '%s' failed: %s", row[0], sheet, e)
            raise UpstreamError("Failed to save order", step="append_row") from e

    def find_order_by_id(self, sheet: str, order_id: str) -> list[str] | None:
        """
        Scan the sheet (skipping the header row) for a row whose first cell is `order_id`.

        Returns:
            The matching row, or None if the sheet is missing, empty or has no match.

        Raises:
            UpstreamError("Failed to fetch order"): on any Sheets failure.
        """
        try:
            ws = self._worksheet(sheet)
            rows = ws.get_all_values() if ws is not None else []
        except SHEETS_ERRORS as e:
            logger.error("Reading '%s' failed: %s", sheet, e)
            raise UpstreamError("Failed to fetch order", step="fetch_order") from e

        for row in rows[1:]:
            if row and row[0] == order_id:
                return row
        return None
