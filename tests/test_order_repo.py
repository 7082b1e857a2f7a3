import threading
import time

import pytest

from conftest import FakeSpreadsheet
from phicoffee.core.exceptions import UpstreamError
from phicoffee.repositories.order_repo import OrderRepository
from phicoffee.services.order_mapper import SLOTTED_HEADER


def test_append_creates_sheet_with_header(order_repo, spreadsheet):
    order_repo.append_order_row("NEW", SLOTTED_HEADER, ["ORDER-1-a"] + [""] * 16)

    ws = spreadsheet.sheets["NEW"]
    assert ws.rows[0] == SLOTTED_HEADER
    assert ws.rows[1][0] == "ORDER-1-a"


def test_find_on_missing_sheet_returns_none_without_creating_it(order_repo, spreadsheet):
    assert order_repo.find_order_by_id("NEW", "ORDER-1-a") is None
    assert spreadsheet.sheets == {}


def test_find_scans_past_header(order_repo):
    for oid in ("ORDER-1-a", "ORDER-2-b", "ORDER-3-c"):
        order_repo.append_order_row("NEW", SLOTTED_HEADER, [oid, "x"])

    assert order_repo.find_order_by_id("NEW", "ORDER-2-b") == ["ORDER-2-b", "x"]
    assert order_repo.find_order_by_id("NEW", "ORDER-9-z") is None
    # the header row never matches
    assert order_repo.find_order_by_id("NEW", "ORDER ID") is None


def test_append_failure_is_wrapped(order_repo, spreadsheet):
    spreadsheet.add_worksheet("NEW", rows=10, cols=17).fail = True

    with pytest.raises(UpstreamError) as exc:
        order_repo.append_order_row("NEW", SLOTTED_HEADER, ["ORDER-1-a"])
    assert exc.value.message == "Failed to save order"
    assert exc.value.step == "append_row"


def test_read_failure_is_wrapped(order_repo, spreadsheet):
    spreadsheet.add_worksheet("NEW", rows=10, cols=17).fail = True

    with pytest.raises(UpstreamError, match="Failed to fetch order"):
        order_repo.find_order_by_id("NEW", "ORDER-1-a")


def test_spreadsheet_open_failure_is_wrapped():
    def broken():
        raise RuntimeError("Missing GOOGLE_SHEET_ID in .env")

    repo = OrderRepository(broken)
    with pytest.raises(UpstreamError):
        repo.append_order_row("NEW", SLOTTED_HEADER, ["ORDER-1-a"])


class SlowSpreadsheet(FakeSpreadsheet):
    """Widens the gap between the existence check and add_worksheet."""

    def worksheet(self, title):
        time.sleep(0.05)
        return super().worksheet(title)


def test_concurrent_first_appends_create_the_sheet_once():
    spreadsheet = SlowSpreadsheet()
    repo = OrderRepository.from_spreadsheet(spreadsheet)
    start = threading.Barrier(2)
    errors = []

    def append(order_id):
        start.wait()
        try:
            repo.append_order_row("NEW", SLOTTED_HEADER, [order_id])
        except UpstreamError as e:
            errors.append(e)

    threads = [threading.Thread(target=append, args=(oid,)) for oid in ("ORDER-1-a", "ORDER-2-b")]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    rows = spreadsheet.sheets["NEW"].rows
    assert rows[0] == SLOTTED_HEADER
    assert sorted(r[0] for r in rows[1:]) == ["ORDER-1-a", "ORDER-2-b"]
