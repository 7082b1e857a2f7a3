"""
Shared fixtures.

All Google Sheets / Supabase / Telegram access is replaced by in-memory fakes;
no test performs a network call.
"""
import os

os.environ.setdefault("PUBLIC_BASE_URL", "https://phicoffee.test")
os.environ.setdefault("GOOGLE_SHEET_ID", "test-sheet")
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "test-token")
os.environ.setdefault("TELEGRAM_CHAT_ID", "42")

from datetime import datetime  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from gspread.exceptions import GSpreadException, WorksheetNotFound  # noqa: E402

from phicoffee.database import get_feedback_service, get_order_service  # noqa: E402
from phicoffee.main import app  # noqa: E402
from phicoffee.models.catalog import DEFAULT_CATALOG  # noqa: E402
from phicoffee.models.order import OrderChannel  # noqa: E402
from phicoffee.repositories.feedback_repo import FeedbackRepository  # noqa: E402
from phicoffee.repositories.order_repo import OrderRepository  # noqa: E402
from phicoffee.services.feedback_service import FeedbackService  # noqa: E402
from phicoffee.services.order_mapper import SheetLayout  # noqa: E402
from phicoffee.services.order_service import OrderService  # noqa: E402
from phicoffee.services.schedule import JAKARTA_TZ  # noqa: E402

BASE_URL = "https://phicoffee.test"


class FakeWorksheet:
    def __init__(self, title):
        self.title = title
        self.rows = []
        self.fail = False

    def get_all_values(self):
        if self.fail:
            raise GSpreadException("quota exceeded")
        # Sheets hands every cell back as text
        return [["" if v is None else str(v) for v in r] for r in self.rows]

    def append_row(self, values, value_input_option=None):
        if self.fail:
            raise GSpreadException("quota exceeded")
        self.rows.append(list(values))


class FakeSpreadsheet:
    def __init__(self):
        self.sheets = {}

    def worksheet(self, title):
        if title not in self.sheets:
            raise WorksheetNotFound(title)
        return self.sheets[title]

    def add_worksheet(self, title, rows, cols):
        if title in self.sheets:
            raise GSpreadException(f"A sheet with the name \"{title}\" already exists.")
        ws = FakeWorksheet(title)
        self.sheets[title] = ws
        return ws


class FakeProofStore:
    def __init__(self):
        self.uploads = []
        self.fail = False

    def upload(self, order_id, ext, content_type, file_bytes):
        if self.fail:
            raise RuntimeError("storage unavailable")
        path = f"payment-proofs/{order_id}-1.{ext}"
        self.uploads.append((path, content_type, file_bytes))
        return f"https://storage.test/{path}"


class FakeNotifier:
    def __init__(self):
        self.messages = []
        self.fail = False

    def send(self, text):
        if self.fail:
            raise RuntimeError("Telegram API error: 400")
        self.messages.append(text)


@pytest.fixture
def catalog():
    return DEFAULT_CATALOG


@pytest.fixture
def spreadsheet():
    return FakeSpreadsheet()


@pytest.fixture
def proof_store():
    return FakeProofStore()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def order_repo(spreadsheet):
    return OrderRepository.from_spreadsheet(spreadsheet)


@pytest.fixture
def order_service(catalog, order_repo, proof_store, notifier):
    return OrderService(
        catalog=catalog,
        order_repo=order_repo,
        proof_store=proof_store,
        notifier=notifier,
        base_url=BASE_URL,
        sheets={
            OrderChannel.DELIVERY: ("NEW", SheetLayout.SLOTTED),
            OrderChannel.SPOT: ("SPOT", SheetLayout.SLOTTED),
        },
    )


@pytest.fixture
def feedback_service(spreadsheet):
    return FeedbackService(FeedbackRepository.from_spreadsheet(spreadsheet))


@pytest.fixture
def client(order_service, feedback_service):
    app.dependency_overrides[get_order_service] = lambda: order_service
    app.dependency_overrides[get_feedback_service] = lambda: feedback_service
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def tuesday_morning():
    # Tuesday 20 October 2026, 10:05:09 in Jakarta
    return datetime(2026, 10, 20, 10, 5, 9, tzinfo=JAKARTA_TZ)


def delivery_payload(**overrides):
    payload = {
        "channel": "delivery",
        "name": "Budi Santoso",
        "phone": "081234567890",
        "notes": "Less sugar please",
        "location": "Gedung B, Lantai 2",
        "location_coordinates": "https://maps.google.com/?q=-6.2,106.8",
        "coffee_selections": [
            {"type": "phista coffee", "ice": {"with_ice": 2, "without_ice": 1}},
            {"type": "Phicoffee Caramel Macchiato", "ice": {"with_ice": 0, "without_ice": 0}},
            {"type": "Phicoffee Brown Sugar", "ice": {"with_ice": 0, "without_ice": 1}},
        ],
    }
    payload.update(overrides)
    return payload


def spot_payload(**overrides):
    payload = {
        "channel": "spot",
        "name": "Sari",
        "phone": "085700001111",
        "pickup_time": "13:30",
        "coffee_selections": [
            {"type": "Phicoffee Caramel Macchiato", "ice": {"with_ice": 1, "without_ice": 0}},
        ],
    }
    payload.update(overrides)
    return payload
