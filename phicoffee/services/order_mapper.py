# phicoffee/services/order_mapper.py
"""
Mapping between Order objects and flat spreadsheet rows.

Rows are read back by column index, not by header name, so every layout is
pinned by an IntEnum. Changing a layout means adding a new enum, never
renumbering an existing one.

Layouts:

1. slotted (17 columns) - the "NEW" / "SPOT" sheets
   ORDER ID | TANGGAL | NAMA | NO TELFON | NOTES |
   PC0 | PC1 | PCM0 | PCM1 | PBS0 | PBS1 |
   TOTAL HARGA | LOKASI | MAPS | INVOICE | BUKTI PEMBAYARAN | STATUS

2. summary (12 columns) - selections as one human-readable cell
   ORDER ID | TANGGAL | NAMA | NO TELFON | NOTES | PESANAN |
   TOTAL HARGA | LOKASI | MAPS | INVOICE | BUKTI PEMBAYARAN | STATUS

3. feedback (4 columns)
   TIMESTAMP | ORDER ID | RATING | COMMENT

Timestamps use the id-ID rendering "D/M/YYYY, HH.MM.SS" in Asia/Jakarta.
Note the '.' time separator.
"""
import re
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Iterable, Sequence

from sqlmodel import SQLModel, Field

from phicoffee.core.exceptions import RowDecodeError
from phicoffee.models.catalog import SLOT_ORDER, Catalog, ProductSlot
from phicoffee.models.order import (
    CoffeeSelection,
    IceSplit,
    Order,
    OrderChannel,
    channel_for_order_id,
)
from phicoffee.services.pricing import format_price
from phicoffee.services.schedule import JAKARTA_TZ, delivery_label_for


class SheetLayout(str, Enum):
    SLOTTED = "slotted"
    SUMMARY = "summary"


class SlottedColumn(IntEnum):
    ORDER_ID = 0
    TIMESTAMP = 1
    NAME = 2
    PHONE = 3
    NOTES = 4
    PC_NO_ICE = 5
    PC_ICE = 6
    PCM_NO_ICE = 7
    PCM_ICE = 8
    PBS_NO_ICE = 9
    PBS_ICE = 10
    TOTAL_PRICE = 11
    LOCATION = 12
    LOCATION_COORDINATES = 13
    INVOICE_URL = 14
    PAYMENT_PROOF_URL = 15
    STATUS = 16


class SummaryColumn(IntEnum):
    ORDER_ID = 0
    TIMESTAMP = 1
    NAME = 2
    PHONE = 3
    NOTES = 4
    SELECTIONS = 5
    TOTAL_PRICE = 6
    LOCATION = 7
    LOCATION_COORDINATES = 8
    INVOICE_URL = 9
    PAYMENT_PROOF_URL = 10
    STATUS = 11


class FeedbackColumn(IntEnum):
    TIMESTAMP = 0
    ORDER_ID = 1
    RATING = 2
    COMMENT = 3


# (without ice, with ice) column pair per slot
SLOT_COLUMNS: dict[ProductSlot, tuple[SlottedColumn, SlottedColumn]] = {
    ProductSlot.PHISTA_COFFEE: (SlottedColumn.PC_NO_ICE, SlottedColumn.PC_ICE),
    ProductSlot.CARAMEL_MACCHIATO: (SlottedColumn.PCM_NO_ICE, SlottedColumn.PCM_ICE),
    ProductSlot.BROWN_SUGAR: (SlottedColumn.PBS_NO_ICE, SlottedColumn.PBS_ICE),
}

SLOTTED_HEADER = [
    "ORDER ID",
    "TANGGAL",
    "NAMA",
    "NO TELFON",
    "NOTES",
    "PC0",
    "PC1",
    "PCM0",
    "PCM1",
    "PBS0",
    "PBS1",
    "TOTAL HARGA",
    "LOKASI",
    "MAPS",
    "INVOICE",
    "BUKTI PEMBAYARAN",
    "STATUS",
]

SUMMARY_HEADER = [
    "ORDER ID",
    "TANGGAL",
    "NAMA",
    "NO TELFON",
    "NOTES",
    "PESANAN",
    "TOTAL HARGA",
    "LOKASI",
    "MAPS",
    "INVOICE",
    "BUKTI PEMBAYARAN",
    "STATUS",
]

FEEDBACK_HEADER = ["TIMESTAMP", "ORDER ID", "RATING", "COMMENT"]

LAYOUT_HEADERS: dict[SheetLayout, list[str]] = {
    SheetLayout.SLOTTED: SLOTTED_HEADER,
    SheetLayout.SUMMARY: SUMMARY_HEADER,
}

_LAYOUT_COLUMNS: dict[SheetLayout, type[IntEnum]] = {
    SheetLayout.SLOTTED: SlottedColumn,
    SheetLayout.SUMMARY: SummaryColumn,
}


def layout_width(layout: SheetLayout) -> int:
    return len(_LAYOUT_COLUMNS[layout])


class OrderRecord(SQLModel):
    """
    Display projection of a stored row (what the invoice page needs).

    `status` is kept as the raw cell text: the vendor edits it by hand.
    """

    id: str
    created_at_text: str = ""
    created_at: datetime | None = None
    channel: OrderChannel = OrderChannel.DELIVERY
    name: str = ""
    phone: str = ""
    notes: str = ""
    location: str = ""
    location_coordinates: str = ""
    pickup_time: str = ""
    selections: list[CoffeeSelection] = Field(default_factory=list)
    total_price: int = 0
    invoice_url: str = ""
    payment_proof_url: str = ""
    status: str = ""


# ---------------------------------------------------------------------------
# Timestamp wire format
# ---------------------------------------------------------------------------

_SHEET_TIMESTAMP_RE = re.compile(
    r"^(\d{1,2})/(\d{1,2})/(\d{4}), (\d{2})\.(\d{2})\.(\d{2})$"
)


def format_sheet_timestamp(dt: datetime) -> str:
    """
    Render as 'D/M/YYYY, HH.MM.SS' in Asia/Jakarta.
    Naive datetimes are taken to be Jakarta local time already.
    """
    local = dt.astimezone(JAKARTA_TZ) if dt.tzinfo is not None else dt
    return f"{local.day}/{local.month}/{local.year}, {local:%H.%M.%S}"


def parse_sheet_timestamp(text: str) -> datetime:
    """Strict inverse of format_sheet_timestamp; returns an aware datetime."""
    match = _SHEET_TIMESTAMP_RE.match(text.strip())
    if not match:
        raise RowDecodeError(f"Unrecognized sheet timestamp: {text!r}")
    day, month, year, hour, minute, second = (int(g) for g in match.groups())
    try:
        return datetime(year, month, day, hour, minute, second, tzinfo=JAKARTA_TZ)
    except ValueError as e:
        raise RowDecodeError(f"Invalid sheet timestamp: {text!r}") from e


# ---------------------------------------------------------------------------
# Selections
# ---------------------------------------------------------------------------

_SELECTION_RE = re.compile(r"^(?P<type>.+?) \((?P<details>[^()]*)\)$")
_ICE_DETAIL_RE = re.compile(r"^(\d+) (with ice|without ice)$")


def describe_selection(selection: CoffeeSelection) -> str:
    """'phista coffee (2 with ice, 1 without ice)'; zero counts are omitted."""
    parts = []
    if selection.ice.with_ice > 0:
        parts.append(f"{selection.ice.with_ice} with ice")
    if selection.ice.without_ice > 0:
        parts.append(f"{selection.ice.without_ice} without ice")
    return f"{selection.type} ({', '.join(parts)})"


def serialize_selections(selections: Iterable[CoffeeSelection]) -> str:
    return "; ".join(describe_selection(s) for s in selections if s.quantity > 0)


def parse_selections(text: str) -> list[CoffeeSelection]:
    selections: list[CoffeeSelection] = []
    if not text.strip():
        return selections

    for chunk in text.split("; "):
        match = _SELECTION_RE.match(chunk.strip())
        if not match:
            raise RowDecodeError(f"Unrecognized selection: {chunk!r}")
        ice = IceSplit()
        for detail in filter(None, (d.strip() for d in match.group("details").split(","))):
            detail_match = _ICE_DETAIL_RE.match(detail)
            if not detail_match:
                raise RowDecodeError(f"Unrecognized ice detail: {detail!r}")
            count = int(detail_match.group(1))
            if detail_match.group(2) == "with ice":
                ice.with_ice += count
            else:
                ice.without_ice += count
        selections.append(CoffeeSelection(type=match.group("type"), ice=ice))
    return selections


def selections_to_slot_counts(
    catalog: Catalog,
    selections: Iterable[CoffeeSelection],
) -> dict[SlottedColumn, int]:
    """
    Accumulate selections into the fixed slot columns.

    Unknown products raise UnknownProductError; they are never dropped.
    """
    counts = {col: 0 for pair in SLOT_COLUMNS.values() for col in pair}
    for selection in selections:
        item = catalog.get(selection.type)
        no_ice_col, ice_col = SLOT_COLUMNS[item.slot]
        counts[no_ice_col] += selection.ice.without_ice
        counts[ice_col] += selection.ice.with_ice
    return counts


def slot_counts_to_selections(catalog: Catalog, row: Sequence[str]) -> list[CoffeeSelection]:
    selections: list[CoffeeSelection] = []
    for slot in SLOT_ORDER:
        no_ice_col, ice_col = SLOT_COLUMNS[slot]
        without_ice = _parse_int(row[no_ice_col])
        with_ice = _parse_int(row[ice_col])
        if with_ice == 0 and without_ice == 0:
            continue
        item = catalog.item_for_slot(slot)
        selections.append(
            CoffeeSelection(
                type=item.key if item else slot.value,
                ice=IceSplit(with_ice=with_ice, without_ice=without_ice),
            )
        )
    return selections


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------


def build_invoice_url(base_url: str, order_id: str) -> str:
    return f"{base_url.rstrip('/')}/invoice/{order_id}"


# "78000", "60.000", "60,000", "Rp78.000,00", "78000.00"; a 1-2 digit tail is a fraction
_NUMBER_CELL = re.compile(
    r"^(?:Rp\.?\s*)?(\d{1,3}(?:([.,])\d{3})(?:\2\d{3})*|\d+)(?:[.,]\d{1,2})?$",
    re.IGNORECASE,
)


def _parse_int(value: Any) -> int:
    """
    Whole-number value of a sheet cell, as displayed by Sheets.

    Grouping separators and an "Rp" prefix are dropped, a decimal fraction is
    truncated. Empty cells read as 0.

    Raises:
        RowDecodeError: if the cell is not a number.
    """
    text = str(value).strip()
    if not text:
        return 0
    match = _NUMBER_CELL.match(text)
    if match is None:
        raise RowDecodeError(f"Not a number: {text!r}")
    return int(re.sub(r"[.,]", "", match.group(1)))


def _location_cells(order: Order) -> tuple[str, str]:
    if order.channel == OrderChannel.SPOT:
        return order.pickup_time, ""
    return order.location, order.location_coordinates


def encode_order_row(
    order: Order,
    layout: SheetLayout,
    catalog: Catalog,
    base_url: str,
) -> list[Any]:
    """Flatten an order into the positional row of `layout`."""
    location, coordinates = _location_cells(order)
    invoice_url = build_invoice_url(base_url, order.id)
    timestamp = format_sheet_timestamp(order.created_at)
    active = [s for s in order.selections if s.quantity > 0]

    if layout == SheetLayout.SLOTTED:
        row: list[Any] = [""] * layout_width(layout)
        row[SlottedColumn.ORDER_ID] = order.id
        row[SlottedColumn.TIMESTAMP] = timestamp
        row[SlottedColumn.NAME] = order.name
        row[SlottedColumn.PHONE] = order.phone
        row[SlottedColumn.NOTES] = order.notes
        for column, count in selections_to_slot_counts(catalog, active).items():
            row[column] = count
        row[SlottedColumn.TOTAL_PRICE] = order.total_price
        row[SlottedColumn.LOCATION] = location
        row[SlottedColumn.LOCATION_COORDINATES] = coordinates
        row[SlottedColumn.INVOICE_URL] = invoice_url
        row[SlottedColumn.PAYMENT_PROOF_URL] = order.payment_proof_url
        row[SlottedColumn.STATUS] = order.status.value
        return row

    row = [""] * layout_width(layout)
    row[SummaryColumn.ORDER_ID] = order.id
    row[SummaryColumn.TIMESTAMP] = timestamp
    row[SummaryColumn.NAME] = order.name
    row[SummaryColumn.PHONE] = order.phone
    row[SummaryColumn.NOTES] = order.notes
    row[SummaryColumn.SELECTIONS] = serialize_selections(active)
    row[SummaryColumn.TOTAL_PRICE] = order.total_price
    row[SummaryColumn.LOCATION] = location
    row[SummaryColumn.LOCATION_COORDINATES] = coordinates
    row[SummaryColumn.INVOICE_URL] = invoice_url
    row[SummaryColumn.PAYMENT_PROOF_URL] = order.payment_proof_url
    row[SummaryColumn.STATUS] = order.status.value
    return row


def decode_order_row(
    row: Sequence[Any],
    layout: SheetLayout,
    catalog: Catalog,
) -> OrderRecord:
    """Rebuild the display projection of an order from its positional row."""
    width = layout_width(layout)
    cells = [str(v) if v is not None else "" for v in row]
    cells += [""] * (width - len(cells))

    cols = _LAYOUT_COLUMNS[layout]
    order_id = cells[cols.ORDER_ID]
    if not order_id:
        raise RowDecodeError("Row has no order id")

    channel = channel_for_order_id(order_id) or OrderChannel.DELIVERY
    created_at_text = cells[cols.TIMESTAMP]
    try:
        created_at = parse_sheet_timestamp(created_at_text)
    except RowDecodeError:
        # hand-entered rows may carry another date format; keep the raw text
        created_at = None

    if layout == SheetLayout.SLOTTED:
        selections = slot_counts_to_selections(catalog, cells)
    else:
        selections = parse_selections(cells[SummaryColumn.SELECTIONS])

    location = cells[cols.LOCATION]
    return OrderRecord(
        id=order_id,
        created_at_text=created_at_text,
        created_at=created_at,
        channel=channel,
        name=cells[cols.NAME],
        phone=cells[cols.PHONE],
        notes=cells[cols.NOTES],
        location=location if channel == OrderChannel.DELIVERY else "",
        location_coordinates=cells[cols.LOCATION_COORDINATES],
        pickup_time=location if channel == OrderChannel.SPOT else "",
        selections=selections,
        total_price=_parse_int(cells[cols.TOTAL_PRICE]),
        invoice_url=cells[cols.INVOICE_URL],
        payment_proof_url=cells[cols.PAYMENT_PROOF_URL],
        status=cells[cols.STATUS],
    )


# ---------------------------------------------------------------------------
# Notification
# ---------------------------------------------------------------------------

_MARKDOWN_SPECIAL = re.compile(r"([_*`\[])")


def _md(value: str) -> str:
    """Escape user text for Telegram legacy Markdown."""
    return _MARKDOWN_SPECIAL.sub(r"\\\1", value)


def compose_notification(order: Order, invoice_url: str, sent_at: datetime) -> str:
    """
    Human-readable Telegram message for the vendor.
    One-way projection: nothing parses this text.
    """
    title = (
        "🆕 *NEW ON-THE-SPOT ORDER* 🆕"
        if order.channel == OrderChannel.SPOT
        else "🆕 *NEW COFFEE ORDER* 🆕"
    )
    items = "\n".join(
        f"• {_md(describe_selection(s))}" for s in order.selections if s.quantity > 0
    )

    lines = [
        title,
        "",
        f"🆔 *Order ID*: {_md(order.id)}",
        f"👤 *Customer*: {_md(order.name)}",
        f"☎️ *Phone*: {_md(order.phone)}",
        "☕ *Order*:",
        items,
        f"💰 *Total*: Rp {format_price(order.total_price)}",
    ]

    if order.channel == OrderChannel.SPOT:
        lines.append(f"🕒 *Pickup Time*: {_md(order.pickup_time)}")
    else:
        lines.append(f"📍 *Location*: {_md(order.location)}")
        if order.location_coordinates:
            lines.append(f"🗺️ *Maps*: {_md(order.location_coordinates)}")
        lines.append(f"🚚 *Delivery*: {delivery_label_for(order.created_at)}")

    if order.notes:
        lines.append(f"📝 *Notes*: {_md(order.notes)}")

    lines.extend(
        [
            f"🧾 *Invoice*: {_md(invoice_url)}",
            "",
            f"⏰ *Time*: {format_sheet_timestamp(sent_at)}",
        ]
    )
    return "\n".join(lines)
