# phicoffee/services/order_service.py
import logging
from datetime import datetime, timezone
from typing import Protocol

from pydantic import ValidationError
from requests import RequestException

from phicoffee.core.exceptions import (
    OrderError,
    OrderValidationError,
    RowDecodeError,
    UpstreamError,
)
from phicoffee.models.catalog import Catalog
from phicoffee.models.order import (
    CoffeeSelection,
    Order,
    OrderChannel,
    OrderStatus,
    channel_for_order_id,
    generate_order_id,
)
from phicoffee.repositories.order_repo import OrderRepository
from phicoffee.schemas.order import (
    InvoiceRead,
    OrderCreate,
    OrderDraftRead,
    OrderSubmit,
    SelectionLine,
    SubmissionResult,
    SubmissionSteps,
)
from phicoffee.services.order_mapper import (
    LAYOUT_HEADERS,
    SheetLayout,
    build_invoice_url,
    compose_notification,
    decode_order_row,
    describe_selection,
    encode_order_row,
)
from phicoffee.services.pricing import compute_line_total, compute_order_total, format_price
from phicoffee.services.schedule import delivery_label_for

logger = logging.getLogger(__name__)

# --- Payment proof config ---

MAX_PROOF_BYTES = 5 * 1024 * 1024  # 5MB

ALLOWED_PROOF_CONTENT_TYPES: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/heic": "heic",
}


class ProofStore(Protocol):
    def upload(self, order_id: str, ext: str, content_type: str, file_bytes: bytes) -> str:
        ...


class Notifier(Protocol):
    def send(self, text: str) -> None:
        ...


class PaymentProof:
    """Uploaded payment screenshot as received from the client."""

    def __init__(self, content_type: str | None, file_bytes: bytes):
        self.content_type = content_type
        self.file_bytes = file_bytes


class OrderService:
    """
    Business logic for orders.

    Responsibilities:
      - Price orders from the catalog (client totals are never trusted)
      - Number orders and derive their delivery schedule
      - Run the submission saga: upload proof -> append row -> notify
      - Look up invoices by id
    """

    def __init__(
        self,
        catalog: Catalog,
        order_repo: OrderRepository,
        proof_store: ProofStore,
        notifier: Notifier,
        base_url: str,
        sheets: dict[OrderChannel, tuple[str, SheetLayout]],
    ):
        self.catalog = catalog
        self.order_repo = order_repo
        self.proof_store = proof_store
        self.notifier = notifier
        self.base_url = base_url
        self.sheets = sheets

    # -------- Form step --------

    def create_draft(self, payload: OrderCreate, now: datetime | None = None) -> OrderDraftRead:
        """
        Price and number an order without storing anything.

        Raises:
            UnknownProductError: if a selection is not in the catalog.
        """
        now = now or datetime.now(timezone.utc)
        selections = self._canonical_selections(payload.active_selections)
        total = self._recompute_total(payload, selections)
        order_id = generate_order_id(payload.channel, now)

        return OrderDraftRead(
            id=order_id,
            channel=payload.channel,
            status=OrderStatus.PENDING_PAYMENT,
            items=self._selection_lines(selections),
            total_price=total,
            total_price_display=format_price(total),
            delivery_schedule=(
                delivery_label_for(now) if payload.channel == OrderChannel.DELIVERY else None
            ),
            created_at=now,
        )

    # -------- Payment step --------

    def submit_order(
        self,
        payload_json: str,
        proof: PaymentProof | None,
        now: datetime | None = None,
    ) -> SubmissionResult:
        """
        Submit an order with its payment proof.

        Steps:
          1. Validate payload and proof (nothing external happens on failure).
          2. Recompute total_price from the catalog.
          3. Upload the proof; status -> pending_verification.
          4. Append the order row.
          5. Notify the vendor (best-effort: failure does not fail the order).

        Never raises: every failure becomes SubmissionResult(success=False).
        """
        steps = SubmissionSteps()
        order_id: str | None = None
        try:
            payload = self._parse_submission(payload_json)
            order_id = payload.id
            ext = self._validate_proof(proof)
            order = self._build_order(payload, now or datetime.now(timezone.utc))

            proof_url = self._upload_proof(order, ext, proof)
            steps.proof_uploaded = True
            steps.proof_url = proof_url
            order.attach_payment_proof(proof_url)

            self._append(order)
            steps.row_appended = True

            invoice_url = build_invoice_url(self.base_url, order.id)
            steps.notification_sent = self._notify(order, invoice_url)

        except OrderError as e:
            if steps.proof_uploaded and not steps.row_appended:
                logger.error(
                    "Order %s: proof uploaded to %s but row was not appended (orphaned proof)",
                    order_id,
                    steps.proof_url,
                )
            return SubmissionResult(
                success=False,
                order_id=order_id,
                error=e.message,
                failed_step=getattr(e, "step", "validate"),
                steps=steps,
            )

        logger.info("Order %s submitted (total=%s)", order.id, order.total_price)
        return SubmissionResult(
            success=True,
            order_id=order.id,
            status=order.status,
            invoice_url=invoice_url,
            steps=steps,
        )

    # -------- Invoice --------

    def get_invoice(self, order_id: str) -> InvoiceRead | None:
        """
        Look up a stored order by id.

        Returns None when the id is unknown. Upstream failures are logged and
        also reported as None: the invoice page only distinguishes found / not found.
        """
        channel = channel_for_order_id(order_id)
        channels = [channel] if channel else list(self.sheets)

        for ch in channels:
            sheet, layout = self.sheets[ch]
            try:
                row = self.order_repo.find_order_by_id(sheet, order_id)
            except UpstreamError as e:
                logger.warning("Invoice lookup for %s failed: %s", order_id, e.message)
                return None
            if row is None:
                continue
            try:
                record = decode_order_row(row, layout, self.catalog)
            except RowDecodeError as e:
                logger.warning("Order %s has a malformed row: %s", order_id, e.message)
                return None
            return self._to_invoice(record)
        return None

    # -------- Helpers --------

    def _parse_submission(self, payload_json: str) -> OrderSubmit:
        try:
            return OrderSubmit.model_validate_json(payload_json)
        except ValidationError as e:
            raise OrderValidationError(_first_error_message(e)) from e

    @staticmethod
    def _validate_proof(proof: PaymentProof | None) -> str:
        if proof is None or not proof.file_bytes:
            raise OrderValidationError("Please upload payment proof first")
        if proof.content_type not in ALLOWED_PROOF_CONTENT_TYPES:
            raise OrderValidationError("Unsupported image type. Allowed: JPEG, PNG, WEBP, HEIC.")
        if len(proof.file_bytes) > MAX_PROOF_BYTES:
            raise OrderValidationError("Image too large (max 5MB).")
        return ALLOWED_PROOF_CONTENT_TYPES[proof.content_type]

    def _canonical_selections(self, selections: list[CoffeeSelection]) -> list[CoffeeSelection]:
        """
        Replace each client-typed key with its catalog key.

        Raises:
            UnknownProductError: if a selection is not in the catalog.
        """
        return [
            CoffeeSelection(type=self.catalog.get(s.type).key, ice=s.ice)
            for s in selections
        ]

    def _recompute_total(self, payload: OrderCreate, selections: list[CoffeeSelection]) -> int:
        total = compute_order_total(self.catalog, selections)
        if payload.total_price is not None and payload.total_price != total:
            logger.warning(
                "Client total %s does not match computed total %s; using computed",
                payload.total_price,
                total,
            )
        return total

    def _build_order(self, payload: OrderSubmit, now: datetime) -> Order:
        selections = self._canonical_selections(payload.active_selections)
        return Order(
            id=payload.id,
            created_at=now,
            channel=payload.channel,
            name=payload.name,
            phone=payload.phone,
            notes=payload.notes or "",
            location=payload.location or "",
            location_coordinates=payload.location_coordinates or "",
            pickup_time=payload.pickup_time or "",
            selections=selections,
            total_price=self._recompute_total(payload, selections),
            status=OrderStatus.PENDING_PAYMENT,
        )

    def _upload_proof(self, order: Order, ext: str, proof: PaymentProof) -> str:
        try:
            url = self.proof_store.upload(order.id, ext, proof.content_type, proof.file_bytes)
        except Exception as e:
            # Storage client errors are opaque (storage3 / httpx / RuntimeError)
            logger.error("Order %s: proof upload failed: %s", order.id, e)
            raise UpstreamError("Failed to upload payment proof", step="upload_proof") from e
        logger.info("Order %s: proof uploaded", order.id)
        return url

    def _append(self, order: Order) -> None:
        sheet, layout = self.sheets[order.channel]
        row = encode_order_row(order, layout, self.catalog, self.base_url)
        self.order_repo.append_order_row(sheet, LAYOUT_HEADERS[layout], row)
        logger.info("Order %s: row appended to '%s'", order.id, sheet)

    def _notify(self, order: Order, invoice_url: str) -> bool:
        text = compose_notification(order, invoice_url, datetime.now(timezone.utc))
        try:
            self.notifier.send(text)
        except (RequestException, RuntimeError) as e:
            logger.warning("Order %s: Failed to send notification: %s", order.id, e)
            return False
        return True

    def _selection_lines(self, selections: list[CoffeeSelection]) -> list[SelectionLine]:
        lines: list[SelectionLine] = []
        for s in selections:
            item = self.catalog.find(s.type)
            lines.append(
                SelectionLine(
                    type=s.type,
                    display_name=item.display_name if item else s.type,
                    with_ice=s.ice.with_ice,
                    without_ice=s.ice.without_ice,
                    quantity=s.quantity,
                    unit_price=item.unit_price if item else 0,
                    line_total=compute_line_total(item, s) if item else 0,
                    description=describe_selection(s),
                )
            )
        return lines

    def _to_invoice(self, record) -> InvoiceRead:
        schedule = None
        if record.channel == OrderChannel.DELIVERY and record.created_at is not None:
            schedule = delivery_label_for(record.created_at)

        return InvoiceRead(
            id=record.id,
            created_at_text=record.created_at_text,
            created_at=record.created_at,
            channel=record.channel,
            name=record.name,
            phone=record.phone,
            notes=record.notes,
            location=record.location,
            location_coordinates=record.location_coordinates,
            pickup_time=record.pickup_time,
            items=self._selection_lines(record.selections),
            total_price=record.total_price,
            total_price_display=format_price(record.total_price),
            delivery_schedule=schedule,
            invoice_url=record.invoice_url or build_invoice_url(self.base_url, record.id),
            payment_proof_url=record.payment_proof_url,
            status=record.status,
        )


def _first_error_message(e: ValidationError) -> str:
    """
    Human-readable message from a pydantic ValidationError.
    Validator messages are prefixed with 'Value error, ' by pydantic.
    """
    errors = e.errors()
    if not errors:
        return "Invalid order"
    msg = errors[0].get("msg", "Invalid order")
    return msg.removeprefix("Value error, ")
