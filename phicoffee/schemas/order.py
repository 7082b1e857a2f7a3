# phicoffee/schemas/order.py
import re
from datetime import datetime

from pydantic import ConfigDict, field_validator, model_validator
from sqlmodel import SQLModel, Field

from phicoffee.models.order import (
    ORDER_ID_PATTERN,
    ORDER_ID_PREFIXES,
    CoffeeSelection,
    OrderChannel,
    OrderStatus,
)

PICKUP_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
URL_PATTERN = re.compile(r"^https?://\S+$")


class OrderCreate(SQLModel):
    """
    Payload of the order form.

    User provides:
      - name, phone, notes (optional)
      - location (+ optional maps link) for delivery orders
      - pickup_time (HH:MM) for on-the-spot orders
      - coffee_selections with ice split per drink

    Backend derives:
      - id (<PREFIX>-<epochMillis>-<token>)
      - total_price from the catalog (client total is ignored)
      - status = 'pending_payment'
    """

    model_config = ConfigDict(extra="forbid")

    channel: OrderChannel = OrderChannel.DELIVERY
    name: str
    phone: str
    notes: str | None = None
    location: str | None = None
    location_coordinates: str | None = None
    pickup_time: str | None = None
    coffee_selections: list[CoffeeSelection]
    total_price: int | None = Field(
        default=None,
        description="Client-side total; informational only, always recomputed",
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters.")
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 10:
            raise ValueError("Please enter a valid phone number.")
        return v

    @field_validator("notes", "location", "location_coordinates", "pickup_time", mode="before")
    @classmethod
    def normalize_optional(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None

    @model_validator(mode="after")
    def check_channel_fields(self):
        if not any(s.quantity > 0 for s in self.coffee_selections):
            raise ValueError("Please select at least one coffee (qty > 0).")

        if self.channel == OrderChannel.DELIVERY:
            if not self.location or len(self.location) < 3:
                raise ValueError("Please provide your location for delivery.")
            if self.pickup_time:
                raise ValueError("Delivery orders cannot have a pickup time.")
            if self.location_coordinates and not URL_PATTERN.match(self.location_coordinates):
                raise ValueError("Location coordinates must be a URL.")
        else:
            if not self.pickup_time or not PICKUP_TIME_PATTERN.match(self.pickup_time):
                raise ValueError("Please select a pickup time (HH:MM).")
            if self.location or self.location_coordinates:
                raise ValueError("On-the-spot orders cannot have a delivery location.")
        return self

    @property
    def active_selections(self) -> list[CoffeeSelection]:
        return [s for s in self.coffee_selections if s.quantity > 0]


class OrderSubmit(OrderCreate):
    """
    Final submission, sent together with the payment proof.
    Carries the id assigned by the draft step.
    """

    id: str

    @model_validator(mode="after")
    def check_id(self):
        if not ORDER_ID_PATTERN.match(self.id):
            raise ValueError("Invalid order id.")
        if not self.id.startswith(ORDER_ID_PREFIXES[self.channel] + "-"):
            raise ValueError("Order id does not match the order channel.")
        return self


class SelectionLine(SQLModel):
    type: str
    display_name: str
    with_ice: int
    without_ice: int
    quantity: int
    unit_price: int
    line_total: int
    description: str


class OrderDraftRead(SQLModel):
    """
    Result of the form step: the order is priced and numbered but not stored.
    """

    id: str
    channel: OrderChannel
    status: OrderStatus
    items: list[SelectionLine]
    total_price: int
    total_price_display: str
    delivery_schedule: str | None = None
    created_at: datetime


class SubmissionSteps(SQLModel):
    """
    Outcome of each external step of a submission.

    A proof that was uploaded without a matching appended row is an orphan;
    these flags are what a reconciliation job would need to find it.
    """

    proof_uploaded: bool = False
    proof_url: str | None = None
    row_appended: bool = False
    notification_sent: bool = False


class SubmissionResult(SQLModel):
    success: bool
    order_id: str | None = None
    status: OrderStatus | None = None
    invoice_url: str | None = None
    error: str | None = None
    # "validate" for rejected input, otherwise the upstream step that failed
    failed_step: str | None = None
    steps: SubmissionSteps = Field(default_factory=SubmissionSteps)


class InvoiceRead(SQLModel):
    """
    Invoice view of a stored order.
    """

    id: str
    created_at_text: str
    created_at: datetime | None
    channel: OrderChannel
    name: str
    phone: str
    notes: str
    location: str
    location_coordinates: str
    pickup_time: str
    items: list[SelectionLine]
    total_price: int
    total_price_display: str
    delivery_schedule: str | None = None
    invoice_url: str
    payment_proof_url: str
    status: str
