# phicoffee/models/order.py
import re
import secrets
import string
from datetime import datetime, timezone
from enum import Enum

from sqlmodel import SQLModel, Field

from phicoffee.core.exceptions import OrderValidationError


class OrderStatus(str, Enum):
    # pending_payment -> pending_verification happens in this service;
    # verified / rejected are set manually by the vendor in the sheet.
    PENDING_PAYMENT = "pending_payment"
    PENDING_VERIFICATION = "pending_verification"
    VERIFIED = "verified"
    REJECTED = "rejected"


class OrderChannel(str, Enum):
    DELIVERY = "delivery"
    SPOT = "spot"


ORDER_ID_PREFIXES: dict[OrderChannel, str] = {
    OrderChannel.DELIVERY: "ORDER",
    OrderChannel.SPOT: "SPOT",
}

ORDER_ID_PATTERN = re.compile(r"^(ORDER|SPOT)-\d{10,}-[0-9a-z]{1,16}$")

_TOKEN_ALPHABET = string.digits + string.ascii_lowercase
_TOKEN_LENGTH = 9


def generate_order_id(channel: OrderChannel, now: datetime | None = None) -> str:
    """
    Build an order id of the form <PREFIX>-<epochMillis>-<token>.

    Example: SPOT-1760862309123-k3j9x0a2b
    """
    now = now or datetime.now(timezone.utc)
    epoch_ms = int(now.timestamp() * 1000)
    token = "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(_TOKEN_LENGTH))
    return f"{ORDER_ID_PREFIXES[channel]}-{epoch_ms}-{token}"


def channel_for_order_id(order_id: str) -> OrderChannel | None:
    prefix = order_id.split("-", 1)[0]
    for channel, value in ORDER_ID_PREFIXES.items():
        if prefix == value:
            return channel
    return None


class IceSplit(SQLModel):
    with_ice: int = Field(default=0, ge=0)
    without_ice: int = Field(default=0, ge=0)

    @property
    def total(self) -> int:
        return self.with_ice + self.without_ice


class CoffeeSelection(SQLModel):
    """
    One catalog item with its quantity split by ice preference.
    """

    type: str = Field(description="Catalog key of the drink")
    ice: IceSplit = Field(default_factory=IceSplit)

    @property
    def quantity(self) -> int:
        return self.ice.total


class Order(SQLModel):
    """
    In-memory order.

    Created when the customer submits the form (pending_payment), mutated once
    when the payment proof is attached, then appended to the sheet. There is
    no in-place update of an appended row.
    """

    id: str
    created_at: datetime
    channel: OrderChannel

    name: str
    phone: str
    notes: str = ""

    # delivery orders use location (+ optional maps link), spot orders pickup_time
    location: str = ""
    location_coordinates: str = ""
    pickup_time: str = ""

    selections: list[CoffeeSelection] = Field(default_factory=list)
    total_price: int = Field(ge=0)

    payment_proof_url: str = ""
    status: OrderStatus = OrderStatus.PENDING_PAYMENT

    def attach_payment_proof(self, url: str) -> None:
        if self.status != OrderStatus.PENDING_PAYMENT:
            raise OrderValidationError(
                f"Payment proof already attached (status={self.status.value})"
            )
        if not url:
            raise OrderValidationError("Payment proof URL cannot be empty")
        self.payment_proof_url = url
        self.status = OrderStatus.PENDING_VERIFICATION


class ScheduleItem(SQLModel):
    order_days: str
    delivery_day: str
