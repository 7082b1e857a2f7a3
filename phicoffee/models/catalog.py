# phicoffee/models/catalog.py
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from phicoffee.core.exceptions import CatalogConfigError, UnknownProductError


class ProductSlot(str, Enum):
    """
    Fixed column pairs of the slotted sheet layout.

    Each slot owns two adjacent columns: <slot>0 (without ice), <slot>1 (with ice).
    """

    PHISTA_COFFEE = "PC"
    CARAMEL_MACCHIATO = "PCM"
    BROWN_SUGAR = "PBS"


# Column order of the slots in the sheet; do not reorder.
SLOT_ORDER: tuple[ProductSlot, ...] = (
    ProductSlot.PHISTA_COFFEE,
    ProductSlot.CARAMEL_MACCHIATO,
    ProductSlot.BROWN_SUGAR,
)


@dataclass(frozen=True)
class CatalogItem:
    """
    A purchasable drink.

    unit_price is in whole Rupiah.
    """

    key: str
    display_name: str
    unit_price: int
    slot: ProductSlot

    def __post_init__(self):
        if self.unit_price <= 0:
            raise CatalogConfigError(f"Price for '{self.key}' must be positive")


def _normalize_key(key: str) -> str:
    return key.strip().lower()


class Catalog:
    """
    Immutable set of catalog items, built once at startup and injected
    into the pricing / mapping services.
    """

    def __init__(self, items: Iterable[CatalogItem]):
        self._items: tuple[CatalogItem, ...] = tuple(items)
        self._by_key: dict[str, CatalogItem] = {}
        for item in self._items:
            norm = _normalize_key(item.key)
            if norm in self._by_key:
                raise CatalogConfigError(f"Duplicate catalog key: {item.key}")
            self._by_key[norm] = item

    def __iter__(self):
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def find(self, key: str) -> CatalogItem | None:
        return self._by_key.get(_normalize_key(key))

    def get(self, key: str) -> CatalogItem:
        """Resolve a key or raise UnknownProductError."""
        item = self.find(key)
        if item is None:
            raise UnknownProductError(key)
        return item

    def item_for_slot(self, slot: ProductSlot) -> CatalogItem | None:
        return next((it for it in self._items if it.slot == slot), None)


def validate_slot_mapping(catalog: Catalog) -> None:
    """
    Fail fast if the catalog cannot be written to the slotted layout.

    Every catalog item needs a slot, and no two items may share one
    (their counts would be merged into the same columns).
    """
    seen: dict[ProductSlot, str] = {}
    for item in catalog:
        if not isinstance(item.slot, ProductSlot) or item.slot not in SLOT_ORDER:
            raise CatalogConfigError(f"Catalog item '{item.key}' has no sheet slot")
        if item.slot in seen:
            raise CatalogConfigError(
                f"Catalog items '{seen[item.slot]}' and '{item.key}' share slot {item.slot.value}"
            )
        seen[item.slot] = item.key


DEFAULT_CATALOG = Catalog(
    [
        CatalogItem(
            key="phista coffee",
            display_name="Phista Coffee",
            unit_price=20000,
            slot=ProductSlot.PHISTA_COFFEE,
        ),
        CatalogItem(
            key="Phicoffee Caramel Macchiato",
            display_name="Phicoffee Caramel Macchiato",
            unit_price=20000,
            slot=ProductSlot.CARAMEL_MACCHIATO,
        ),
        CatalogItem(
            key="Phicoffee Brown Sugar",
            display_name="Phicoffee Brown Sugar",
            unit_price=18000,
            slot=ProductSlot.BROWN_SUGAR,
        ),
    ]
)


def get_catalog() -> Catalog:
    return DEFAULT_CATALOG
