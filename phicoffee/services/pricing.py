# phicoffee/services/pricing.py
from typing import Iterable

from phicoffee.models.catalog import Catalog, CatalogItem
from phicoffee.models.order import CoffeeSelection


def compute_line_total(item: CatalogItem, selection: CoffeeSelection) -> int:
    """unit_price x (with_ice + without_ice)."""
    return item.unit_price * (selection.ice.with_ice + selection.ice.without_ice)


def compute_order_total(catalog: Catalog, selections: Iterable[CoffeeSelection]) -> int:
    """
    Sum of line totals over all selections.

    Zero-quantity selections contribute 0. A selection whose type is not in
    the catalog raises UnknownProductError instead of being skipped.
    """
    total = 0
    for selection in selections:
        item = catalog.get(selection.type)
        total += compute_line_total(item, selection)
    return total


def format_price(amount: int) -> str:
    """
    Thousands-grouped display string with ',' as separator.
    Example: 20000 -> "20,000"
    """
    return f"{amount:,d}"
