# phicoffee/routers/catalog.py
from datetime import date

from fastapi import APIRouter, Depends

from phicoffee.models.catalog import Catalog, get_catalog
from phicoffee.schemas.catalog import CatalogItemRead, DeliveryDateRead, ScheduleItemRead
from phicoffee.services.pricing import format_price
from phicoffee.services.schedule import delivery_date_for, format_long_date, weekly_schedule

router = APIRouter(tags=["Catalog"])


@router.get("/catalog", response_model=list[CatalogItemRead])
def list_catalog(catalog: Catalog = Depends(get_catalog)):
    """
    Drinks on sale with their unit prices.
    """
    return [
        CatalogItemRead(
            key=item.key,
            display_name=item.display_name,
            unit_price=item.unit_price,
            unit_price_display=format_price(item.unit_price),
        )
        for item in catalog
    ]


@router.get("/schedule/weekly", response_model=list[ScheduleItemRead])
def get_weekly_schedule():
    """
    Order windows of the current week and their delivery days.
    """
    return [
        ScheduleItemRead(order_days=item.order_days, delivery_day=item.delivery_day)
        for item in weekly_schedule()
    ]


@router.get("/schedule/delivery", response_model=DeliveryDateRead)
def get_delivery_date(order_date: date):
    """
    Delivery day for an order placed on `order_date`.
    """
    delivery = delivery_date_for(order_date)
    return DeliveryDateRead(
        order_date=order_date,
        delivery_date=delivery,
        delivery_label=format_long_date(delivery),
    )
