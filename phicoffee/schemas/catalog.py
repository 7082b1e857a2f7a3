# phicoffee/schemas/catalog.py
from datetime import date

from sqlmodel import SQLModel


class CatalogItemRead(SQLModel):
    key: str
    display_name: str
    unit_price: int
    unit_price_display: str


class ScheduleItemRead(SQLModel):
    order_days: str
    delivery_day: str


class DeliveryDateRead(SQLModel):
    order_date: date
    delivery_date: date
    delivery_label: str
