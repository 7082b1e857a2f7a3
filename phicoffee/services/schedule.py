# phicoffee/services/schedule.py
"""
Weekly delivery cadence.

Orders are batched and delivered three times a week:

    Sun, Mon, Tue  -> Wednesday
    Wed, Thu       -> Friday
    Fri, Sat       -> Sunday (next)

Days of week below use 0 = Sunday ... 6 = Saturday.
"""
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from phicoffee.models.order import ScheduleItem

JAKARTA_TZ = ZoneInfo("Asia/Jakarta")

DAY_NAMES_ID = ("Minggu", "Senin", "Selasa", "Rabu", "Kamis", "Jumat", "Sabtu")
MONTH_NAMES_ID = (
    "Januari",
    "Februari",
    "Maret",
    "April",
    "Mei",
    "Juni",
    "Juli",
    "Agustus",
    "September",
    "Oktober",
    "November",
    "Desember",
)

# order day-of-week -> days until delivery
DELIVERY_OFFSETS: dict[int, int] = {
    0: 3,  # Sun -> Wed
    1: 3 - 1,  # Mon -> Wed
    2: 3 - 2,  # Tue -> Wed
    3: 5 - 3,  # Wed -> Fri
    4: 5 - 4,  # Thu -> Fri
    5: 7 - 5,  # Fri -> Sun
    6: 7 - 6,  # Sat -> Sun
}

# (label, first day, last day, delivery day) relative to the week's Sunday
ORDER_WINDOWS: tuple[tuple[str, int, int, int], ...] = (
    ("Minggu-Senin-Selasa", 0, 2, 3),
    ("Rabu-Kamis", 3, 4, 5),
    ("Jumat-Sabtu", 5, 6, 7),
)


def day_of_week(d: date) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return (d.weekday() + 1) % 7


def today_in_jakarta() -> date:
    return datetime.now(JAKARTA_TZ).date()


def _local_date(order_instant: date | datetime) -> date:
    if isinstance(order_instant, datetime):
        if order_instant.tzinfo is not None:
            order_instant = order_instant.astimezone(JAKARTA_TZ)
        return order_instant.date()
    return order_instant


def delivery_date_for(order_instant: date | datetime) -> date:
    """Delivery date for an order placed at `order_instant` (Jakarta time)."""
    order_date = _local_date(order_instant)
    return order_date + timedelta(days=DELIVERY_OFFSETS[day_of_week(order_date)])


def format_long_date(d: date) -> str:
    """Indonesian long date, e.g. 'Rabu, 21 Oktober 2026'."""
    return f"{DAY_NAMES_ID[day_of_week(d)]}, {d.day} {MONTH_NAMES_ID[d.month - 1]} {d.year}"


def format_day_month(d: date) -> str:
    """Indonesian weekday + day + month, e.g. 'Rabu, 21 Oktober'."""
    return f"{DAY_NAMES_ID[day_of_week(d)]}, {d.day} {MONTH_NAMES_ID[d.month - 1]}"


def delivery_label_for(order_instant: date | datetime) -> str:
    return format_long_date(delivery_date_for(order_instant))


def weekly_schedule(today: date | None = None) -> list[ScheduleItem]:
    """
    Order windows of the current (Sunday-anchored) week with their delivery days.

    Recomputed on every call; nothing is cached.
    """
    today = today or today_in_jakarta()
    sunday = today - timedelta(days=day_of_week(today))

    schedule: list[ScheduleItem] = []
    for label, first_offset, last_offset, delivery_offset in ORDER_WINDOWS:
        days = [sunday + timedelta(days=i) for i in range(first_offset, last_offset + 1)]
        date_range = "-".join(str(d.day) for d in days)
        month = MONTH_NAMES_ID[days[0].month - 1]
        delivery = sunday + timedelta(days=delivery_offset)
        schedule.append(
            ScheduleItem(
                order_days=f"{label} ({date_range} {month})",
                delivery_day=format_day_month(delivery),
            )
        )
    return schedule
