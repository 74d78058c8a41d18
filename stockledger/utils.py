from datetime import datetime, date, time, timedelta, timezone
from decimal import Decimal


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Return the [start, end) UTC range covering ``day``."""
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def format_quantity(value) -> str:
    """Render a stock quantity without trailing zeros (``6.500`` -> ``6.5``)."""
    d = Decimal(str(value))
    if d == d.to_integral_value():
        return str(d.quantize(Decimal(1)))
    return format(d.normalize(), "f")


def page_count(total: int, page_size: int) -> int:
    return (total + page_size - 1) // page_size


def utc_date(moment: datetime) -> date:
    """Calendar day of ``moment`` in UTC. Naive values are taken as UTC already."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.date()
