"""
Time provider and expiration date helpers.
Every expiration computation goes through the configured time zone.
"""
import calendar
from datetime import datetime, time
from typing import Tuple
from zoneinfo import ZoneInfo
from src.core import config


class Clock:
    """Supplies the current time in a fixed time zone."""

    def __init__(self, zone_name: str = None):
        self.zone = ZoneInfo(zone_name or config.settings.time_zone)

    def now(self) -> datetime:
        return datetime.now(self.zone)


def build_expiration_date(year: int, month: int, zone: ZoneInfo = None) -> datetime:
    """
    Build the expiration instant for a (year, month) pair.

    Args:
        year: Expiration year
        month: Expiration month (1-12)
        zone: Time zone, defaults to the configured one

    Returns:
        The last instant of the month in the given zone

    Raises:
        ValueError: If month is outside 1-12
    """
    zone = zone or ZoneInfo(config.settings.time_zone)
    last_day = calendar.monthrange(year, month)[1]
    return datetime.combine(datetime(year, month, last_day).date(), time.max, tzinfo=zone)


def year_month_of(instant: datetime, zone: ZoneInfo = None) -> Tuple[int, int]:
    """Recover the (year, month) an expiration instant belongs to."""
    zone = zone or ZoneInfo(config.settings.time_zone)
    local = instant.astimezone(zone)
    return local.year, local.month
