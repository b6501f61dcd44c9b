from datetime import date, datetime
from typing import Optional

import pytz

from config import HOTEL_TIMEZONE

# Centralized Timezone Configuration
HOTEL_TZ = pytz.timezone(HOTEL_TIMEZONE)


def get_hotel_now() -> datetime:
    """Returns current time in Hotel Timezone"""
    return datetime.now(HOTEL_TZ)


def to_hotel_time(dt: datetime) -> datetime:
    """Converts a datetime to Hotel Timezone"""
    if dt.tzinfo is None:
        # Naive datetimes in the store are UTC
        return pytz.utc.localize(dt).astimezone(HOTEL_TZ)
    return dt.astimezone(HOTEL_TZ)


def to_utc_naive(dt: datetime) -> datetime:
    """Normaliza un datetime al formato de almacenamiento (UTC sin tzinfo)"""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(pytz.utc).replace(tzinfo=None)


class SystemClock:
    """
    Fuente de tiempo real.
    now() devuelve UTC naive (formato de las columnas DateTime),
    today() devuelve la fecha operativa en la zona horaria del hotel.
    """

    def now(self) -> datetime:
        return to_utc_naive(get_hotel_now())

    def today(self) -> date:
        return get_hotel_now().date()


class FixedClock:
    """Reloj fijo para tests y simulaciones de vencimiento"""

    def __init__(self, moment: datetime, today: Optional[date] = None):
        self.moment = to_utc_naive(moment)
        self._today = today

    def now(self) -> datetime:
        return self.moment

    def today(self) -> date:
        if self._today is not None:
            return self._today
        return to_hotel_time(self.moment).date()

    def advance(self, delta) -> None:
        self.moment = self.moment + delta
