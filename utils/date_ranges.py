"""
Date ranges - tests de solapamiento y pertenencia sobre intervalos semiabiertos [start, end)
Funciones puras, sin I/O
"""
from datetime import date, timedelta
from typing import Iterator


def overlaps(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """
    True si los intervalos [a_start, a_end) y [b_start, b_end) se intersectan.

    Cubre los tres casos (inicio dentro del otro, fin dentro del otro,
    contención total) con el test estándar. Un checkout igual al checkin
    de otra reserva NO es solapamiento.
    """
    return a_start < b_end and b_start < a_end


def contains_date(start: date, end: date, day: date) -> bool:
    """True si start <= day < end"""
    return start <= day < end


def iter_nights(start: date, end: date) -> Iterator[date]:
    """Itera cada noche del intervalo [start, end)"""
    current = start
    while current < end:
        yield current
        current += timedelta(days=1)
