"""
Pricing Engine - cálculo de noches y precio de una estadía
SINGLE SOURCE OF TRUTH para los montos que valida la reserva

Limitación conocida: los ajustes de precio (PriceOverride) dentro de la estadía
se informan con el flag has_adjustments, NO se aplican al total. El total
comprometido es siempre price_per_night * nights; quien necesite el detalle
por noche con ajustes debe calcularlo explícitamente.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional

from config import PRICE_TOLERANCE
from utils.date_ranges import iter_nights


ONE_DAY = timedelta(days=1)
CENTS = Decimal("0.01")


class InvalidRange(ValueError):
    """checkOut <= checkIn al calcular noches"""


def _safe_decimal(value, fallback: Decimal = Decimal("0")) -> Decimal:
    """Convierte a Decimal de forma segura"""
    if value is None:
        return fallback
    try:
        if isinstance(value, Decimal):
            return value
        return Decimal(str(value))
    except (ValueError, TypeError, ArithmeticError):
        return fallback


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def parse_to_date(value) -> date:
    """Convierte string/datetime/date a date"""
    if value is None:
        raise ValueError("Date value is None")

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace('Z', '+00:00')).date()
        except ValueError:
            raise ValueError(f"Invalid date format: {value}")

    raise TypeError(f"Unsupported date type: {type(value)}")


@dataclass
class PriceQuote:
    """Resultado del cálculo de precio de una estadía"""
    nights: int
    price_per_night: Decimal
    base_price: Decimal
    total: Decimal
    has_adjustments: bool = False
    adjustment_ids: List[int] = field(default_factory=list)


def nights(check_in, check_out) -> int:
    """
    Noches de la estadía: ceil((check_out - check_in) / 1 día)

    Raises:
        InvalidRange: si check_out <= check_in
    """
    if check_out <= check_in:
        raise InvalidRange(f"check_out ({check_out}) must be after check_in ({check_in})")
    delta = check_out - check_in
    # ceil sin pasar por float
    return -((-delta) // ONE_DAY)


def base_price(price_per_night, night_count: int) -> Decimal:
    """price_per_night * noches, redondeado a centavos"""
    return _money(_safe_decimal(price_per_night) * night_count)


def override_applies(override, check_in: date, check_out: date) -> bool:
    """True si el ajuste cae en alguna noche de [check_in, check_out)"""
    if override.dates:
        stay = set(iter_nights(check_in, check_out))
        return any(parse_to_date(day) in stay for day in override.dates)

    if override.start_date is None and override.end_date is None:
        return False

    # Vigencia inclusiva [start_date, end_date]; extremos abiertos si faltan
    starts_before_checkout = override.start_date is None or override.start_date < check_out
    ends_after_checkin = override.end_date is None or override.end_date >= check_in
    return starts_before_checkout and ends_after_checkin


def apply_overrides(base, overrides: Iterable, check_in: date, check_out: date) -> PriceQuote:
    """
    Reporta los ajustes vigentes en la estadía sin modificar el total.

    Args:
        base: PriceQuote base (o monto base Decimal)
        overrides: PriceOverride de la habitación
        check_in / check_out: estadía [check_in, check_out)

    Returns:
        PriceQuote con has_adjustments y los ids de los ajustes encontrados
    """
    if isinstance(base, PriceQuote):
        quote = PriceQuote(
            nights=base.nights,
            price_per_night=base.price_per_night,
            base_price=base.base_price,
            total=base.total,
        )
    else:
        amount = _money(_safe_decimal(base))
        quote = PriceQuote(
            nights=nights(check_in, check_out),
            price_per_night=Decimal("0"),
            base_price=amount,
            total=amount,
        )

    matching = [override for override in overrides if override_applies(override, check_in, check_out)]
    quote.has_adjustments = bool(matching)
    quote.adjustment_ids = [override.id for override in matching]
    return quote


def quote_stay(price_per_night, check_in: date, check_out: date, overrides: Optional[Iterable] = None) -> PriceQuote:
    """Cotización completa: noches, base y flag de ajustes"""
    night_count = nights(check_in, check_out)
    price = _money(_safe_decimal(price_per_night))
    amount = base_price(price, night_count)
    quote = PriceQuote(nights=night_count, price_per_night=price, base_price=amount, total=amount)
    return apply_overrides(quote, overrides or [], check_in, check_out)


def validate_quoted_total(quoted, computed, tolerance_abs=PRICE_TOLERANCE) -> bool:
    """True si |quoted - computed| <= tolerancia"""
    difference = abs(_safe_decimal(quoted) - _safe_decimal(computed))
    return difference <= _safe_decimal(tolerance_abs)
