"""
Booking Validator - validaciones previas a cualquier escritura
Nunca lanza excepciones por errores esperados: devuelve campo -> mensaje
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Optional

from config import MAX_STAY_NIGHTS
from utils.pricing_engine import nights as count_nights


@dataclass
class ValidationResult:
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add(self, field_name: str, message: str) -> None:
        # Se conserva el primer error de cada campo
        self.errors.setdefault(field_name, message)

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        for field_name, message in other.errors.items():
            self.add(field_name, message)
        return self


def effective_max_guests(room=None, property_obj=None) -> Optional[int]:
    """Capacidad de la habitación si está definida, si no el tope de la propiedad"""
    if room is not None and room.capacity:
        return room.capacity
    if property_obj is not None and property_obj.max_guests:
        return property_obj.max_guests
    return None


class BookingValidator:
    """Valida huéspedes y fechas de una solicitud de reserva"""

    def __init__(self, clock, max_nights: int = MAX_STAY_NIGHTS):
        self.clock = clock
        self.max_nights = max_nights

    def validate_dates(self, check_in: date, check_out: date) -> ValidationResult:
        result = ValidationResult()

        # Comparación solo por fecha, sin tolerancia horaria
        if check_in < self.clock.today():
            result.add("check_in", "Check-in date cannot be in the past")

        if check_out <= check_in:
            result.add("check_out", "Check-out date must be after check-in date")
            return result

        if count_nights(check_in, check_out) > self.max_nights:
            result.add("check_out", f"Maximum stay is {self.max_nights} nights")
        return result

    def validate_guests(self, adults: int, children: int = 0, pets: int = 0,
                        max_guests: Optional[int] = None) -> ValidationResult:
        result = ValidationResult()

        if adults < 1:
            result.add("adults", "At least 1 adult is required")
        if children < 0:
            result.add("children", "Children cannot be negative")
        if pets < 0:
            result.add("pets", "Pets cannot be negative")

        total_guests = adults + children
        if max_guests is not None and total_guests > max_guests:
            result.add("guests", f"Total guests ({total_guests}) exceeds the maximum allowed ({max_guests})")
        return result

    def validate_request(self, request, max_guests: Optional[int] = None) -> ValidationResult:
        """Valida una CreateBookingRequest completa (huéspedes + fechas)"""
        result = self.validate_guests(request.adults, request.children, request.pets, max_guests)
        return result.merge(self.validate_dates(request.check_in, request.check_out))
