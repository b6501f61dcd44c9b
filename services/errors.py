"""
Errores tipados del motor de reservas
Cada tipo tiene código, mensaje accionable y status HTTP equivalente
"""
from decimal import Decimal
from typing import Dict, Optional


class ReservationError(Exception):
    code = "reservation_error"
    http_status = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class ValidationFailed(ReservationError):
    code = "validation_failed"
    http_status = 422

    def __init__(self, field_errors: Dict[str, str], message: str = "Booking request is invalid"):
        super().__init__(message)
        self.field_errors = dict(field_errors)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["field_errors"] = self.field_errors
        return data


class InvalidDateRange(ValidationFailed):
    code = "invalid_date_range"

    def __init__(self, field_errors: Dict[str, str]):
        super().__init__(field_errors, "Invalid date range. Check-in cannot be in the past and check-out must be after check-in")


class NotFound(ReservationError):
    code = "not_found"
    http_status = 404
    entity = "Resource"
    default_message = None

    def __init__(self, entity_id: Optional[str] = None):
        super().__init__(self.default_message or f"{self.entity} not found")
        self.entity_id = entity_id


class PropertyNotFound(NotFound):
    code = "property_not_found"
    entity = "Property"


class UserNotFound(NotFound):
    code = "user_not_found"
    entity = "User"
    default_message = "User not found. Please log in to make a booking."


class RoomNotFound(NotFound):
    code = "room_not_found"
    entity = "Room"


class BookingNotFound(NotFound):
    code = "booking_not_found"
    entity = "Booking"


class BookingAccessDenied(BookingNotFound):
    """La reserva no pertenece al tenant que actúa; se responde igual que si no existiera"""
    code = "booking_access_denied"
    default_message = "Booking not found or access denied"


class GuestLimitExceeded(ReservationError):
    code = "guest_limit_exceeded"

    def __init__(self, total_guests: int, limit: int):
        super().__init__(f"Total guests ({total_guests}) exceeds property maximum ({limit})")
        self.total_guests = total_guests
        self.limit = limit


class RoomUnavailable(ReservationError):
    """Esperado y recuperable: otra reserva o un bloqueo ocupa las fechas"""
    code = "room_unavailable"
    http_status = 409

    def __init__(self, availability=None, message: str = "Room is not available for the selected dates"):
        super().__init__(message)
        self.availability = availability

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.availability is not None:
            data["unavailable_dates"] = [day.isoformat() for day in self.availability.unavailable_dates]
            data["conflicting_dates"] = [
                {
                    "check_in": conflict.check_in.isoformat(),
                    "check_out": conflict.check_out.isoformat(),
                    "order_code": conflict.order_code,
                }
                for conflict in self.availability.conflicting_dates
            ]
        return data


class PriceMismatch(ReservationError):
    code = "price_mismatch"

    def __init__(self, expected: Decimal, provided: Decimal):
        super().__init__(f"Total amount mismatch. Expected: {expected}, Provided: {provided}")
        self.expected = expected
        self.provided = provided

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["expected"] = str(self.expected)
        data["provided"] = str(self.provided)
        return data


class InvalidState(ReservationError):
    code = "invalid_state"
    http_status = 409

    def __init__(self, current_status, action: str):
        status_label = getattr(current_status, "value", current_status)
        super().__init__(f"Cannot {action} a booking in status {status_label}")
        self.current_status = current_status
        self.action = action


class PaymentGatewayUnavailable(ReservationError):
    """
    El gateway falló; la reserva queda como transferencia manual.
    Se devuelve como advertencia junto a la reserva, no como fallo.
    """
    code = "payment_gateway_unavailable"

    def __init__(self, order_code: str, reason: str = ""):
        super().__init__(
            "We had trouble setting up online payment, but your reservation is held. "
            "Please pay by manual transfer before the payment deadline."
        )
        self.order_code = order_code
        self.reason = reason
