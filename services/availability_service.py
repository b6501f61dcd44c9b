"""
Servicio de disponibilidad de habitaciones
Combina fechas bloqueadas, reservas activas y test de solapamiento.
Solo lectura: no reserva nada por sí mismo.
"""
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from models.booking import Booking, HOLDS_SLOT_STATUSES
from models.property import Property, Room, RoomBlockedDate, PriceOverride
from schemas.bookings import AvailabilityRead, ConflictingDate, GuestAvailabilityRead, PricingSummary
from services.errors import InvalidDateRange, RoomNotFound
from utils.booking_validator import BookingValidator, effective_max_guests
from utils.date_ranges import overlaps
from utils.logging_utils import log_event
from utils.pricing_engine import quote_stay, base_price, nights as count_nights


class AvailabilityService:
    """Consulta de disponibilidad de una habitación para [check_in, check_out)"""

    def __init__(self, validator: BookingValidator):
        self.validator = validator

    # ========================================================================
    # QUERIES
    # ========================================================================

    @staticmethod
    def blocked_dates(db: Session, room_id: str, check_in: date, check_out: date) -> List[date]:
        rows = (
            db.query(RoomBlockedDate.date)
            .filter(
                RoomBlockedDate.room_id == room_id,
                RoomBlockedDate.date >= check_in,
                RoomBlockedDate.date < check_out,
            )
            .all()
        )
        return sorted({row[0] for row in rows})

    @staticmethod
    def conflicting_bookings(db: Session, room_id: str, check_in: date, check_out: date,
                             exclude_booking_id: Optional[str] = None) -> List[Booking]:
        """Reservas que ocupan la habitación y se solapan con el rango pedido"""
        query = db.query(Booking).filter(
            Booking.room_id == room_id,
            Booking.status.in_(HOLDS_SLOT_STATUSES),
            # Prefiltro indexable; el test exacto se hace con overlaps()
            Booking.check_in < check_out,
            Booking.check_out > check_in,
        )
        if exclude_booking_id:
            query = query.filter(Booking.id != exclude_booking_id)

        candidates = query.order_by(Booking.check_in, Booking.order_code).all()
        return [
            booking for booking in candidates
            if overlaps(check_in, check_out, booking.check_in, booking.check_out)
        ]

    @staticmethod
    def overrides_for_room(db: Session, room_id: str) -> List[PriceOverride]:
        return db.query(PriceOverride).filter(PriceOverride.room_id == room_id).all()

    # ========================================================================
    # AVAILABILITY
    # ========================================================================

    def check_availability(self, db: Session, room_id: str, check_in: date, check_out: date,
                           property_id: Optional[str] = None) -> AvailabilityRead:
        """
        Verifica si la habitación está libre en [check_in, check_out)

        Raises:
            InvalidDateRange: fechas pasadas, invertidas o fuera del máximo de noches
            RoomNotFound: la habitación no existe (o no pertenece a la propiedad)
        """
        date_check = self.validator.validate_dates(check_in, check_out)
        if not date_check.ok:
            raise InvalidDateRange(date_check.errors)

        room = db.query(Room).filter(Room.id == room_id, Room.deleted.is_(False)).first()
        if not room or (property_id is not None and room.property_id != property_id):
            raise RoomNotFound(room_id)

        unavailable = self.blocked_dates(db, room_id, check_in, check_out)
        if unavailable:
            log_event(
                "availability", "sistema", "Fechas bloqueadas",
                f"room_id={room_id} checkin={check_in} checkout={check_out} bloqueadas={len(unavailable)}",
            )
            return AvailabilityRead(
                available=False,
                message="Room is not available for some dates in the selected range",
                unavailable_dates=unavailable,
            )

        conflicts = self.conflicting_bookings(db, room_id, check_in, check_out)
        if conflicts:
            log_event(
                "availability", "sistema", "Conflicto de reservas",
                f"room_id={room_id} checkin={check_in} checkout={check_out} "
                f"conflictos={[booking.order_code for booking in conflicts]}",
            )
            return AvailabilityRead(
                available=False,
                message="Room is not available for selected dates",
                conflicting_dates=[
                    ConflictingDate(
                        check_in=booking.check_in,
                        check_out=booking.check_out,
                        order_code=booking.order_code,
                    )
                    for booking in conflicts
                ],
            )

        quote = quote_stay(room.base_price, check_in, check_out, self.overrides_for_room(db, room_id))
        # basePrice es la tarifa nocturna de la habitación; el total de la estadía va en total_price
        return AvailabilityRead(
            available=True,
            message="Room is available",
            pricing=PricingSummary(base_price=quote.price_per_night, has_adjustments=quote.has_adjustments),
        )

    def check_availability_with_guests(self, db: Session, property_id: str, room_id: str,
                                       check_in: date, check_out: date, adults: int = 1,
                                       children: int = 0, pets: int = 0,
                                       price_per_night: Optional[Decimal] = None) -> GuestAvailabilityRead:
        """
        Valida huéspedes y fechas antes de consultar disponibilidad.
        Si la validación falla devuelve los errores por campo en vez de lanzar.
        """
        room = db.query(Room).filter(Room.id == room_id, Room.deleted.is_(False)).first()
        property_obj = db.query(Property).filter(Property.id == property_id, Property.deleted.is_(False)).first()

        validation = self.validator.validate_guests(
            adults, children, pets, effective_max_guests(room, property_obj)
        )
        validation.merge(self.validator.validate_dates(check_in, check_out))
        if not validation.ok:
            return GuestAvailabilityRead(
                available=False,
                message="Booking parameters are invalid",
                validation_errors=validation.errors,
            )

        # Tope propio de la propiedad, aunque la habitación declare más capacidad
        total_guests = adults + children
        if property_obj is not None and property_obj.max_guests and total_guests > property_obj.max_guests:
            message = f"Total guests ({total_guests}) exceeds property maximum ({property_obj.max_guests})"
            return GuestAvailabilityRead(
                available=False,
                message=message,
                validation_errors={"guests": message},
            )

        availability = self.check_availability(db, room_id, check_in, check_out, property_id=property_id)
        stay_nights = count_nights(check_in, check_out)
        nightly = price_per_night if price_per_night is not None else room.base_price

        return GuestAvailabilityRead(
            **availability.model_dump(),
            nights=stay_nights,
            total_price=base_price(nightly, stay_nights),
            validation_passed=True,
        )
