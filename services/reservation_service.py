"""
Servicio de reservas: creación transaccional y transiciones de estado

Flujo de creación:
1. Validar solicitud (BookingValidator)         -> ValidationFailed
2. Cargar contexto (propiedad, huésped, hab.)   -> PropertyNotFound / UserNotFound / RoomNotFound
3. Tope de huéspedes de la propiedad            -> GuestLimitExceeded
4. Disponibilidad                                -> RoomUnavailable
5. Verificación de precio                        -> PriceMismatch
6. Commit atómico: lock de la habitación + re-check de solapamiento + insert
7. Payment gateway (opcional): si falla, la reserva queda como MANUAL_TRANSFER
   y se devuelve PaymentGatewayUnavailable como advertencia

Es la única vía de escritura de Booking.status.
"""

import secrets
import string
from dataclasses import dataclass
from datetime import timedelta, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from config import BOOKING_EXPIRATION_MINUTES, ORDER_CODE_PREFIX, PRICE_TOLERANCE
from models.booking import Booking, BookingStatus, PaymentMethod, NO_OVERLAP_CONSTRAINT
from models.property import Property, Room
from models.user import User
from schemas.bookings import AvailabilityRead, ConflictingDate, CreateBookingRequest, GuestAvailabilityRead
from services.availability_service import AvailabilityService
from services.errors import (
    BookingAccessDenied,
    BookingNotFound,
    GuestLimitExceeded,
    InvalidState,
    PaymentGatewayUnavailable,
    PriceMismatch,
    PropertyNotFound,
    RoomNotFound,
    RoomUnavailable,
    UserNotFound,
    ValidationFailed,
)
from services.payment_gateway import PaymentGateway
from utils.booking_validator import BookingValidator, effective_max_guests
from utils.logging_utils import log_event, log_warning, log_error
from utils.pricing_engine import base_price, nights as count_nights, validate_quoted_total


ORDER_CODE_ALPHABET = string.ascii_uppercase + string.digits
ORDER_CODE_ATTEMPTS = 5

# Transiciones permitidas: estado actual -> estados destino
ALLOWED_TRANSITIONS = {
    BookingStatus.WAITING_PAYMENT: {
        BookingStatus.WAITING_CONFIRMATION,
        BookingStatus.CANCELED,
        BookingStatus.EXPIRED,
    },
    BookingStatus.WAITING_CONFIRMATION: {
        BookingStatus.WAITING_PAYMENT,
        BookingStatus.PROCESSING,
    },
    BookingStatus.PROCESSING: {
        BookingStatus.COMPLETED,
    },
}


@dataclass
class ReservationResult:
    """Reserva creada + token de pago o advertencia del gateway"""
    booking: Booking
    payment_token: Optional[str] = None
    payment_warning: Optional[PaymentGatewayUnavailable] = None


def _constraint_name(error: IntegrityError) -> str:
    orig = getattr(error, "orig", None)
    diag = getattr(orig, "diag", None)
    name = getattr(diag, "constraint_name", None) if diag is not None else None
    return name or str(orig)


class ReservationService:
    """
    Motor de reservas. Sin estado mutable propio: solo referencias a sus colaboradores.

    Args:
        session_factory: sessionmaker con expire_on_commit=False (las reservas
            devueltas quedan detached y con sus atributos cargados)
        payment_gateway: adaptador de pagos
        clock: fuente de tiempo (now() UTC naive, today() fecha operativa)
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        payment_gateway: PaymentGateway,
        clock,
        validator: Optional[BookingValidator] = None,
        expiration_window: timedelta = timedelta(minutes=BOOKING_EXPIRATION_MINUTES),
        price_tolerance=PRICE_TOLERANCE,
    ):
        self.session_factory = session_factory
        self.payment_gateway = payment_gateway
        self.clock = clock
        self.validator = validator or BookingValidator(clock)
        self.availability = AvailabilityService(self.validator)
        self.expiration_window = expiration_window
        self.price_tolerance = price_tolerance

    # ========================================================================
    # HELPERS
    # ========================================================================

    def generate_order_code(self) -> str:
        # now() es UTC naive
        timestamp_ms = int(self.clock.now().replace(tzinfo=timezone.utc).timestamp() * 1000)
        suffix = "".join(secrets.choice(ORDER_CODE_ALPHABET) for _ in range(5))
        return f"{ORDER_CODE_PREFIX}-{timestamp_ms}-{suffix}"

    @staticmethod
    def _lock_room(db: Session, room_id: str) -> None:
        # SELECT ... FOR UPDATE serializa a los committers de la misma habitación
        # (en SQLite lo resuelve BEGIN IMMEDIATE)
        db.query(Room.id).filter(Room.id == room_id).with_for_update().one_or_none()

    def get_booking(self, booking_id: str) -> Booking:
        with self.session_factory() as db:
            booking = db.query(Booking).filter(Booking.id == booking_id).first()
            if not booking:
                raise BookingNotFound(booking_id)
            return booking

    def check_availability(self, room_id: str, check_in, check_out, property_id: Optional[str] = None) -> AvailabilityRead:
        with self.session_factory() as db:
            return self.availability.check_availability(db, room_id, check_in, check_out, property_id=property_id)

    def check_availability_with_guests(self, property_id: str, room_id: str, check_in, check_out,
                                       adults: int = 1, children: int = 0, pets: int = 0,
                                       price_per_night=None) -> GuestAvailabilityRead:
        with self.session_factory() as db:
            return self.availability.check_availability_with_guests(
                db, property_id, room_id, check_in, check_out,
                adults=adults, children=children, pets=pets, price_per_night=price_per_night,
            )

    # ========================================================================
    # CREATE
    # ========================================================================

    def create_booking(self, request: CreateBookingRequest) -> ReservationResult:
        """
        Crea una reserva en WAITING_PAYMENT.

        Raises:
            ValidationFailed, PropertyNotFound, UserNotFound, RoomNotFound,
            GuestLimitExceeded, RoomUnavailable, PriceMismatch
        """
        try:
            with self.session_factory() as db:
                tenant_id, stay_nights = self._prepare(db, request)

            booking = self._commit_booking(request, tenant_id, stay_nights)
        except SQLAlchemyError as e:
            log_error("booking", request.guest_id, "Error de base de datos al crear reserva", f"error={str(e)}")
            raise

        log_event(
            "booking",
            request.guest_id,
            "Reserva creada",
            f"order_code={booking.order_code}, room_id={booking.room_id}, "
            f"checkin={booking.check_in}, checkout={booking.check_out}, total={booking.total_amount}",
        )

        if request.payment_method == PaymentMethod.PAYMENT_GATEWAY:
            return self._initiate_payment(booking)
        return ReservationResult(booking=booking)

    def _prepare(self, db: Session, request: CreateBookingRequest):
        """Pasos 1-5: todo lo que se puede verificar antes de escribir"""
        room = db.query(Room).filter(Room.id == request.room_id, Room.deleted.is_(False)).first()
        property_obj = (
            db.query(Property)
            .filter(Property.id == request.property_id, Property.deleted.is_(False))
            .first()
        )

        # 1) Validación
        validation = self.validator.validate_request(request, effective_max_guests(room, property_obj))
        if not validation.ok:
            log_event("booking", request.guest_id, "Solicitud inválida", f"errores={validation.errors}")
            raise ValidationFailed(validation.errors)

        # 2) Contexto
        if not property_obj:
            raise PropertyNotFound(request.property_id)

        guest = db.query(User).filter(User.id == request.guest_id, User.deleted.is_(False)).first()
        if not guest:
            raise UserNotFound(request.guest_id)

        if not room or room.property_id != property_obj.id:
            raise RoomNotFound(request.room_id)

        # 3) Tope de huéspedes de la propiedad
        total_guests = request.adults + request.children
        if property_obj.max_guests and total_guests > property_obj.max_guests:
            raise GuestLimitExceeded(total_guests, property_obj.max_guests)

        # 4) Disponibilidad
        availability = self.availability.check_availability(
            db, request.room_id, request.check_in, request.check_out, property_id=request.property_id
        )
        if not availability.available:
            log_event("booking", request.guest_id, "Habitación no disponible", f"room_id={request.room_id}")
            raise RoomUnavailable(availability, "Room is no longer available for selected dates")

        # 5) Precio
        stay_nights = count_nights(request.check_in, request.check_out)
        expected_total = base_price(request.price_per_night, stay_nights)
        if not validate_quoted_total(request.total_amount, expected_total, self.price_tolerance):
            raise PriceMismatch(expected_total, request.total_amount)

        return property_obj.tenant_id, stay_nights

    def _commit_booking(self, request: CreateBookingRequest, tenant_id: str, stay_nights: int) -> Booking:
        """Paso 6: lock + re-check + insert en una sola transacción"""
        for attempt in range(1, ORDER_CODE_ATTEMPTS + 1):
            order_code = self.generate_order_code()
            try:
                with self.session_factory.begin() as db:
                    self._lock_room(db, request.room_id)
                    self._recheck_slot(db, request)

                    now = self.clock.now()
                    booking = Booking(
                        order_code=order_code,
                        guest_id=request.guest_id,
                        tenant_id=tenant_id,
                        property_id=request.property_id,
                        room_id=request.room_id,
                        check_in=request.check_in,
                        check_out=request.check_out,
                        nights=stay_nights,
                        adults=request.adults,
                        children=request.children,
                        pets=request.pets,
                        price_per_night=request.price_per_night,
                        total_amount=request.total_amount,
                        status=BookingStatus.WAITING_PAYMENT,
                        payment_method=request.payment_method,
                        created_at=now,
                        updated_at=now,
                        expires_at=now + self.expiration_window,
                    )
                    db.add(booking)
                    db.flush()
                return booking
            except IntegrityError as e:
                constraint = _constraint_name(e)
                if NO_OVERLAP_CONSTRAINT in constraint:
                    raise RoomUnavailable(message="Room is no longer available for selected dates") from e
                if "order_code" not in constraint:
                    raise
                log_warning("booking", request.guest_id, "Colisión de order_code", f"intento={attempt}, code={order_code}")

        raise RuntimeError(f"Could not generate a unique order code after {ORDER_CODE_ATTEMPTS} attempts")

    def _recheck_slot(self, db: Session, request: CreateBookingRequest) -> None:
        blocked = AvailabilityService.blocked_dates(db, request.room_id, request.check_in, request.check_out)
        conflicts = AvailabilityService.conflicting_bookings(db, request.room_id, request.check_in, request.check_out)
        if not blocked and not conflicts:
            return

        log_event(
            "booking", request.guest_id, "Conflicto detectado en commit",
            f"room_id={request.room_id}, conflictos={[booking.order_code for booking in conflicts]}",
        )
        raise RoomUnavailable(
            AvailabilityRead(
                available=False,
                message="Room is no longer available for selected dates",
                unavailable_dates=blocked,
                conflicting_dates=[
                    ConflictingDate(check_in=b.check_in, check_out=b.check_out, order_code=b.order_code)
                    for b in conflicts
                ],
            ),
            "Room is no longer available for selected dates",
        )

    # ========================================================================
    # PAYMENT
    # ========================================================================

    def _initiate_payment(self, booking: Booking) -> ReservationResult:
        """Paso 7: la reserva gana sobre la comodidad del pago"""
        try:
            token = self.payment_gateway.create_token(booking)
        except Exception as e:
            log_warning(
                "payment",
                booking.guest_id,
                "Gateway no disponible, se pasa a transferencia manual",
                f"order_code={booking.order_code}, error={str(e)}",
            )
            with self.session_factory.begin() as db:
                db.query(Booking).filter(
                    Booking.id == booking.id,
                    Booking.payment_method == PaymentMethod.PAYMENT_GATEWAY,
                ).update({Booking.payment_method: PaymentMethod.MANUAL_TRANSFER}, synchronize_session=False)
            booking.payment_method = PaymentMethod.MANUAL_TRANSFER
            return ReservationResult(
                booking=booking,
                payment_warning=PaymentGatewayUnavailable(booking.order_code, str(e)),
            )

        log_event("payment", booking.guest_id, "Token de pago creado", f"order_code={booking.order_code}")
        return ReservationResult(booking=booking, payment_token=token)

    # ========================================================================
    # STATE TRANSITIONS
    # ========================================================================

    def _transition(self, booking_id: str, target: BookingStatus, action: str, mutate=None,
                    tenant_id: Optional[str] = None) -> Booking:
        """
        Único escritor de Booking.status fuera de expire().
        Con tenant_id, la reserva debe pertenecer a ese tenant.
        """
        with self.session_factory.begin() as db:
            booking = db.query(Booking).filter(Booking.id == booking_id).with_for_update().one_or_none()
            if not booking:
                raise BookingNotFound(booking_id)
            if tenant_id is not None and booking.tenant_id != tenant_id:
                log_event("booking", tenant_id, "Acceso denegado a reserva", f"booking_id={booking_id}")
                raise BookingAccessDenied(booking_id)

            previous = booking.status
            if target not in ALLOWED_TRANSITIONS.get(previous, ()):
                raise InvalidState(previous, action)

            now = self.clock.now()
            booking.status = target
            booking.updated_at = now
            if mutate:
                mutate(booking, now)

        log_event(
            "booking", "sistema", f"Transición {action}",
            f"order_code={booking.order_code}, {previous.value} -> {target.value}",
        )
        return booking

    def cancel(self, booking_id: str) -> Booking:
        """Cancelación del huésped: solo desde WAITING_PAYMENT (no idempotente)"""
        return self._transition(booking_id, BookingStatus.CANCELED, "cancel")

    def submit_payment_proof(self, booking_id: str) -> Booking:
        def _mark(booking, now):
            booking.payment_proof_submitted_at = now

        return self._transition(booking_id, BookingStatus.WAITING_CONFIRMATION, "submit payment proof for", _mark)

    def reject_payment_proof(self, booking_id: str, tenant_id: str) -> Booking:
        """El tenant rechaza el comprobante: vuelve a WAITING_PAYMENT y reinicia la ventana de pago"""
        def _reopen(booking, now):
            booking.payment_proof_submitted_at = None
            booking.expires_at = now + self.expiration_window

        return self._transition(
            booking_id, BookingStatus.WAITING_PAYMENT, "reject payment proof for", _reopen, tenant_id=tenant_id
        )

    def confirm(self, booking_id: str, tenant_id: str) -> Booking:
        """El tenant aprueba el comprobante de pago"""
        return self._transition(booking_id, BookingStatus.PROCESSING, "confirm", tenant_id=tenant_id)

    def complete(self, booking_id: str) -> Booking:
        return self._transition(booking_id, BookingStatus.COMPLETED, "complete")

    def expire(self, booking_id: str) -> bool:
        """
        WAITING_PAYMENT con expires_at vencido -> EXPIRED.
        Idempotente: en cualquier otro estado (o aún vigente) no hace nada.

        Returns:
            True si esta llamada expiró la reserva
        """
        now = self.clock.now()
        with self.session_factory.begin() as db:
            # UPDATE condicional: dos sweeps concurrentes no pueden expirar dos veces
            updated = (
                db.query(Booking)
                .filter(
                    Booking.id == booking_id,
                    Booking.status == BookingStatus.WAITING_PAYMENT,
                    Booking.expires_at < now,
                )
                .update(
                    {Booking.status: BookingStatus.EXPIRED, Booking.updated_at: now},
                    synchronize_session=False,
                )
            )
            if not updated and db.query(Booking.id).filter(Booking.id == booking_id).first() is None:
                raise BookingNotFound(booking_id)

        if updated:
            log_event("booking", "sweeper", "Reserva expirada", f"booking_id={booking_id}")
        return bool(updated)
