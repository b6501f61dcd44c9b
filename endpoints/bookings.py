"""
Endpoints de reservas: disponibilidad, creación y transiciones de estado
Adaptador HTTP delgado sobre ReservationService
"""
from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request, status
from sqlalchemy.exc import SQLAlchemyError

from schemas.bookings import (
    AvailabilityRead,
    BookingRead,
    CreateBookingRequest,
    GuestAvailabilityRead,
    ReservationRead,
    WarningRead,
)
from services.errors import ReservationError
from services.reservation_service import ReservationService
from utils.logging_utils import log_error


router = APIRouter(prefix="/bookings", tags=["Bookings"])


def get_reservation_service(request: Request) -> ReservationService:
    """El servicio se construye en create_app() y se inyecta vía app.state"""
    return request.app.state.reservation_service


def _http_error(error: ReservationError) -> HTTPException:
    return HTTPException(status_code=error.http_status, detail=error.to_dict())


def _db_error(area: str, action: str, error: SQLAlchemyError) -> HTTPException:
    log_error(area, "api", action, f"error={str(error)}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"code": "internal_error", "message": "Unexpected error, please try again later"},
    )


# ========== AVAILABILITY ==========

@router.get("/availability/{property_id}/{room_id}", response_model=AvailabilityRead)
def check_availability(
    property_id: str = Path(..., min_length=1),
    room_id: str = Path(..., min_length=1),
    check_in: date = Query(..., alias="checkIn", description="Fecha de entrada"),
    check_out: date = Query(..., alias="checkOut", description="Fecha de salida"),
    service: ReservationService = Depends(get_reservation_service),
):
    """
    Consulta disponibilidad de una habitación para [checkIn, checkOut)
    """
    try:
        return service.check_availability(room_id, check_in, check_out, property_id=property_id)
    except ReservationError as e:
        raise _http_error(e)
    except SQLAlchemyError as e:
        raise _db_error("availability", "Error al consultar disponibilidad", e)


@router.get("/availability/{property_id}/{room_id}/guests", response_model=GuestAvailabilityRead)
def check_availability_with_guests(
    property_id: str = Path(..., min_length=1),
    room_id: str = Path(..., min_length=1),
    check_in: date = Query(..., alias="checkIn"),
    check_out: date = Query(..., alias="checkOut"),
    adults: int = Query(1),
    children: int = Query(0),
    pets: int = Query(0),
    price_per_night: Optional[Decimal] = Query(None, alias="pricePerNight"),
    service: ReservationService = Depends(get_reservation_service),
):
    """
    Disponibilidad con validación de huéspedes y cotización de la estadía
    """
    try:
        return service.check_availability_with_guests(
            property_id, room_id, check_in, check_out,
            adults=adults, children=children, pets=pets, price_per_night=price_per_night,
        )
    except ReservationError as e:
        raise _http_error(e)
    except SQLAlchemyError as e:
        raise _db_error("availability", "Error al consultar disponibilidad", e)


# ========== BOOKINGS ==========

@router.post("", response_model=ReservationRead, status_code=status.HTTP_201_CREATED)
def create_booking(
    payload: CreateBookingRequest,
    service: ReservationService = Depends(get_reservation_service),
):
    """
    Crea una reserva en WAITING_PAYMENT.
    Si el gateway de pago falla la reserva se conserva como transferencia manual
    y la respuesta incluye un warning.
    """
    try:
        result = service.create_booking(payload)
    except ReservationError as e:
        raise _http_error(e)
    except SQLAlchemyError as e:
        raise _db_error("booking", "Error al crear reserva", e)

    warning = None
    if result.payment_warning is not None:
        warning = WarningRead(code=result.payment_warning.code, message=result.payment_warning.message)

    return ReservationRead(
        booking=BookingRead.model_validate(result.booking),
        payment_token=result.payment_token,
        warning=warning,
    )


@router.get("/{booking_id}", response_model=BookingRead)
def get_booking(
    booking_id: str = Path(..., min_length=1),
    service: ReservationService = Depends(get_reservation_service),
):
    try:
        return BookingRead.model_validate(service.get_booking(booking_id))
    except ReservationError as e:
        raise _http_error(e)
    except SQLAlchemyError as e:
        raise _db_error("booking", "Error al consultar reserva", e)


def _run_transition(service: ReservationService, action: str, booking_id: str, *args) -> BookingRead:
    try:
        booking = getattr(service, action)(booking_id, *args)
    except ReservationError as e:
        raise _http_error(e)
    except SQLAlchemyError as e:
        raise _db_error("booking", f"Error en transición {action}", e)
    return BookingRead.model_validate(booking)


@router.post("/{booking_id}/cancel", response_model=BookingRead)
def cancel_booking(booking_id: str = Path(..., min_length=1),
                   service: ReservationService = Depends(get_reservation_service)):
    """Cancelación del huésped (solo WAITING_PAYMENT)"""
    return _run_transition(service, "cancel", booking_id)


@router.post("/{booking_id}/payment-proof", response_model=BookingRead)
def submit_payment_proof(booking_id: str = Path(..., min_length=1),
                         service: ReservationService = Depends(get_reservation_service)):
    return _run_transition(service, "submit_payment_proof", booking_id)


@router.post("/{booking_id}/payment-proof/reject", response_model=BookingRead)
def reject_payment_proof(booking_id: str = Path(..., min_length=1),
                         tenant_id: str = Query(..., alias="tenantId", min_length=1),
                         service: ReservationService = Depends(get_reservation_service)):
    """El tenant dueño de la reserva rechaza el comprobante"""
    return _run_transition(service, "reject_payment_proof", booking_id, tenant_id)


@router.post("/{booking_id}/confirm", response_model=BookingRead)
def confirm_booking(booking_id: str = Path(..., min_length=1),
                    tenant_id: str = Query(..., alias="tenantId", min_length=1),
                    service: ReservationService = Depends(get_reservation_service)):
    return _run_transition(service, "confirm", booking_id, tenant_id)


@router.post("/{booking_id}/complete", response_model=BookingRead)
def complete_booking(booking_id: str = Path(..., min_length=1),
                     service: ReservationService = Depends(get_reservation_service)):
    return _run_transition(service, "complete", booking_id)
