from typing import Optional, List, Dict
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, ConfigDict, condecimal, constr

from models.booking import BookingStatus, PaymentMethod


# ========================================================================
# REQUESTS
# ========================================================================

class CreateBookingRequest(BaseModel):
    """
    Solicitud de reserva. Los conteos de huéspedes se validan en BookingValidator
    (errores por campo), no aquí.
    """
    guest_id: constr(strip_whitespace=True, min_length=1) = Field(..., alias="guestId")
    property_id: constr(strip_whitespace=True, min_length=1) = Field(..., alias="propertyId")
    room_id: constr(strip_whitespace=True, min_length=1) = Field(..., alias="roomId")
    check_in: date = Field(..., alias="checkIn")
    check_out: date = Field(..., alias="checkOut")
    adults: int = 1
    children: int = 0
    pets: int = 0
    price_per_night: condecimal(gt=0, max_digits=12, decimal_places=2) = Field(..., alias="pricePerNight")
    total_amount: condecimal(gt=0, max_digits=12, decimal_places=2) = Field(..., alias="totalAmount")
    payment_method: PaymentMethod = Field(PaymentMethod.MANUAL_TRANSFER, alias="paymentMethod")

    model_config = ConfigDict(populate_by_name=True)


# ========================================================================
# AVAILABILITY
# ========================================================================

class ConflictingDate(BaseModel):
    check_in: date = Field(..., alias="checkIn")
    check_out: date = Field(..., alias="checkOut")
    order_code: str = Field(..., alias="orderCode")

    model_config = ConfigDict(populate_by_name=True)


class PricingSummary(BaseModel):
    base_price: Optional[Decimal] = Field(None, alias="basePrice")
    has_adjustments: bool = Field(False, alias="hasAdjustments")

    model_config = ConfigDict(populate_by_name=True)


class AvailabilityRead(BaseModel):
    available: bool
    message: str
    unavailable_dates: List[date] = Field(default_factory=list, alias="unavailableDates")
    conflicting_dates: List[ConflictingDate] = Field(default_factory=list, alias="conflictingDates")
    pricing: Optional[PricingSummary] = None

    model_config = ConfigDict(populate_by_name=True)


class GuestAvailabilityRead(AvailabilityRead):
    """Disponibilidad + validación de huéspedes y cotización"""
    validation_errors: Dict[str, str] = Field(default_factory=dict, alias="validationErrors")
    nights: Optional[int] = None
    total_price: Optional[Decimal] = Field(None, alias="totalPrice")
    validation_passed: bool = Field(False, alias="validationPassed")


# ========================================================================
# BOOKING
# ========================================================================

class BookingRead(BaseModel):
    id: str
    order_code: str = Field(..., alias="orderCode")
    guest_id: str = Field(..., alias="guestId")
    tenant_id: str = Field(..., alias="tenantId")
    property_id: str = Field(..., alias="propertyId")
    room_id: str = Field(..., alias="roomId")
    check_in: date = Field(..., alias="checkIn")
    check_out: date = Field(..., alias="checkOut")
    nights: int
    adults: int
    children: int
    pets: int
    price_per_night: condecimal(max_digits=12, decimal_places=2) = Field(..., alias="pricePerNight")
    total_amount: condecimal(max_digits=12, decimal_places=2) = Field(..., alias="totalAmount")
    status: BookingStatus
    payment_method: PaymentMethod = Field(..., alias="paymentMethod")
    created_at: datetime = Field(..., alias="createdAt")
    expires_at: datetime = Field(..., alias="expiresAt")
    payment_proof_submitted_at: Optional[datetime] = Field(None, alias="paymentProofSubmittedAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class WarningRead(BaseModel):
    code: str
    message: str


class ReservationRead(BaseModel):
    booking: BookingRead
    payment_token: Optional[str] = Field(None, alias="paymentToken")
    warning: Optional[WarningRead] = None

    model_config = ConfigDict(populate_by_name=True)
