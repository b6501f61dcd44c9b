"""
Modelo de Reserva (Booking)
Incluye: estados tipados, método de pago, vencimiento y restricción anti-solapamiento
"""
import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    Column, String, Integer, Date, DateTime, ForeignKey, Numeric,
    Index, UniqueConstraint, CheckConstraint, DDL, Enum, event,
)
from sqlalchemy.orm import relationship

from database.connection import Base


# ========================================================================
# ENUMS
# ========================================================================

class BookingStatus(str, enum.Enum):
    """Estados del ciclo de vida de una reserva"""
    WAITING_PAYMENT = "WAITING_PAYMENT"
    WAITING_CONFIRMATION = "WAITING_CONFIRMATION"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"
    EXPIRED = "EXPIRED"


class PaymentMethod(str, enum.Enum):
    MANUAL_TRANSFER = "MANUAL_TRANSFER"
    PAYMENT_GATEWAY = "PAYMENT_GATEWAY"


# Estados que ocupan la habitación a efectos de solapamiento
HOLDS_SLOT_STATUSES = (
    BookingStatus.WAITING_PAYMENT,
    BookingStatus.WAITING_CONFIRMATION,
    BookingStatus.PROCESSING,
    BookingStatus.COMPLETED,
)

TERMINAL_STATUSES = (
    BookingStatus.COMPLETED,
    BookingStatus.CANCELED,
    BookingStatus.EXPIRED,
)

NO_OVERLAP_CONSTRAINT = "bookings_no_overlap_per_room"


# ----------- BOOKING -----------
class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        UniqueConstraint("order_code", name="uq_booking_order_code"),
        CheckConstraint("check_out > check_in", name="check_booking_dates"),
        CheckConstraint("nights >= 1", name="check_booking_nights"),
        Index("idx_booking_room_dates", "room_id", "check_in", "check_out"),
        Index("idx_booking_status_expires", "status", "expires_at"),
        Index("idx_booking_guest", "guest_id"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_code = Column(String(40), nullable=False)

    guest_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    tenant_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    property_id = Column(String(36), ForeignKey("properties.id"), nullable=False)
    room_id = Column(String(36), ForeignKey("rooms.id"), nullable=False)

    # Fechas: intervalo semiabierto [check_in, check_out)
    check_in = Column(Date, nullable=False)
    check_out = Column(Date, nullable=False)
    nights = Column(Integer, nullable=False)

    # Ocupantes
    adults = Column(Integer, nullable=False, default=1)
    children = Column(Integer, nullable=False, default=0)
    pets = Column(Integer, nullable=False, default=0)

    # Financiero (inmutable una vez creada)
    price_per_night = Column(Numeric(12, 2), nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)

    status = Column(Enum(BookingStatus), nullable=False, default=BookingStatus.WAITING_PAYMENT)
    payment_method = Column(Enum(PaymentMethod), nullable=False, default=PaymentMethod.MANUAL_TRANSFER)

    # Auditoría (UTC naive)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    expires_at = Column(DateTime, nullable=False)
    payment_proof_submitted_at = Column(DateTime, nullable=True)

    # Relaciones
    guest = relationship("User", back_populates="bookings", foreign_keys=[guest_id])
    booked_property = relationship("Property")
    room = relationship("Room")

    @property
    def holds_slot(self) -> bool:
        return self.status in HOLDS_SLOT_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def __repr__(self):
        return f"<Booking(order_code='{self.order_code}', room_id={self.room_id}, status='{self.status}')>"


# Defensa en profundidad en PostgreSQL: ninguna pareja de reservas activas
# de la misma habitación puede solaparse
event.listen(
    Booking.__table__,
    "before_create",
    DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql"),
)
event.listen(
    Booking.__table__,
    "after_create",
    DDL(
        f"ALTER TABLE bookings ADD CONSTRAINT {NO_OVERLAP_CONSTRAINT} "
        "EXCLUDE USING gist (room_id WITH =, daterange(check_in, check_out, '[)') WITH &&) "
        "WHERE (status IN ("
        + ", ".join(f"'{status.name}'" for status in HOLDS_SLOT_STATUSES)
        + "))"
    ).execute_if(dialect="postgresql"),
)
