"""
Modelos de Propiedad, Habitación, fechas bloqueadas y ajustes de precio
Propiedad del colaborador de gestión de propiedades: el motor de reservas solo los lee
"""
import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    Column, String, Integer, Date, DateTime, Boolean, ForeignKey, Numeric, Text,
    JSON, Index, UniqueConstraint, CheckConstraint, Enum,
)
from sqlalchemy.orm import relationship

from database.connection import Base


def _uuid() -> str:
    return str(uuid.uuid4())


# ========================================================================
# ENUMS
# ========================================================================

class PriceAdjustmentType(str, enum.Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"


# ========================================================================
# PROPERTY / ROOM
# ========================================================================

class Property(Base):
    """Propiedad publicada por un tenant"""
    __tablename__ = "properties"
    __table_args__ = (
        Index("idx_property_tenant", "tenant_id"),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    tenant_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    name = Column(String(150), nullable=False)
    city = Column(String(100), nullable=True)
    max_guests = Column(Integer, nullable=True)  # Tope de huéspedes de la propiedad

    deleted = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    rooms = relationship("Room", back_populates="property")

    def __repr__(self):
        return f"<Property(id={self.id}, name='{self.name}')>"


class Room(Base):
    __tablename__ = "rooms"
    __table_args__ = (
        Index("idx_room_property", "property_id"),
        CheckConstraint("base_price >= 0", name="check_room_base_price_non_negative"),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    property_id = Column(String(36), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(100), nullable=False)
    base_price = Column(Numeric(12, 2), nullable=False)  # Tarifa nocturna base
    capacity = Column(Integer, nullable=True)  # Si es NULL se usa max_guests de la propiedad

    deleted = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    property = relationship("Property", back_populates="rooms")
    blocked_dates = relationship("RoomBlockedDate", back_populates="room", cascade="all, delete-orphan")
    price_overrides = relationship("PriceOverride", back_populates="room", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Room(id={self.id}, name='{self.name}', base_price={self.base_price})>"


# ========================================================================
# BLOQUEOS Y AJUSTES DE PRECIO
# ========================================================================

class RoomBlockedDate(Base):
    """Día no disponible fijado por el dueño, independiente de las reservas"""
    __tablename__ = "room_blocked_dates"
    __table_args__ = (
        UniqueConstraint("room_id", "date", name="uq_room_blocked_date"),
        Index("idx_room_blocked_room_date", "room_id", "date"),
    )

    id = Column(Integer, primary_key=True)
    room_id = Column(String(36), ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    reason = Column(Text, nullable=True)

    room = relationship("Room", back_populates="blocked_dates")


class PriceOverride(Base):
    """
    Ajuste de precio acotado en el tiempo.
    Vigencia por rango [start_date, end_date] inclusivo o por lista explícita de fechas.
    """
    __tablename__ = "price_overrides"
    __table_args__ = (
        Index("idx_price_override_room", "room_id"),
    )

    id = Column(Integer, primary_key=True)
    room_id = Column(String(36), ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False)
    adjustment_type = Column(Enum(PriceAdjustmentType), nullable=False)
    value = Column(Numeric(12, 2), nullable=False)

    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    dates = Column(JSON, nullable=True)  # ["2025-03-10", ...]

    created_at = Column(DateTime, default=datetime.utcnow)

    room = relationship("Room", back_populates="price_overrides")
