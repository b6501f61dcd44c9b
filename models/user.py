"""
Modelo de Usuario (huésped)
Solo lectura para el motor de reservas: se usa para resolver la identidad del huésped
"""
import uuid
from datetime import datetime

from sqlalchemy import Column, String, Boolean, DateTime, Index
from sqlalchemy.orm import relationship

from database.connection import Base


class User(Base):
    """Tabla de usuarios (huéspedes y tenants)"""
    __tablename__ = "users"
    __table_args__ = (
        Index('idx_user_email', 'email'),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(100), unique=True, nullable=False)
    first_name = Column(String(60), nullable=True)
    last_name = Column(String(60), nullable=True)

    # guest | tenant
    role = Column(String(20), nullable=False, default="guest")

    # Control de estado
    active = Column(Boolean, default=True, nullable=False)
    deleted = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relaciones
    bookings = relationship("Booking", back_populates="guest", foreign_keys="Booking.guest_id")

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
