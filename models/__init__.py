"""
Archivo de inicialización del paquete models.
Expone todas las clases para que SQLAlchemy (Base.metadata) las detecte al importar 'models'.
"""

# 1. Usuarios (huéspedes y tenants)
from .user import User

# 2. Inventario: propiedades, habitaciones, bloqueos y ajustes de precio (solo lectura)
from .property import (
    Property,
    Room,
    RoomBlockedDate,
    PriceOverride,
    PriceAdjustmentType,
)

# 3. Reservas
from .booking import (
    Booking,
    BookingStatus,
    PaymentMethod,
    HOLDS_SLOT_STATUSES,
    TERMINAL_STATUSES,
)

__all__ = [
    "User",
    "Property", "Room", "RoomBlockedDate", "PriceOverride", "PriceAdjustmentType",
    "Booking", "BookingStatus", "PaymentMethod", "HOLDS_SLOT_STATUSES", "TERMINAL_STATUSES",
]
