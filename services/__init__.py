"""
Servicios de negocio del motor de reservas
"""

from .availability_service import AvailabilityService
from .reservation_service import ReservationService, ReservationResult
from .payment_gateway import (
    PaymentGateway,
    PaymentGatewayError,
    StripePaymentGateway,
    DisabledPaymentGateway,
    build_payment_gateway,
)
from .expiration_sweeper import run_expiration_sweep, run_completion_sweep, SweepReport, CompletionReport

__all__ = [
    "AvailabilityService",
    "ReservationService",
    "ReservationResult",
    "PaymentGateway",
    "PaymentGatewayError",
    "StripePaymentGateway",
    "DisabledPaymentGateway",
    "build_payment_gateway",
    "run_expiration_sweep",
    "SweepReport",
    "run_completion_sweep",
    "CompletionReport",
]
