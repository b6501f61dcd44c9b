"""
Adaptadores de Payment Gateway
El motor solo necesita create_token(booking) -> token pagable.
Cualquier falla se reporta como PaymentGatewayError; la reserva decide qué hacer.
"""
from decimal import Decimal

import stripe

from config import PAYMENT_CURRENCY, STRIPE_ERRORS, get_stripe_client, is_stripe_configured
from utils.logging_utils import log_event


class PaymentGatewayError(Exception):
    """Falla al crear el token de pago"""


class PaymentGateway:
    """Interfaz del colaborador externo de pagos"""

    name = "base"

    def create_token(self, booking) -> str:
        raise NotImplementedError


class DisabledPaymentGateway(PaymentGateway):
    """Gateway sin configurar: siempre falla, la reserva pasa a transferencia manual"""

    name = "disabled"

    def create_token(self, booking) -> str:
        raise PaymentGatewayError("Payment gateway is not configured")


class StripePaymentGateway(PaymentGateway):
    """Crea un PaymentIntent y devuelve su client_secret como token"""

    name = "stripe"

    def __init__(self, client=None, currency: str = PAYMENT_CURRENCY):
        self.client = client or get_stripe_client()
        self.currency = currency

    def create_token(self, booking) -> str:
        if self.client is None:
            raise PaymentGatewayError("Stripe is not configured")

        # Monto en centavos
        amount_cents = int((Decimal(booking.total_amount) * 100).to_integral_value())

        try:
            intent = self.client.PaymentIntent.create(
                amount=amount_cents,
                currency=self.currency,
                metadata={
                    "booking_id": booking.id,
                    "order_code": booking.order_code,
                    "room_id": booking.room_id,
                    "guest_id": booking.guest_id,
                },
                idempotency_key=f"booking-{booking.order_code}",
            )
        except stripe.StripeError as e:
            reason = STRIPE_ERRORS.get(getattr(e, "code", None)) or e.user_message or str(e)
            raise PaymentGatewayError(f"Stripe error: {reason}") from e

        log_event(
            "payment",
            booking.guest_id,
            "Payment intent created (Stripe)",
            f"intent_id={intent.id}, order_code={booking.order_code}, amount={booking.total_amount}",
        )
        return intent.client_secret


def build_payment_gateway() -> PaymentGateway:
    """Gateway por defecto según configuración"""
    if is_stripe_configured():
        return StripePaymentGateway()
    return DisabledPaymentGateway()
