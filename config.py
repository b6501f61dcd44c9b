"""
Configuración del motor de reservas
Base de datos, ventana de pago, tolerancias y Payment Gateway (Stripe)
"""
import os
from decimal import Decimal

import stripe
from dotenv import load_dotenv

load_dotenv()

# Database: URL completa, o armada desde DB_* (psycopg2), o SQLite local para desarrollo
if os.getenv("DATABASE_URL"):
    DATABASE_URL = os.getenv("DATABASE_URL")
elif os.getenv("DB_HOST"):
    DATABASE_URL = (
        f"postgresql://{os.getenv('DB_USER')}:{os.getenv('DB_PASSWORD')}"
        f"@{os.getenv('DB_HOST')}:{os.getenv('DB_PORT', '5432')}/{os.getenv('DB_NAME')}"
    )
else:
    DATABASE_URL = "sqlite:///./reservations.db"

# Timezone used for "today" in date-only validations
HOTEL_TIMEZONE = os.getenv("HOTEL_TIMEZONE", "America/Argentina/Buenos_Aires")

# Booking rules
BOOKING_EXPIRATION_MINUTES = int(os.getenv("BOOKING_EXPIRATION_MINUTES", "60"))
# Horas después del checkout para cerrar reservas PROCESSING como COMPLETED
COMPLETION_GRACE_HOURS = int(os.getenv("COMPLETION_GRACE_HOURS", "24"))
MAX_STAY_NIGHTS = int(os.getenv("MAX_STAY_NIGHTS", "365"))
PRICE_TOLERANCE = Decimal(os.getenv("PRICE_TOLERANCE", "0.01"))
ORDER_CODE_PREFIX = os.getenv("ORDER_CODE_PREFIX", "ORD")

# Logging
LOG_FILE = os.getenv("LOG_FILE", "reservation_logs.txt")

# Stripe Configuration
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "sk_test_dummy_key_for_development")
STRIPE_PUBLISHABLE_KEY = os.getenv("STRIPE_PUBLISHABLE_KEY", "pk_test_dummy_key_for_development")

# Payment Configuration
PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "usd")
PAYMENT_SYSTEM_ENABLED = STRIPE_SECRET_KEY != "sk_test_dummy_key_for_development"

if PAYMENT_SYSTEM_ENABLED:
    stripe.api_key = STRIPE_SECRET_KEY

# Stripe Error Messages
STRIPE_ERRORS = {
    "card_declined": "Card declined. Please try another one.",
    "processing_error": "Error processing payment. Please try again.",
    "rate_limit": "Too many attempts. Please wait and try again.",
    "authentication_error": "Payment provider authentication error.",
    "api_connection_error": "Could not reach the payment provider.",
}


def get_stripe_client():
    """Retorna cliente de Stripe configurado"""
    if not PAYMENT_SYSTEM_ENABLED:
        return None
    return stripe


def is_stripe_configured() -> bool:
    """Verifica si Stripe está correctamente configurado"""
    return PAYMENT_SYSTEM_ENABLED
