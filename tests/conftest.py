"""
Fixtures compartidas: base SQLite por test, reloj fijo, gateway falso e inventario mínimo
"""
from datetime import date, datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

import models  # registra todas las tablas en Base.metadata
from database.connection import Base, build_engine, build_session_factory
from models import Booking, BookingStatus, PaymentMethod, Property, Room, User
from schemas.bookings import CreateBookingRequest
from services.payment_gateway import PaymentGateway, PaymentGatewayError
from services.reservation_service import ReservationService
from utils.timezone import FixedClock


TODAY = date(2025, 3, 1)
NOW = datetime(2025, 3, 1, 15, 0, 0)  # UTC naive


class FakePaymentGateway(PaymentGateway):
    """Gateway de pruebas: devuelve un token o falla según `fail`"""

    name = "fake"

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = []

    def create_token(self, booking) -> str:
        self.calls.append(booking.order_code)
        if self.fail:
            raise PaymentGatewayError("gateway down")
        return f"tok_{booking.order_code}"


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'reservations.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def clock():
    return FixedClock(NOW, today=TODAY)


@pytest.fixture
def gateway():
    return FakePaymentGateway()


@pytest.fixture
def service(session_factory, gateway, clock):
    return ReservationService(session_factory, gateway, clock)


@pytest.fixture
def inventory(session_factory):
    """
    Tenant + huésped + propiedad (max 4 huéspedes) con dos habitaciones:
    - room: 100/noche, capacidad 2
    - suite: 250/noche, capacidad 6 (mayor al tope de la propiedad)
    """
    with session_factory.begin() as db:
        tenant = User(email="owner@example.com", first_name="Olga", last_name="Owner", role="tenant")
        guest = User(email="guest@example.com", first_name="Gabo", last_name="Guest")
        db.add_all([tenant, guest])
        db.flush()

        prop = Property(tenant_id=tenant.id, name="Casa Sur", city="Bariloche", max_guests=4)
        db.add(prop)
        db.flush()

        room = Room(property_id=prop.id, name="Doble", base_price=Decimal("100.00"), capacity=2)
        suite = Room(property_id=prop.id, name="Suite", base_price=Decimal("250.00"), capacity=6)
        db.add_all([room, suite])
        db.flush()

        return SimpleNamespace(
            tenant_id=tenant.id,
            guest_id=guest.id,
            property_id=prop.id,
            room_id=room.id,
            suite_id=suite.id,
        )


@pytest.fixture
def make_request(inventory):
    def _make(**overrides) -> CreateBookingRequest:
        data = dict(
            guest_id=inventory.guest_id,
            property_id=inventory.property_id,
            room_id=inventory.room_id,
            check_in=date(2025, 3, 10),
            check_out=date(2025, 3, 12),
            adults=1,
            children=0,
            pets=0,
            price_per_night=Decimal("100.00"),
            total_amount=Decimal("200.00"),
            payment_method=PaymentMethod.MANUAL_TRANSFER,
        )
        data.update(overrides)
        return CreateBookingRequest(**data)

    return _make


@pytest.fixture
def seed_booking(session_factory, inventory):
    """Inserta una reserva directamente en el store (sin pasar por el servicio)"""
    counter = {"n": 0}

    def _seed(check_in: date, check_out: date, status: BookingStatus = BookingStatus.WAITING_PAYMENT,
              order_code: str = None, expires_at: datetime = None, room_id: str = None) -> Booking:
        counter["n"] += 1
        stay_nights = (check_out - check_in).days
        with session_factory.begin() as db:
            booking = Booking(
                order_code=order_code or f"ORD-SEED-{counter['n']}",
                guest_id=inventory.guest_id,
                tenant_id=inventory.tenant_id,
                property_id=inventory.property_id,
                room_id=room_id or inventory.room_id,
                check_in=check_in,
                check_out=check_out,
                nights=stay_nights,
                price_per_night=Decimal("100.00"),
                total_amount=Decimal("100.00") * stay_nights,
                status=status,
                payment_method=PaymentMethod.MANUAL_TRANSFER,
                created_at=NOW,
                expires_at=expires_at or NOW + timedelta(hours=1),
            )
            db.add(booking)
            db.flush()
        return booking

    return _seed
