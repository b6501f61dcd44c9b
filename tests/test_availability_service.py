"""
Tests de disponibilidad: fechas bloqueadas, conflictos y cotización
"""
from datetime import date
from decimal import Decimal

import pytest

from models import BookingStatus, PriceAdjustmentType, PriceOverride, RoomBlockedDate
from services.availability_service import AvailabilityService
from services.errors import InvalidDateRange, RoomNotFound


@pytest.fixture
def block_dates(session_factory, inventory):
    def _block(*days, room_id=None):
        with session_factory.begin() as db:
            for day in days:
                db.add(RoomBlockedDate(room_id=room_id or inventory.room_id, date=day, reason="Mantenimiento"))
    return _block


class TestCheckAvailability:

    def test_free_room(self, service, inventory):
        result = service.check_availability(inventory.room_id, date(2025, 3, 10), date(2025, 3, 12))

        assert result.available is True
        assert result.message == "Room is available"
        assert result.unavailable_dates == []
        assert result.conflicting_dates == []
        assert result.pricing.base_price == Decimal("100.00")
        assert result.pricing.has_adjustments is False

    def test_pricing_reports_nightly_rate(self, service, inventory):
        """basePrice es la tarifa por noche, no el total de la estadía"""
        result = service.check_availability(inventory.room_id, date(2025, 3, 10), date(2025, 3, 13))
        assert result.pricing.base_price == Decimal("100.00")

        suite = service.check_availability(inventory.suite_id, date(2025, 3, 10), date(2025, 3, 13))
        assert suite.pricing.base_price == Decimal("250.00")

    def test_overlap_lists_conflicting_booking(self, service, inventory, seed_booking):
        """A = [10,12) existe; B = [11,13) choca con A"""
        seed_booking(date(2025, 3, 10), date(2025, 3, 12), order_code="ORD-A")

        result = service.check_availability(inventory.room_id, date(2025, 3, 11), date(2025, 3, 13))

        assert result.available is False
        assert result.message == "Room is not available for selected dates"
        assert [c.order_code for c in result.conflicting_dates] == ["ORD-A"]
        assert result.conflicting_dates[0].check_in == date(2025, 3, 10)
        assert result.conflicting_dates[0].check_out == date(2025, 3, 12)
        assert result.pricing is None

    def test_back_to_back_is_available(self, service, inventory, seed_booking):
        """C = [12,14) arranca el día del checkout de A"""
        seed_booking(date(2025, 3, 10), date(2025, 3, 12), order_code="ORD-A")

        result = service.check_availability(inventory.room_id, date(2025, 3, 12), date(2025, 3, 14))

        assert result.available is True

    @pytest.mark.parametrize("status", [BookingStatus.CANCELED, BookingStatus.EXPIRED])
    def test_released_bookings_do_not_block(self, service, inventory, seed_booking, status):
        seed_booking(date(2025, 3, 10), date(2025, 3, 12), status=status)

        result = service.check_availability(inventory.room_id, date(2025, 3, 10), date(2025, 3, 12))

        assert result.available is True

    @pytest.mark.parametrize("status", [
        BookingStatus.WAITING_PAYMENT,
        BookingStatus.WAITING_CONFIRMATION,
        BookingStatus.PROCESSING,
        BookingStatus.COMPLETED,
    ])
    def test_holding_statuses_block(self, service, inventory, seed_booking, status):
        seed_booking(date(2025, 3, 10), date(2025, 3, 12), status=status)

        result = service.check_availability(inventory.room_id, date(2025, 3, 11), date(2025, 3, 12))

        assert result.available is False

    def test_other_room_does_not_block(self, service, inventory, seed_booking):
        seed_booking(date(2025, 3, 10), date(2025, 3, 12), room_id=inventory.suite_id)

        result = service.check_availability(inventory.room_id, date(2025, 3, 10), date(2025, 3, 12))

        assert result.available is True

    def test_blocked_dates_are_listed_sorted(self, service, inventory, block_dates):
        block_dates(date(2025, 3, 13), date(2025, 3, 11), date(2025, 3, 15))

        result = service.check_availability(inventory.room_id, date(2025, 3, 10), date(2025, 3, 14))

        assert result.available is False
        # 15 queda fuera del rango; 14 sería el checkout
        assert result.unavailable_dates == [date(2025, 3, 11), date(2025, 3, 13)]
        assert result.conflicting_dates == []

    def test_blocked_checkout_day_does_not_block(self, service, inventory, block_dates):
        block_dates(date(2025, 3, 12))

        result = service.check_availability(inventory.room_id, date(2025, 3, 10), date(2025, 3, 12))

        assert result.available is True

    def test_repeated_calls_are_equal(self, service, inventory, seed_booking):
        seed_booking(date(2025, 3, 10), date(2025, 3, 12), order_code="ORD-A")

        first = service.check_availability(inventory.room_id, date(2025, 3, 9), date(2025, 3, 11))
        second = service.check_availability(inventory.room_id, date(2025, 3, 9), date(2025, 3, 11))

        assert first == second

    def test_reports_price_adjustments(self, service, session_factory, inventory):
        with session_factory.begin() as db:
            db.add(PriceOverride(
                room_id=inventory.room_id,
                adjustment_type=PriceAdjustmentType.PERCENTAGE,
                value=Decimal("20"),
                start_date=date(2025, 3, 11),
                end_date=date(2025, 3, 11),
            ))

        result = service.check_availability(inventory.room_id, date(2025, 3, 10), date(2025, 3, 12))

        assert result.available is True
        assert result.pricing.has_adjustments is True
        # El ajuste no altera la tarifa base
        assert result.pricing.base_price == Decimal("100.00")

    def test_invalid_range(self, service, inventory):
        with pytest.raises(InvalidDateRange) as exc:
            service.check_availability(inventory.room_id, date(2025, 3, 12), date(2025, 3, 10))
        assert "check_out" in exc.value.field_errors

    def test_past_checkin(self, service, inventory):
        with pytest.raises(InvalidDateRange) as exc:
            service.check_availability(inventory.room_id, date(2025, 2, 20), date(2025, 2, 22))
        assert "check_in" in exc.value.field_errors

    def test_unknown_room(self, service):
        with pytest.raises(RoomNotFound):
            service.check_availability("missing-room", date(2025, 3, 10), date(2025, 3, 12))

    def test_room_of_another_property(self, service, inventory):
        with pytest.raises(RoomNotFound):
            service.check_availability(
                inventory.room_id, date(2025, 3, 10), date(2025, 3, 12), property_id="other-property"
            )


class TestConflictingBookings:

    def test_exclude_booking(self, session_factory, inventory, seed_booking):
        booking = seed_booking(date(2025, 3, 10), date(2025, 3, 12))

        with session_factory() as db:
            found = AvailabilityService.conflicting_bookings(
                db, inventory.room_id, date(2025, 3, 10), date(2025, 3, 12)
            )
            excluded = AvailabilityService.conflicting_bookings(
                db, inventory.room_id, date(2025, 3, 10), date(2025, 3, 12), exclude_booking_id=booking.id
            )

        assert [b.id for b in found] == [booking.id]
        assert excluded == []

    def test_ordered_by_checkin(self, session_factory, inventory, seed_booking):
        seed_booking(date(2025, 3, 20), date(2025, 3, 22), order_code="ORD-LATE")
        seed_booking(date(2025, 3, 10), date(2025, 3, 12), order_code="ORD-EARLY")

        with session_factory() as db:
            found = AvailabilityService.conflicting_bookings(
                db, inventory.room_id, date(2025, 3, 1), date(2025, 3, 31)
            )

        assert [b.order_code for b in found] == ["ORD-EARLY", "ORD-LATE"]


class TestCheckAvailabilityWithGuests:

    def test_valid_request_returns_quote(self, service, inventory):
        result = service.check_availability_with_guests(
            inventory.property_id, inventory.room_id, date(2025, 3, 10), date(2025, 3, 13),
            adults=2, price_per_night=Decimal("90.00"),
        )

        assert result.available is True
        assert result.validation_passed is True
        assert result.nights == 3
        assert result.total_price == Decimal("270.00")
        assert result.validation_errors == {}

    def test_defaults_to_room_base_price(self, service, inventory):
        result = service.check_availability_with_guests(
            inventory.property_id, inventory.room_id, date(2025, 3, 10), date(2025, 3, 12),
        )
        assert result.total_price == Decimal("200.00")

    def test_too_many_guests_returns_errors(self, service, inventory):
        result = service.check_availability_with_guests(
            inventory.property_id, inventory.room_id, date(2025, 3, 10), date(2025, 3, 12), adults=3,
        )

        assert result.available is False
        assert result.validation_passed is False
        assert "guests" in result.validation_errors

    def test_date_errors_are_returned_not_raised(self, service, inventory):
        result = service.check_availability_with_guests(
            inventory.property_id, inventory.room_id, date(2025, 3, 12), date(2025, 3, 10),
        )
        assert result.validation_errors == {"check_out": "Check-out date must be after check-in date"}

    def test_property_cap_applies_over_room_capacity(self, service, inventory):
        """La suite admite 6 pero la propiedad tiene tope 4"""
        result = service.check_availability_with_guests(
            inventory.property_id, inventory.suite_id, date(2025, 3, 10), date(2025, 3, 12), adults=5,
        )

        assert result.available is False
        assert result.validation_passed is False
        assert result.message == "Total guests (5) exceeds property maximum (4)"
        assert result.validation_errors == {"guests": "Total guests (5) exceeds property maximum (4)"}

    def test_within_property_cap_in_suite(self, service, inventory):
        result = service.check_availability_with_guests(
            inventory.property_id, inventory.suite_id, date(2025, 3, 10), date(2025, 3, 12),
            adults=2, children=2,
        )

        assert result.available is True
        assert result.validation_passed is True
        assert result.total_price == Decimal("500.00")
