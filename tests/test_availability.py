"""
Tests for the Availability Resolver

These tests verify:
- Slot conflict rules (full day vs half days)
- Unavailability windows veto every slot
- Self-exclusion when editing a booking
- Cancelled bookings and the ALL_BOOKINGS_BLOCK switch
- Fail-closed behaviour when the store cannot be read
"""

import pytest
from datetime import date
from unittest.mock import MagicMock, patch

from sqlalchemy.exc import OperationalError


def make_booking(booking_id, time_slot, is_blocking=True):
    booking = MagicMock()
    booking.id = booking_id
    booking.time_slot = time_slot
    booking.is_blocking = is_blocking
    return booking


def make_window(reason="maintenance", date_from=date(2025, 7, 8), date_to=date(2025, 7, 12)):
    window = MagicMock()
    window.reason = reason
    window.date_from = date_from
    window.date_to = date_to
    return window


class TestSlotRules:
    """Conflict rules between standard slots"""

    def test_no_bookings_is_available(self):
        from ns3000.services.availability import resolve_availability

        result = resolve_availability([], [], "full_day")

        assert result.available is True
        assert result.reason is None

    def test_full_day_blocks_afternoon(self):
        """A full_day booking makes an afternoon request unavailable"""
        from ns3000.services.availability import resolve_availability, REASON_FULL_DAY_TAKEN

        result = resolve_availability([make_booking("b1", "full_day")], [], "afternoon")

        assert result.available is False
        assert result.reason == REASON_FULL_DAY_TAKEN

    def test_full_day_blocks_custom_slot(self):
        from ns3000.services.availability import resolve_availability, REASON_FULL_DAY_TAKEN

        result = resolve_availability([make_booking("b1", "full_day")], [], "sunset tour")

        assert result.reason == REASON_FULL_DAY_TAKEN

    def test_morning_leaves_afternoon_free(self):
        from ns3000.services.availability import resolve_availability

        result = resolve_availability([make_booking("b1", "morning")], [], "afternoon")

        assert result.available is True

    def test_half_day_blocks_full_day(self):
        from ns3000.services.availability import resolve_availability, REASON_HALF_DAY_TAKEN

        for taken in ("morning", "afternoon"):
            result = resolve_availability([make_booking("b1", taken)], [], "full_day")
            assert result.available is False
            assert result.reason == REASON_HALF_DAY_TAKEN

    def test_morning_twice(self):
        from ns3000.services.availability import resolve_availability, REASON_MORNING_TAKEN

        result = resolve_availability([make_booking("b1", "morning")], [], "morning")

        assert result.reason == REASON_MORNING_TAKEN

    def test_afternoon_twice(self):
        from ns3000.services.availability import resolve_availability, REASON_AFTERNOON_TAKEN

        result = resolve_availability([make_booking("b1", "afternoon")], [], "afternoon")

        assert result.reason == REASON_AFTERNOON_TAKEN

    def test_full_day_rule_wins_over_half_day_rule(self):
        """Rules are evaluated in order; the full-day reason comes first"""
        from ns3000.services.availability import resolve_availability, REASON_FULL_DAY_TAKEN

        bookings = [make_booking("b1", "morning"), make_booking("b2", "full_day")]
        result = resolve_availability(bookings, [], "full_day")

        assert result.reason == REASON_FULL_DAY_TAKEN

    def test_custom_slots_do_not_collide(self):
        """Custom slots only conflict with full_day bookings and windows"""
        from ns3000.services.availability import resolve_availability

        bookings = [make_booking("b1", "10:00-12:00"), make_booking("b2", "morning")]

        assert resolve_availability(bookings, [], "10:00-12:00").available is True
        assert resolve_availability(bookings, [], "afternoon").available is True

    def test_slot_values_are_normalized(self):
        from ns3000.services.availability import resolve_availability, REASON_FULL_DAY_TAKEN

        result = resolve_availability([make_booking("b1", "Full Day")], [], " AFTERNOON ")

        assert result.reason == REASON_FULL_DAY_TAKEN

    def test_resolution_is_idempotent(self):
        from ns3000.services.availability import resolve_availability

        bookings = [make_booking("b1", "morning")]
        windows = []

        first = resolve_availability(bookings, windows, "morning")
        second = resolve_availability(bookings, windows, "morning")

        assert first == second


class TestUnavailabilityWindows:
    """Windows block the boat for every slot"""

    def test_window_blocks_any_slot(self):
        """Boat with a maintenance window and no bookings"""
        from ns3000.services.availability import resolve_availability

        for slot in ("morning", "afternoon", "full_day", "custom"):
            result = resolve_availability([], [make_window()], slot)
            assert result.available is False
            assert result.reason == "boat unavailable: maintenance"

    def test_window_without_reason_defaults_to_maintenance(self):
        from ns3000.services.availability import resolve_availability

        result = resolve_availability([], [make_window(reason=None)], "morning")

        assert result.reason == "boat unavailable: maintenance"

    def test_first_window_reason_is_reported(self):
        from ns3000.services.availability import resolve_availability

        windows = [make_window(reason="cleaning"), make_window(reason="owner use")]
        result = resolve_availability([], windows, "morning")

        assert result.reason == "boat unavailable: cleaning"

    def test_booking_conflict_reported_before_window(self):
        from ns3000.services.availability import resolve_availability, REASON_MORNING_TAKEN

        result = resolve_availability([make_booking("b1", "morning")], [make_window()], "morning")

        assert result.reason == REASON_MORNING_TAKEN

    def test_window_covers_is_inclusive(self):
        from ns3000.models.unavailability import UnavailabilityWindow

        window = UnavailabilityWindow(date_from=date(2025, 7, 8), date_to=date(2025, 7, 12))

        assert window.covers(date(2025, 7, 8))
        assert window.covers(date(2025, 7, 12))
        assert not window.covers(date(2025, 7, 13))


class TestSelfExclusion:
    """Editing a booking must not conflict with itself"""

    def test_excluded_booking_is_ignored(self):
        from ns3000.services.availability import resolve_availability

        bookings = [make_booking("42", "full_day")]
        result = resolve_availability(bookings, [], "full_day", exclude_booking_id="42")

        assert result.available is True

    def test_other_bookings_still_count(self):
        from ns3000.services.availability import resolve_availability, REASON_MORNING_TAKEN

        bookings = [make_booking("42", "morning"), make_booking("43", "morning")]
        result = resolve_availability(bookings, [], "morning", exclude_booking_id="42")

        assert result.reason == REASON_MORNING_TAKEN


class TestBlockingPolicy:
    """Cancelled bookings free the slot unless ALL_BOOKINGS_BLOCK is on"""

    def test_cancelled_booking_frees_slot(self):
        from ns3000.services.availability import resolve_availability

        bookings = [make_booking("b1", "full_day", is_blocking=False)]

        assert resolve_availability(bookings, [], "morning").available is True

    def test_all_bookings_block_counts_cancelled(self):
        from ns3000.services.availability import resolve_availability, REASON_FULL_DAY_TAKEN

        bookings = [make_booking("b1", "full_day", is_blocking=False)]
        result = resolve_availability(bookings, [], "morning", all_bookings_block=True)

        assert result.reason == REASON_FULL_DAY_TAKEN

    def test_missing_flag_counts_as_blocking(self):
        from ns3000.services.availability import booking_blocks

        booking = MagicMock(spec=["id", "time_slot"])

        assert booking_blocks(booking) is True
        assert booking_blocks(make_booking("b1", "morning", is_blocking=None)) is True


class TestSlotNormalization:

    @pytest.mark.parametrize("raw,expected", [
        ("full_day", "full_day"),
        ("Full Day", "full_day"),
        ("full-day", "full_day"),
        ("  Morning ", "morning"),
        (None, ""),
    ])
    def test_normalize_slot(self, raw, expected):
        from ns3000.services.availability import normalize_slot

        assert normalize_slot(raw) == expected

    def test_canonical_slot_keeps_custom_text(self):
        from ns3000.services.availability import canonical_slot

        assert canonical_slot("Afternoon") == "afternoon"
        assert canonical_slot(" Sunset 18:00 ") == "Sunset 18:00"


class TestAvailabilityService:
    """Store-backed checks"""

    def test_store_error_fails_closed(self):
        """A failed read answers unavailable instead of risking a double booking"""
        from ns3000.services.availability import AvailabilityService, REASON_STORE_ERROR

        db = MagicMock()
        service = AvailabilityService(db)

        with patch.object(
            service.store, "list_bookings",
            side_effect=OperationalError("SELECT", {}, Exception("connection lost"))
        ):
            result = service.check_availability("boat-x", date(2025, 7, 10), "morning")

        assert result.available is False
        assert result.reason == REASON_STORE_ERROR

    def test_evaluate_propagates_store_errors(self):
        from ns3000.services.availability import AvailabilityService

        service = AvailabilityService(MagicMock())

        with patch.object(
            service.store, "list_bookings",
            side_effect=OperationalError("SELECT", {}, Exception("connection lost"))
        ):
            with pytest.raises(OperationalError):
                service.evaluate("boat-x", date(2025, 7, 10), "morning")

    def test_scenarios_against_database(self, db, boat):
        """Full day, half day, window and self-exclusion on a real session"""
        from ns3000.models.booking import Booking
        from ns3000.models.unavailability import UnavailabilityWindow
        from ns3000.services.availability import AvailabilityService

        db.add(Booking(id="42", boat_id=boat.id, booking_date=date(2025, 7, 10), time_slot="full_day"))
        db.add(Booking(boat_id=boat.id, booking_date=date(2025, 7, 11), time_slot="morning"))
        db.add(UnavailabilityWindow(
            boat_id=boat.id, date_from=date(2025, 8, 8), date_to=date(2025, 8, 12), reason="maintenance"
        ))
        db.commit()

        service = AvailabilityService(db)

        assert service.check_availability(boat.id, date(2025, 7, 10), "afternoon").available is False
        assert service.check_availability(boat.id, date(2025, 7, 11), "afternoon").available is True
        assert service.check_availability(
            boat.id, date(2025, 8, 10), "morning"
        ).reason == "boat unavailable: maintenance"
        assert service.check_availability(
            boat.id, date(2025, 7, 10), "full_day", exclude_booking_id="42"
        ).available is True
        assert service.check_availability("other-boat", date(2025, 7, 10), "full_day").available is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
