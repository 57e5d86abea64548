"""
Concurrency Tests for Double Booking Prevention

Tests cover:
- Row lock on PostgreSQL, database write lock on SQLite
- Unique-index violation detection
- Lock taken before the availability re-check on write
- Two writers racing for overlapping slots of the same boat

These tests verify that our locking mechanisms work correctly.
"""

import threading
import time

import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock, patch

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from ns3000.models.booking import BLOCKING_SLOT_COLUMNS


class TestRowLocking:
    """acquire_row_lock dialect handling"""

    def _mock_db(self, dialect):
        db = MagicMock()
        db.bind.dialect.name = dialect

        query_mock = MagicMock()
        filter_mock = MagicMock()
        for_update_mock = MagicMock()

        query_mock.filter.return_value = filter_mock
        filter_mock.with_for_update.return_value = for_update_mock
        for_update_mock.first.return_value = MagicMock()

        db.query.return_value = query_mock
        return db, filter_mock

    def test_acquire_row_lock_uses_for_update_on_postgres(self):
        """Verify acquire_row_lock applies with_for_update on PostgreSQL"""
        from ns3000.utils.db_helpers import acquire_row_lock
        from ns3000.models.boat import Boat

        db, filter_mock = self._mock_db('postgresql')

        acquire_row_lock(db, Boat, Boat.id == 'boat-x', nowait=True)

        filter_mock.with_for_update.assert_called_once_with(nowait=True)

    def test_acquire_row_lock_blocking_wait_by_default(self):
        from ns3000.utils.db_helpers import acquire_row_lock
        from ns3000.models.boat import Boat

        db, filter_mock = self._mock_db('postgresql')

        acquire_row_lock(db, Boat, Boat.id == 'boat-x')

        filter_mock.with_for_update.assert_called_once_with()

    def test_acquire_row_lock_takes_write_lock_on_sqlite(self):
        """SQLite has no FOR UPDATE; the transaction starts with BEGIN IMMEDIATE"""
        from ns3000.utils.db_helpers import acquire_row_lock
        from ns3000.models.boat import Boat

        db, filter_mock = self._mock_db('sqlite')
        dbapi_connection = db.connection.return_value.connection.dbapi_connection
        dbapi_connection.in_transaction = False

        acquire_row_lock(db, Boat, Boat.id == 'boat-x')

        filter_mock.with_for_update.assert_not_called()
        dbapi_connection.execute.assert_called_once_with("BEGIN IMMEDIATE")
        filter_mock.first.assert_called_once()

    def test_begin_immediate_skipped_inside_open_transaction(self):
        from ns3000.utils.db_helpers import begin_immediate

        db = MagicMock()
        dbapi_connection = db.connection.return_value.connection.dbapi_connection
        dbapi_connection.in_transaction = True

        assert begin_immediate(db) is False
        dbapi_connection.execute.assert_not_called()

    def test_no_write_lock_on_postgres(self):
        from ns3000.utils.db_helpers import acquire_row_lock
        from ns3000.models.boat import Boat

        db, _ = self._mock_db('postgresql')

        acquire_row_lock(db, Boat, Boat.id == 'boat-x')

        db.connection.assert_not_called()

    def test_dialect_detection_without_bind(self):
        from ns3000.utils.db_helpers import is_postgres, is_sqlite

        db = MagicMock(spec=[])

        assert is_postgres(db) is False
        assert is_sqlite(db) is True


class TestUniqueViolation:

    def test_postgres_message_names_index(self):
        from ns3000.utils.db_helpers import is_unique_violation

        exc = IntegrityError(
            "INSERT", {},
            Exception('duplicate key value violates unique constraint "uq_bookings_blocking_slot"')
        )

        assert is_unique_violation(exc, "uq_bookings_blocking_slot") is True

    def test_sqlite_message_names_columns(self):
        from ns3000.utils.db_helpers import is_unique_violation

        exc = IntegrityError(
            "INSERT", {},
            Exception("UNIQUE constraint failed: bookings.boat_id, bookings.booking_date, bookings.time_slot")
        )

        assert is_unique_violation(
            exc, "uq_bookings_blocking_slot", table="bookings", columns=BLOCKING_SLOT_COLUMNS
        ) is True

    def test_sqlite_other_unique_column_not_matched(self):
        """A booking_number collision is not a slot conflict"""
        from ns3000.utils.db_helpers import is_unique_violation

        exc = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: bookings.booking_number"))

        assert is_unique_violation(
            exc, "uq_bookings_blocking_slot", table="bookings", columns=BLOCKING_SLOT_COLUMNS
        ) is False

    def test_sqlite_columns_required_to_match(self):
        from ns3000.utils.db_helpers import is_unique_violation

        exc = IntegrityError(
            "INSERT", {},
            Exception("UNIQUE constraint failed: bookings.boat_id, bookings.booking_date, bookings.time_slot")
        )

        assert is_unique_violation(exc, "uq_bookings_blocking_slot") is False

    def test_duplicate_booking_number_propagates(self, db, boat):
        from ns3000.models.booking import Booking
        from ns3000.services.booking_store import BookingStore

        store = BookingStore(db)
        store.insert_booking(Booking(
            booking_number="NS250815-AAAAAA", boat_id=boat.id, booking_date=date(2025, 8, 15), time_slot="morning"
        ))
        db.commit()

        with pytest.raises(IntegrityError):
            store.insert_booking(Booking(
                booking_number="NS250815-AAAAAA", boat_id=boat.id, booking_date=date(2025, 8, 15),
                time_slot="afternoon"
            ))

    def test_other_integrity_errors_not_matched(self):
        from ns3000.utils.db_helpers import is_unique_violation

        exc = IntegrityError("INSERT", {}, Exception("NOT NULL constraint failed: bookings.boat_id"))

        assert is_unique_violation(exc, "uq_bookings_blocking_slot") is False

    def test_other_integrity_errors_propagate(self):
        """Only slot violations become booking conflicts"""
        from ns3000.services.booking_store import BookingStore

        db = MagicMock()
        db.flush.side_effect = IntegrityError("INSERT", {}, Exception("NOT NULL constraint failed: bookings.boat_id"))

        with pytest.raises(IntegrityError):
            BookingStore(db).insert_booking(MagicMock())
        db.rollback.assert_called_once()


class TestWriteSequence:
    """Lock, re-check, then write"""

    def test_lock_taken_before_recheck(self):
        from ns3000.services.booking_service import BookingService
        from ns3000.services.availability import AvailabilityResult

        service = BookingService(MagicMock())
        calls = []
        booking = MagicMock(boat_id="boat-x", booking_date=date(2025, 8, 15), time_slot="full_day", is_blocking=True)

        def lock(boat_id):
            calls.append("lock")
            return MagicMock()

        def evaluate(*args):
            calls.append("evaluate")
            return AvailabilityResult.ok()

        with patch.object(service.store, "lock_boat", side_effect=lock), \
             patch.object(service.availability, "evaluate", side_effect=evaluate):
            service._ensure_slot_free(booking)

        assert calls == ["lock", "evaluate"]

    def test_conflict_rolls_back(self):
        from ns3000.exceptions import BookingConflictError
        from ns3000.services.booking_service import BookingService
        from ns3000.services.availability import AvailabilityResult, REASON_MORNING_TAKEN

        db = MagicMock()
        service = BookingService(db)
        booking = MagicMock(boat_id="boat-x", booking_date=date(2025, 8, 15), time_slot="morning", is_blocking=True)

        with patch.object(service.store, "lock_boat", return_value=MagicMock()), \
             patch.object(service.availability, "evaluate",
                          return_value=AvailabilityResult.denied(REASON_MORNING_TAKEN)):
            with pytest.raises(BookingConflictError):
                service._ensure_slot_free(booking)

        db.rollback.assert_called_once()


class TestConcurrentBookingWrites:
    """
    Two sessions book overlapping slots of one boat at the same time.
    full_day and morning are different index keys, so only the lock
    keeps both from committing.
    """

    @pytest.fixture
    def file_engine(self, tmp_path):
        from ns3000.database import Base
        from ns3000.models.boat import Boat
        from ns3000.models.service import RentalService
        from ns3000.services.booking_service import seed_booking_statuses

        engine = create_engine(
            f"sqlite:///{tmp_path / 'race.db'}",
            connect_args={"check_same_thread": False},
        )
        Base.metadata.create_all(bind=engine)

        session = sessionmaker(bind=engine)()
        seed_booking_statuses(session)
        session.add(Boat(id="boat-x", name="Gozzo Sorrentino 7m", capacity=8))
        session.add(RentalService(id="svc-s", name="Noleggio giornaliero", price_july_sept=Decimal("380.00")))
        session.commit()
        session.close()

        yield engine
        engine.dispose()

    def test_full_day_and_morning_race_only_one_commits(self, file_engine):
        from ns3000.exceptions import BookingConflictError
        from ns3000.models.booking import Booking
        from ns3000.schemas.booking import BookingCreate
        from ns3000.services.availability import AvailabilityService
        from ns3000.services.booking_service import BookingService

        Session = sessionmaker(bind=file_engine)
        original_evaluate = AvailabilityService.evaluate
        start = threading.Barrier(2)
        results = {}

        def slow_evaluate(self, *args, **kwargs):
            result = original_evaluate(self, *args, **kwargs)
            # Hold the window between the check and the insert open
            time.sleep(0.2)
            return result

        def book(time_slot):
            session = Session()
            try:
                start.wait()
                BookingService(session).create_booking(BookingCreate(
                    boat_id="boat-x",
                    service_id="svc-s",
                    booking_date=date(2025, 7, 10),
                    time_slot=time_slot,
                    final_price=Decimal("300"),
                ))
                results[time_slot] = "created"
            except BookingConflictError as e:
                results[time_slot] = e
            finally:
                session.close()

        with patch.object(AvailabilityService, "evaluate", autospec=True, side_effect=slow_evaluate):
            threads = [threading.Thread(target=book, args=(slot,)) for slot in ("full_day", "morning")]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join(timeout=10)

        assert sorted(results) == ["full_day", "morning"]
        outcomes = list(results.values())
        assert outcomes.count("created") == 1
        assert sum(isinstance(o, BookingConflictError) for o in outcomes) == 1

        session = Session()
        try:
            assert session.query(Booking).filter(Booking.is_blocking == True).count() == 1  # noqa: E712
        finally:
            session.close()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
