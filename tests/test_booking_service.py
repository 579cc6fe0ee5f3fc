"""
Tests del motor de reservas: éxito parcial, revalidación y un solo ganador por turno
"""
import threading
from datetime import datetime, time, timedelta

import pytest

from app.crud import booking as booking_crud
from app.exceptions import (
    BookingNotFinished,
    CourtInactive,
    CourtNotFound,
    InvalidTransition,
    PermissionDenied,
)
from app.models.booking import Booking, BookingStatus, PaymentStatus
from app.models.facility import Facility
from app.models.maintenance_block import MaintenanceBlock
from app.schemas.booking import BookingOutcome, BookingWindowRequest
from app.services.booking_service import complete_booking, create_bookings
from app.services.payment import PaymentGateway
from tests.conftest import NOW, TODAY, TOMORROW, RecordingSink, make_court, make_user


def _windows(*starts):
    return [BookingWindowRequest(start_time=start) for start in starts]


def _book(db, court, user, starts, booking_date=TOMORROW, sink=None, **kwargs):
    return create_bookings(
        db,
        court_id=court.id,
        booking_date=booking_date,
        user_id=user.id,
        windows=_windows(*starts),
        now=NOW,
        sink=sink or RecordingSink(),
        **kwargs,
    )


def test_books_each_requested_window(db, court, player, owner, sink):
    result = _book(db, court, player, [time(18, 0), time(19, 0)], sink=sink)

    assert result.created_count == 2
    assert result.failed_count == 0
    assert [r.outcome for r in result.results] == [BookingOutcome.CREATED] * 2

    bookings = booking_crud.get_bookings(db, user_id=player.id)
    assert len(bookings) == 2
    for booking in bookings:
        assert booking.status == BookingStatus.BOOKED.value
        assert booking.price == 10000
        assert booking.payment_status == PaymentStatus.PAID.value
        # Una reserva por turno, nunca una fila de varias horas
        assert (
            datetime.combine(TOMORROW, booking.end_time)
            - datetime.combine(TOMORROW, booking.start_time)
        ) == timedelta(hours=1)

    events = sink.of_type("new_booking")
    assert len(events) == 1
    assert events[0][0] == owner.id
    assert events[0][2]["booking_ids"] == [r.booking.id for r in result.results]


def test_second_booking_of_same_window_is_unavailable(db, court, player, other_player):
    _book(db, court, player, [time(18, 0)])
    result = _book(db, court, other_player, [time(18, 0)])

    assert result.created_count == 0
    assert result.results[0].outcome == BookingOutcome.SLOT_UNAVAILABLE
    assert result.results[0].error.code == "slot_unavailable"


def test_partial_success_reports_each_window(db, court, player, other_player):
    _book(db, court, other_player, [time(10, 0)])

    result = _book(db, court, player, [time(9, 0), time(10, 0), time(11, 0)])

    assert result.created_count == 2
    assert result.failed_count == 1
    outcomes = {r.start_time: r.outcome for r in result.results}
    assert outcomes == {
        time(9, 0): BookingOutcome.CREATED,
        time(10, 0): BookingOutcome.SLOT_UNAVAILABLE,
        time(11, 0): BookingOutcome.CREATED,
    }


def test_past_window_is_rejected_as_invalid(db, court, player):
    result = _book(db, court, player, [time(12, 0), time(13, 0)], booking_date=TODAY)

    by_start = {r.start_time: r for r in result.results}
    assert by_start[time(12, 0)].outcome == BookingOutcome.ERROR
    assert by_start[time(12, 0)].error.code == "invalid_window"
    assert by_start[time(13, 0)].outcome == BookingOutcome.CREATED


def test_window_outside_schedule_is_rejected(db, court, player):
    result = _book(db, court, player, [time(10, 30), time(23, 0)])

    assert result.created_count == 0
    assert all(r.error.code == "invalid_window" for r in result.results)


def test_end_time_must_match_the_window(db, court, player):
    result = create_bookings(
        db,
        court_id=court.id,
        booking_date=TOMORROW,
        user_id=player.id,
        windows=[BookingWindowRequest(start_time=time(10, 0), end_time=time(12, 0))],
        now=NOW,
        sink=RecordingSink(),
    )
    assert result.results[0].error.code == "invalid_window"


def test_blocked_window_is_unavailable(db, court, player):
    db.add(
        MaintenanceBlock(
            court_id=court.id,
            block_date=TOMORROW,
            start_time=time(8, 0),
            end_time=time(12, 0),
        )
    )
    db.commit()

    result = _book(db, court, player, [time(9, 0)])
    assert result.results[0].outcome == BookingOutcome.SLOT_UNAVAILABLE


def test_repeated_start_times_are_booked_once(db, court, player):
    result = _book(db, court, player, [time(18, 0), time(18, 0)])

    assert len(result.results) == 1
    assert result.created_count == 1


def test_cancelled_booking_frees_the_window(db, court, player, other_player):
    db.add(
        Booking(
            court_id=court.id,
            user_id=other_player.id,
            booking_date=TOMORROW,
            start_time=time(18, 0),
            end_time=time(19, 0),
            price=10000,
            status=BookingStatus.CANCELLED.value,
        )
    )
    db.commit()

    result = _book(db, court, player, [time(18, 0)])
    assert result.created_count == 1


def test_inactive_court_rejects_whole_request(db, owner, player):
    court = make_court(db, owner, is_active=False)
    with pytest.raises(CourtInactive):
        _book(db, court, player, [time(18, 0)])


def test_inactive_facility_rejects_whole_request(db, court, player):
    facility = db.get(Facility, court.facility_id)
    facility.is_active = False
    db.commit()

    with pytest.raises(CourtInactive):
        _book(db, court, player, [time(18, 0)])


def test_unknown_court(db, player):
    with pytest.raises(CourtNotFound):
        create_bookings(db, 999, TOMORROW, player.id, _windows(time(18, 0)), now=NOW)


def test_refused_payment_keeps_booking_pending(db, court, player):
    class RefusingGateway(PaymentGateway):
        def confirm(self, booking):
            return False

    result = _book(db, court, player, [time(18, 0)], payment_gateway=RefusingGateway())

    booking = result.results[0].booking
    assert booking.status == BookingStatus.BOOKED.value
    assert booking.payment_status == PaymentStatus.PENDING.value


def test_payment_gateway_error_does_not_abort_the_request(db, court, player):
    class BrokenGateway(PaymentGateway):
        def confirm(self, booking):
            raise RuntimeError("payment provider unreachable")

    result = _book(
        db, court, player, [time(18, 0), time(19, 0)], payment_gateway=BrokenGateway()
    )

    assert result.created_count == 2
    assert [r.outcome for r in result.results] == [BookingOutcome.CREATED] * 2
    for booking in booking_crud.get_bookings(db, user_id=player.id):
        assert booking.status == BookingStatus.BOOKED.value
        assert booking.payment_status == PaymentStatus.PENDING.value

def test_owner_is_not_notified_of_own_booking(db, court, owner, sink):
    _book(db, court, owner, [time(18, 0)], sink=sink)
    assert sink.events == []


def test_unique_index_backs_stale_availability_reads(db, court, player, other_player, monkeypatch):
    # Otro proceso ya reservó el turno pero la lectura no lo ve
    _book(db, court, other_player, [time(18, 0)])
    monkeypatch.setattr(
        booking_crud, "get_occupying_bookings_in_range", lambda *args, **kwargs: []
    )

    result = _book(db, court, player, [time(18, 0)])

    assert result.results[0].outcome == BookingOutcome.SLOT_UNAVAILABLE
    booked = booking_crud.get_bookings(
        db, court_id=court.id, booking_date=TOMORROW, status=BookingStatus.BOOKED
    )
    assert len(booked) == 1
    assert booked[0].user_id == other_player.id


def test_concurrent_bookings_have_a_single_winner(threaded_sessions):
    setup = threaded_sessions()
    owner = make_user(setup, "owner@example.com", is_owner=True)
    court = make_court(setup, owner)
    players = [make_user(setup, f"player{i}@example.com") for i in range(8)]
    court_id, player_ids = court.id, [p.id for p in players]
    setup.close()

    barrier = threading.Barrier(len(player_ids))
    outcomes = []
    errors = []

    def attempt(user_id):
        session = threaded_sessions()
        try:
            barrier.wait()
            result = create_bookings(
                session,
                court_id=court_id,
                booking_date=TOMORROW,
                user_id=user_id,
                windows=_windows(time(18, 0)),
                now=NOW,
                sink=RecordingSink(),
            )
            outcomes.append(result.results[0].outcome)
        except Exception as e:  # pragma: no cover - se reporta abajo
            errors.append(e)
        finally:
            session.close()

    threads = [threading.Thread(target=attempt, args=(uid,)) for uid in player_ids]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert outcomes.count(BookingOutcome.CREATED) == 1
    assert outcomes.count(BookingOutcome.SLOT_UNAVAILABLE) == len(player_ids) - 1

    check = threaded_sessions()
    try:
        booked = (
            check.query(Booking)
            .filter(Booking.court_id == court_id, Booking.status == BookingStatus.BOOKED.value)
            .all()
        )
        assert len(booked) == 1
    finally:
        check.close()


def test_complete_booking_after_window_ends(db, court, owner, player):
    booking_id = _book(db, court, player, [time(18, 0)]).results[0].booking.id

    with pytest.raises(BookingNotFinished):
        complete_booking(db, booking_id, owner.id, now=datetime.combine(TOMORROW, time(18, 30)))

    completed = complete_booking(
        db, booking_id, owner.id, now=datetime.combine(TOMORROW, time(19, 0))
    )
    assert completed.status == BookingStatus.COMPLETED.value

    with pytest.raises(InvalidTransition):
        complete_booking(db, booking_id, owner.id, now=datetime.combine(TOMORROW, time(20, 0)))


def test_only_court_owner_can_complete(db, court, player):
    booking_id = _book(db, court, player, [time(18, 0)]).results[0].booking.id

    with pytest.raises(PermissionDenied):
        complete_booking(db, booking_id, player.id, now=datetime.combine(TOMORROW, time(20, 0)))
