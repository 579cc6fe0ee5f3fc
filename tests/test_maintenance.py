"""
Tests de bloqueos de mantenimiento del dueño
"""
from datetime import time

import pytest

from app.exceptions import (
    CourtNotFound,
    InvalidWindow,
    MaintenanceBlockNotFound,
    MaintenanceConflict,
    PermissionDenied,
)
from app.schemas.booking import BookingOutcome, BookingWindowRequest
from app.schemas.court import WindowStatus
from app.services.availability import get_availability
from app.services.booking_service import create_bookings
from app.services.maintenance_service import (
    clear_maintenance,
    clear_maintenance_by_id,
    list_maintenance,
    set_maintenance,
)
from tests.conftest import NOW, TOMORROW, RecordingSink


def _status_at(db, court, start):
    windows = get_availability(db, court.id, TOMORROW, now=NOW)
    return next(w for w in windows if w.start_time == start).status


def test_set_maintenance_blocks_windows(db, court, owner):
    block = set_maintenance(
        db, court.id, TOMORROW, time(8, 0), time(10, 0), owner.id, reason="Pintura"
    )

    assert block.id is not None
    assert block.reason == "Pintura"
    assert block.created_by == owner.id
    assert _status_at(db, court, time(8, 0)) == WindowStatus.BLOCKED
    assert _status_at(db, court, time(9, 0)) == WindowStatus.BLOCKED
    assert _status_at(db, court, time(10, 0)) == WindowStatus.AVAILABLE


def test_default_reason(db, court, owner):
    block = set_maintenance(db, court.id, TOMORROW, time(8, 0), time(9, 0), owner.id)
    assert block.reason == "Maintenance"


def test_setting_same_block_twice_is_idempotent(db, court, owner):
    first = set_maintenance(db, court.id, TOMORROW, time(8, 0), time(10, 0), owner.id)
    second = set_maintenance(db, court.id, TOMORROW, time(8, 0), time(10, 0), owner.id)

    assert first.id == second.id
    assert len(list_maintenance(db, court.id, TOMORROW)) == 1


def test_cannot_block_a_booked_window(db, court, owner, player):
    create_bookings(
        db,
        court.id,
        TOMORROW,
        player.id,
        [BookingWindowRequest(start_time=time(9, 0))],
        now=NOW,
        sink=RecordingSink(),
    )

    with pytest.raises(MaintenanceConflict):
        set_maintenance(db, court.id, TOMORROW, time(8, 0), time(11, 0), owner.id)
    assert list_maintenance(db, court.id, TOMORROW) == []


def test_blocked_window_cannot_be_booked(db, court, owner, player):
    set_maintenance(db, court.id, TOMORROW, time(9, 0), time(10, 0), owner.id)

    result = create_bookings(
        db,
        court.id,
        TOMORROW,
        player.id,
        [BookingWindowRequest(start_time=time(9, 0))],
        now=NOW,
        sink=RecordingSink(),
    )
    assert result.results[0].outcome == BookingOutcome.SLOT_UNAVAILABLE


def test_overlapping_block_with_same_start_conflicts(db, court, owner):
    set_maintenance(db, court.id, TOMORROW, time(8, 0), time(9, 0), owner.id)

    with pytest.raises(MaintenanceConflict):
        set_maintenance(db, court.id, TOMORROW, time(8, 0), time(10, 0), owner.id)


def test_block_must_end_after_it_starts(db, court, owner):
    with pytest.raises(InvalidWindow):
        set_maintenance(db, court.id, TOMORROW, time(10, 0), time(10, 0), owner.id)


def test_only_owner_can_manage_maintenance(db, court, player):
    with pytest.raises(PermissionDenied):
        set_maintenance(db, court.id, TOMORROW, time(8, 0), time(9, 0), player.id)


def test_unknown_court(db, owner):
    with pytest.raises(CourtNotFound):
        set_maintenance(db, 999, TOMORROW, time(8, 0), time(9, 0), owner.id)


def test_clear_maintenance_restores_windows(db, court, owner):
    set_maintenance(db, court.id, TOMORROW, time(8, 0), time(10, 0), owner.id)

    assert clear_maintenance(db, court.id, TOMORROW, time(8, 0), time(10, 0), owner.id) == 1
    assert _status_at(db, court, time(8, 0)) == WindowStatus.AVAILABLE
    assert clear_maintenance(db, court.id, TOMORROW, time(8, 0), time(10, 0), owner.id) == 0


def test_clear_maintenance_by_id(db, court, owner, player):
    block = set_maintenance(db, court.id, TOMORROW, time(8, 0), time(10, 0), owner.id)

    with pytest.raises(PermissionDenied):
        clear_maintenance_by_id(db, block.id, player.id)

    clear_maintenance_by_id(db, block.id, owner.id)
    assert list_maintenance(db, court.id, TOMORROW) == []

    with pytest.raises(MaintenanceBlockNotFound):
        clear_maintenance_by_id(db, block.id, owner.id)
