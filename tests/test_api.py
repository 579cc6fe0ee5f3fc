"""
Tests de los endpoints HTTP
"""
from datetime import date, datetime, time, timedelta

from app.models.court import Court
from app.models.join_request import JoinRequest
from app.services.notification_service import InAppNotificationSink
from tests.conftest import make_court, make_match, make_user

TOMORROW = (date.today() + timedelta(days=1)).isoformat()


def test_availability_endpoint(client, acting_user, court, player):
    acting_user["user"] = player

    response = client.get(f"/courts/{court.id}/availability", params={"date": TOMORROW})

    assert response.status_code == 200
    body = response.json()
    assert body["court_id"] == court.id
    assert len(body["windows"]) == 16
    assert body["windows"][0]["start_time"] == "06:00:00"
    assert {w["status"] for w in body["windows"]} == {"available"}


def test_domain_errors_are_translated(client, acting_user, player):
    acting_user["user"] = player

    response = client.get("/courts/999/availability", params={"date": TOMORROW})

    assert response.status_code == 404
    assert response.json() == {"detail": "Court not found", "code": "court_not_found"}


def test_booking_flow(client, acting_user, court, owner, player, other_player, sink):
    acting_user["user"] = player
    payload = {
        "court_id": court.id,
        "booking_date": TOMORROW,
        "windows": [{"start_time": "18:00"}, {"start_time": "19:00"}],
    }

    response = client.post("/bookings/", json=payload)
    assert response.status_code == 201
    body = response.json()
    assert body["created_count"] == 2
    assert [r["outcome"] for r in body["results"]] == ["created", "created"]
    assert sink.of_type("new_booking")[0][0] == owner.id

    acting_user["user"] = other_player
    response = client.post("/bookings/", json=payload)
    body = response.json()
    assert body["created_count"] == 0
    assert {r["outcome"] for r in body["results"]} == {"slot_unavailable"}

    response = client.get(f"/courts/{court.id}/availability", params={"date": TOMORROW})
    windows = {w["start_time"]: w for w in response.json()["windows"]}
    assert windows["18:00:00"]["status"] == "booked"
    assert windows["18:00:00"]["is_own_booking"] is False

    acting_user["user"] = player
    response = client.get("/bookings/me", params={"upcoming": True})
    assert len(response.json()) == 2

    booking_id = response.json()[0]["id"]
    acting_user["user"] = other_player
    assert client.get(f"/bookings/{booking_id}").status_code == 403

    acting_user["user"] = owner
    response = client.get(f"/courts/{court.id}/bookings", params={"date": TOMORROW})
    assert len(response.json()) == 2
    response = client.post(f"/bookings/{booking_id}/complete")
    assert response.status_code == 400
    assert response.json()["code"] == "booking_not_finished"


def test_selection_endpoint(client, acting_user, court, player):
    acting_user["user"] = player

    response = client.post(
        f"/courts/{court.id}/selection",
        json={"date": TOMORROW, "start_times": ["09:00", "14:00"]},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["total_duration_hours"] == 2
    assert body["is_consecutive"] is False
    assert body["effective_start"] == "09:00:00"
    assert body["effective_end"] == "15:00:00"
    assert body["total_price"] == 20000


def test_maintenance_endpoints(client, acting_user, court, owner, player):
    block = {
        "court_id": court.id,
        "block_date": TOMORROW,
        "start_time": "08:00",
        "end_time": "10:00",
        "reason": "Riego",
    }

    acting_user["user"] = player
    assert client.post("/maintenance/", json=block).status_code == 403

    acting_user["user"] = owner
    response = client.post("/maintenance/", json=block)
    assert response.status_code == 201
    block_id = response.json()["id"]

    response = client.get(
        "/maintenance/", params={"court_id": court.id, "block_date": TOMORROW}
    )
    assert [b["id"] for b in response.json()] == [block_id]

    response = client.get(f"/courts/{court.id}/availability", params={"date": TOMORROW})
    windows = {w["start_time"]: w for w in response.json()["windows"]}
    assert windows["08:00:00"]["status"] == "blocked"
    assert windows["08:00:00"]["maintenance_reason"] == "Riego"

    clear = {k: v for k, v in block.items() if k != "reason"}
    assert client.post("/maintenance/clear", json=clear).json() == {"deleted": 1}
    assert client.delete(f"/maintenance/{block_id}").status_code == 404


def test_court_management(client, acting_user, owner, player):
    acting_user["user"] = owner
    facility = client.post(
        "/facilities/", json={"name": "Club Sur", "location": "Calle 9"}
    ).json()

    response = client.post(
        "/courts/",
        json={
            "facility_id": facility["id"],
            "name": "Central",
            "sport_type": "tennis",
            "price_per_hour": 9000,
            "open_time": "08:00",
            "close_time": "12:00",
            "slot_minutes": 60,
        },
    )
    assert response.status_code == 201
    court_id = response.json()["id"]

    response = client.post(
        f"/courts/{court_id}/schedules",
        json={
            "date_from": TOMORROW,
            "date_to": TOMORROW,
            "slot_minutes": 120,
            "base_price": 6000,
        },
    )
    assert response.status_code == 201

    acting_user["user"] = player
    response = client.get(f"/courts/{court_id}/availability", params={"date": TOMORROW})
    windows = response.json()["windows"]
    assert [(w["start_time"], w["price"]) for w in windows] == [
        ("08:00:00", 12000),
        ("10:00:00", 12000),
    ]

    assert client.put(f"/courts/{court_id}", json={"name": "Otra"}).status_code == 403
    assert client.post(
        "/facilities/", json={"name": "X", "location": "Y"}
    ).status_code == 403


def test_join_request_flow(client, acting_user, db, player, other_player, sink):
    match = make_match(db, player, players_required=1, date_time=datetime.now() + timedelta(days=2))
    late = make_user(db, "late@example.com")

    acting_user["user"] = other_player
    response = client.post("/join-requests/", json={"match_id": match.id, "message": "Hola"})
    assert response.status_code == 201
    request_id = response.json()["id"]
    assert client.post("/join-requests/", json={"match_id": match.id}).json()["code"] == (
        "duplicate_request"
    )

    acting_user["user"] = late
    late_id = client.post("/join-requests/", json={"match_id": match.id}).json()["id"]

    acting_user["user"] = player
    assert client.get("/join-requests/pending").json()["total_count"] == 2
    response = client.put(f"/join-requests/{request_id}", json={"status": "accepted"})
    assert response.status_code == 200
    assert response.json()["status"] == "accepted"

    response = client.put(f"/join-requests/{late_id}", json={"status": "accepted"})
    assert response.status_code == 409
    assert response.json()["code"] == "match_full"
    assert db.get(JoinRequest, late_id).status == "pending"

    capacity = client.get(f"/matches/{match.id}/capacity").json()
    assert capacity == {
        "match_id": match.id,
        "accepted_count": 1,
        "required": 1,
        "remaining": 0,
        "can_accept": False,
    }
    assert client.get(f"/matches/{match.id}/join-requests").json()["total_count"] == 2


def test_create_and_cancel_match(client, acting_user, player, other_player):
    acting_user["user"] = player
    response = client.post(
        "/matches/",
        json={
            "date_time": (datetime.now() + timedelta(days=3)).isoformat(),
            "location": "Club Norte",
            "players_required": 3,
            "level": "advanced",
        },
    )
    assert response.status_code == 201
    match_id = response.json()["id"]
    assert match_id in [m["id"] for m in client.get("/matches/").json()]

    acting_user["user"] = other_player
    assert client.post(f"/matches/{match_id}/cancel").status_code == 403

    acting_user["user"] = player
    assert client.post(f"/matches/{match_id}/cancel").json()["status"] == "cancelled"
    assert match_id not in [m["id"] for m in client.get("/matches/").json()]


def test_match_in_the_past_is_rejected(client, acting_user, player):
    acting_user["user"] = player
    response = client.post(
        "/matches/",
        json={
            "date_time": (datetime.now() - timedelta(days=1)).isoformat(),
            "location": "Club Norte",
            "players_required": 3,
            "level": "advanced",
        },
    )
    assert response.status_code == 400
    assert response.json()["code"] == "invalid_match"


def test_notifications_endpoints(client, acting_user, db, player, other_player):
    InAppNotificationSink(db).notify(player.id, "match_full", {"location": "Club Norte"})

    acting_user["user"] = player
    body = client.get("/notifications/").json()
    assert body["unread_count"] == 1
    notification_id = body["notifications"][0]["id"]
    assert body["notifications"][0]["type"] == "match_full"

    acting_user["user"] = other_player
    assert client.put(f"/notifications/{notification_id}/read").status_code == 404

    acting_user["user"] = player
    assert client.put(f"/notifications/{notification_id}/read").status_code == 200
    assert client.get("/notifications/").json()["unread_count"] == 0

    response = client.post(
        "/notifications/register-token", json={"token": "device-1", "device_type": "ios"}
    )
    assert response.status_code == 201
    assert response.json()["device_type"] == "ios"


def test_register_and_login(client):
    response = client.post(
        "/auth/register",
        json={
            "name": "Carla",
            "email": "carla@example.com",
            "password": "secreta123",
            "is_owner": True,
        },
    )
    assert response.status_code == 201
    assert response.json()["is_owner"] is True

    duplicated = client.post(
        "/auth/register",
        json={"name": "Carla", "email": "carla@example.com", "password": "otra"},
    )
    assert duplicated.status_code == 400

    response = client.post(
        "/auth/token", data={"username": "carla@example.com", "password": "secreta123"}
    )
    assert response.status_code == 200
    assert response.json()["token_type"] == "bearer"

    response = client.post(
        "/auth/token", data={"username": "carla@example.com", "password": "mala"}
    )
    assert response.status_code == 401


def test_notification_filters_and_read_all(client, acting_user, db, owner):
    sink = InAppNotificationSink(db)
    sink.notify(owner.id, "new_booking", {"court_name": "Cancha 1"})
    sink.notify(owner.id, "match_full", {"location": "Club Norte"})

    acting_user["user"] = owner
    body = client.get("/notifications/", params={"type": "new_booking"}).json()
    assert [n["type"] for n in body["notifications"]] == ["new_booking"]
    assert body["unread_count"] == 2

    assert client.put("/notifications/read-all").json()["updated"] == 2
    body = client.get("/notifications/", params={"unread_only": True}).json()
    assert body["notifications"] == []
    assert body["unread_count"] == 0


def test_match_participants_and_my_matches(client, acting_user, db, player, other_player):
    match = make_match(
        db, player, players_required=2, date_time=datetime.now() + timedelta(days=2)
    )

    acting_user["user"] = other_player
    request_id = client.post("/join-requests/", json={"match_id": match.id}).json()["id"]
    assert client.get(f"/matches/{match.id}/participants").json()["total_count"] == 0

    acting_user["user"] = player
    client.put(f"/join-requests/{request_id}", json={"status": "accepted"})

    body = client.get(f"/matches/{match.id}/participants").json()
    assert body["creator_id"] == player.id
    assert [p["user_id"] for p in body["participants"]] == [other_player.id]
    assert body["required"] == 2

    mine = client.get("/matches/me").json()
    assert [m["id"] for m in mine["created_matches"]] == [match.id]
    assert mine["joined_matches"] == []

    acting_user["user"] = other_player
    mine = client.get("/matches/me").json()
    assert mine["created_matches"] == []
    assert [m["id"] for m in mine["joined_matches"]] == [match.id]

    assert client.get("/matches/999/participants").json()["code"] == "match_not_found"


def test_complete_match_endpoint(client, acting_user, db, player):
    match = make_match(db, player, date_time=datetime.now() + timedelta(days=1))
    acting_user["user"] = player

    response = client.post(f"/matches/{match.id}/complete")
    assert response.status_code == 409
    assert response.json()["code"] == "invalid_transition"

    played = make_match(db, player, date_time=datetime.now() - timedelta(hours=3))
    assert client.post(f"/matches/{played.id}/complete").json()["status"] == "completed"


def test_facility_bookings_for_owner(client, acting_user, db, court, owner, player):
    second = Court(
        facility_id=court.facility_id,
        name="Cancha 2",
        sport_type="padel",
        price_per_hour=8000,
        open_time=time(6, 0),
        close_time=time(22, 0),
        slot_minutes=60,
    )
    db.add(second)
    db.commit()
    elsewhere = make_court(db, owner, name="Otra sede")

    acting_user["user"] = player
    for court_id in (court.id, second.id, elsewhere.id):
        client.post(
            "/bookings/",
            json={
                "court_id": court_id,
                "booking_date": TOMORROW,
                "windows": [{"start_time": "18:00"}],
            },
        )

    assert client.get(f"/facilities/{court.facility_id}/bookings").status_code == 403

    acting_user["user"] = make_user(db, "rival@example.com", is_owner=True)
    assert client.get(f"/facilities/{court.facility_id}/bookings").status_code == 403

    acting_user["user"] = owner
    response = client.get(
        f"/facilities/{court.facility_id}/bookings", params={"booking_date": TOMORROW}
    )
    assert response.status_code == 200
    assert sorted(b["court_id"] for b in response.json()) == sorted([court.id, second.id])

    response = client.get(
        f"/facilities/{court.facility_id}/bookings", params={"status": "completed"}
    )
    assert response.json() == []
    assert client.get("/facilities/999/bookings").status_code == 404
