"""
Configuración compartida para tests pytest
"""
import os

# Antes de importar app: base SQLite y sin esperas entre reintentos
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["READ_RETRY_BACKOFF_SECONDS"] = "0"
os.environ["FIREBASE_CONFIG_PATH"] = "/nonexistent/firebase-service-account.json"
os.environ.pop("FIREBASE_CONFIG", None)

from datetime import datetime, time, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db

# Importar todos los modelos para que SQLAlchemy pueda resolver las relaciones
from app.models.user import User
from app.models.facility import Facility
from app.models.court import Court
from app.models.match import Match, MatchStatus
from app.services.notification_service import NotificationSink


# Base de datos en memoria para tests
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Reloj fijo: viernes 10/05/2030 a las 12:30
NOW = datetime(2030, 5, 10, 12, 30)
TODAY = NOW.date()
TOMORROW = TODAY + timedelta(days=1)


class RecordingSink(NotificationSink):
    """Sink que guarda los eventos en memoria en lugar de notificar"""

    def __init__(self):
        self.events = []

    def notify(self, user_id, event_type, payload):
        self.events.append((user_id, event_type, payload))
        return True

    def of_type(self, event_type):
        return [event for event in self.events if event[1] == event_type]


@pytest.fixture
def db():
    """Crear base de datos de test y limpiarla después"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def threaded_sessions(tmp_path):
    """
    Fábrica de sesiones sobre una base SQLite en archivo, para tests con hilos.
    Cada hilo debe abrir (y cerrar) su propia sesión.
    """
    file_engine = create_engine(
        f"sqlite:///{tmp_path / 'concurrency.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=file_engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=file_engine)
    try:
        yield factory
    finally:
        file_engine.dispose()


@pytest.fixture
def override_get_db(db):
    """Override de get_db para tests"""
    def _get_db():
        try:
            yield db
        finally:
            pass
    return _get_db


@pytest.fixture
def sink():
    return RecordingSink()


def make_user(db, email, name="Player", is_owner=False):
    user = User(
        name=name,
        email=email,
        hashed_password="hashed",
        is_active=True,
        is_owner=is_owner,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_court(db, owner, open_time=time(6, 0), close_time=time(22, 0), **kwargs):
    facility = Facility(owner_id=owner.id, name="Club Norte", location="Av. Siempre Viva 742")
    db.add(facility)
    db.flush()

    court = Court(
        facility_id=facility.id,
        name=kwargs.pop("name", "Cancha 1"),
        sport_type=kwargs.pop("sport_type", "padel"),
        price_per_hour=kwargs.pop("price_per_hour", 10000),
        open_time=open_time,
        close_time=close_time,
        slot_minutes=kwargs.pop("slot_minutes", 60),
        **kwargs,
    )
    db.add(court)
    db.commit()
    db.refresh(court)
    return court


def make_match(db, creator, players_required=2, date_time=None):
    match = Match(
        creator_id=creator.id,
        sport="padel",
        date_time=date_time or NOW + timedelta(days=2),
        location="Club Norte",
        players_required=players_required,
        level="intermediate",
        status=MatchStatus.UPCOMING.value,
    )
    db.add(match)
    db.commit()
    db.refresh(match)
    return match


@pytest.fixture
def owner(db):
    """Dueño de la instalación"""
    return make_user(db, "owner@example.com", name="Owner", is_owner=True)


@pytest.fixture
def player(db):
    return make_user(db, "player@example.com", name="Ana")


@pytest.fixture
def other_player(db):
    return make_user(db, "other@example.com", name="Bruno")


@pytest.fixture
def court(db, owner):
    """Cancha de 06:00 a 22:00, turnos de 60 minutos, $100 la hora"""
    return make_court(db, owner)


@pytest.fixture
def match(db, player):
    """Partido creado por `player` que necesita 2 jugadores más"""
    return make_match(db, player, players_required=2)


@pytest.fixture
def acting_user():
    return {}


@pytest.fixture
def client(db, override_get_db, sink, acting_user):
    """TestClient con la base de test, un usuario actual configurable y el sink de prueba"""
    from fastapi.testclient import TestClient

    from app.main import app
    from app.services.auth import get_current_user
    from app.services.notification_service import get_notification_sink

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = lambda: acting_user["user"]
    app.dependency_overrides[get_notification_sink] = lambda: sink
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
