import json
from datetime import date, datetime, timedelta

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from physio.config import Settings
from physio.models.generated import Base, Bookings, Payments, Services, Users
from physio.services.bookings.service import BookingService
from physio.services.mailer import BookingMailer
from physio.services.notifications import NotificationService
from physio.services.slots import BookingConfig, SlotGenerator, SlotStore, WeeklyScheduleRepository

# Monday; Mon-Thu & Sun open 18-22, Fri-Sat 08-22
NOW = datetime(2026, 3, 2, 8, 0, 0)
MONDAY = date(2026, 3, 2)
TUESDAY = date(2026, 3, 3)
FRIDAY = date(2026, 3, 6)


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.current = now

    def __call__(self) -> datetime:
        return self.current

    def set(self, now: datetime) -> None:
        self.current = now

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


class FakeRedis:
    """Records rpush calls per list key."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.lists: dict[str, list[str]] = {}

    def rpush(self, key, *values):
        if self.fail:
            raise RedisConnectionError("redis is down")
        self.lists.setdefault(key, []).extend(values)
        return len(self.lists[key])

    def ping(self):
        return not self.fail

    def messages(self, key) -> list[dict]:
        return [json.loads(v) for v in self.lists.get(key, [])]


def _enable_fk(dbapi_connection, _):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", _enable_fk)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def config():
    return BookingConfig()


@pytest.fixture
def test_settings():
    return Settings(
        admin_email="admin@example.com",
        provider_name="Test Physio",
        provider_phone="+62 800 1111",
        frontend_url="http://front.test",
    )


@pytest.fixture
def seeded(db):
    """Default weekly schedule, two patients, an admin and two services."""
    WeeklyScheduleRepository(db).seed_defaults()
    patient = Users(name="Ayu", email="ayu@example.com", role="patient")
    other = Users(name="Budi", email="budi@example.com", role="patient")
    admin = Users(name="Admin", email="admin@example.com", role="admin")
    service = Services(name="Home physiotherapy", price=250000, duration_minutes=60, is_active=1)
    inactive = Services(name="Dry needling", price=300000, duration_minutes=60, is_active=0)
    db.add_all([patient, other, admin, service, inactive])
    db.commit()
    return {
        "patient_id": patient.id,
        "other_id": other.id,
        "admin_id": admin.id,
        "service_id": service.id,
        "inactive_service_id": inactive.id,
    }


@pytest.fixture
def notifier(db, fake_redis):
    return NotificationService(db, redis=fake_redis)


@pytest.fixture
def mailer(fake_redis, test_settings):
    return BookingMailer(redis=fake_redis, settings=test_settings)


@pytest.fixture
def store(db):
    return SlotStore(db)


@pytest.fixture
def generator(db, config, store):
    return SlotGenerator(db, config, store=store)


@pytest.fixture
def booking_service(db, config, clock, store, notifier, mailer, seeded):
    return BookingService(db, config, now=clock, store=store, notifier=notifier, mailer=mailer)


@pytest.fixture
def make_booking(db, generator, store, seeded):
    """Insert a booking in any status holding the slot at (date, start_time)."""
    counter = {"n": 0}

    def _make(status="pending_confirmation", on_date=FRIDAY, start_time="10:00", patient_id=None):
        counter["n"] += 1
        generator.generate_for_date(on_date)
        booking = Bookings(
            booking_code=f"TST-{on_date.strftime('%Y%m%d')}-{counter['n']:03d}",
            patient_id=patient_id or seeded["patient_id"],
            service_id=seeded["service_id"],
            date=on_date.isoformat(),
            start_time=start_time,
            address="Jl. Melati 1",
            complaint="Low back pain",
            status=status,
            payment_method="cash_on_visit",
        )
        db.add(booking)
        db.flush()
        db.add(Payments(booking_id=booking.id, method="cash_on_visit", status="awaiting", amount=250000))
        assert store.claim(on_date, start_time, booking.id)
        db.commit()
        return booking

    return _make
