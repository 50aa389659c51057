import threading
from datetime import date, datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from physio.errors import ConflictError, NotFoundError, ValidationFailedError
from physio.models.generated import Base, Slots
from physio.schemas.schedule import WeeklyScheduleUpdate
from physio.services.slots import (
    AvailabilityService,
    BookingConfig,
    SlotAdminService,
    SlotGenerator,
    SlotStore,
    WeeklyScheduleRepository,
    build_time_slots,
)

from conftest import FRIDAY, MONDAY, NOW, TUESDAY


def _statuses(db, on_date):
    rows = db.query(Slots).filter(Slots.date == on_date.isoformat()).order_by(Slots.start_time).all()
    return {s.start_time: s.status for s in rows}


# ── build_time_slots ─────────────────────────────────────────────────────


def test_build_time_slots_whole_slots_only():
    assert build_time_slots("18:00", "22:00", 60) == [
        ("18:00", "19:00"), ("19:00", "20:00"), ("20:00", "21:00"), ("21:00", "22:00"),
    ]
    assert build_time_slots("18:00", "20:30", 60) == [("18:00", "19:00"), ("19:00", "20:00")]
    assert build_time_slots("09:00", "10:00", 30) == [("09:00", "09:30"), ("09:30", "10:00")]
    assert build_time_slots("10:00", "10:00", 60) == []


def test_booking_config_rejects_odd_duration():
    with pytest.raises(ValueError):
        BookingConfig(slot_duration_minutes=45)


# ── Generation ───────────────────────────────────────────────────────────


def test_generation_follows_weekly_schedule(db, seeded, generator):
    monday = generator.generate_for_date(MONDAY)
    friday = generator.generate_for_date(FRIDAY)
    db.commit()

    assert [s.start_time for s in monday] == ["18:00", "19:00", "20:00", "21:00"]
    assert len(friday) == 14
    assert friday[0].start_time == "08:00" and friday[-1].end_time == "22:00"
    assert all(s.status == "available" for s in monday + friday)


def test_generation_is_idempotent(db, seeded, generator, store):
    generator.generate_for_date(MONDAY)
    db.commit()
    generator.generate_for_date(MONDAY)
    db.commit()
    assert db.query(Slots).filter(Slots.date == MONDAY.isoformat()).count() == 4
    assert store.insert_missing(MONDAY, [("18:00", "19:00")]) == 0


def test_generation_leaves_booked_slot_untouched(db, seeded, generator, make_booking):
    booking = make_booking(on_date=MONDAY, start_time="19:00")
    generator.generate_for_date(MONDAY)
    db.commit()

    statuses = _statuses(db, MONDAY)
    assert statuses == {"18:00": "available", "19:00": "booked", "20:00": "available", "21:00": "available"}
    slot = db.query(Slots).filter(Slots.date == MONDAY.isoformat(), Slots.start_time == "19:00").one()
    assert slot.booking_id == booking.id


def test_inactive_weekday_generates_nothing(db, seeded, generator):
    WeeklyScheduleRepository(db).toggle_active("mon")
    db.commit()
    assert generator.generate_for_date(MONDAY) == []
    assert db.query(Slots).count() == 0


def test_schedule_change_does_not_regenerate_existing_date(db, seeded, generator):
    generator.generate_for_date(MONDAY)
    db.commit()
    WeeklyScheduleRepository(db).update("mon", WeeklyScheduleUpdate(start_time="16:00"))
    db.commit()

    generator.generate_for_date(MONDAY)
    assert sorted(_statuses(db, MONDAY)) == ["18:00", "19:00", "20:00", "21:00"]


def test_generate_for_range(db, seeded, generator):
    result = generator.generate_for_range(MONDAY, FRIDAY)
    db.commit()
    assert [r["count"] for r in result] == [4, 4, 4, 4, 14]
    assert result[0]["date"] == MONDAY


def test_generate_for_range_validates_bounds(seeded, generator):
    with pytest.raises(ValidationFailedError):
        generator.generate_for_range(FRIDAY, MONDAY)
    with pytest.raises(ValidationFailedError):
        generator.generate_for_range(MONDAY, MONDAY + timedelta(days=63))


# ── Store ────────────────────────────────────────────────────────────────


def test_claim_is_conditional(db, seeded, generator, store, make_booking):
    first = make_booking(on_date=MONDAY, start_time="18:00")
    assert store.claim(MONDAY, "18:00", first.id + 100) is False
    assert store.claim(MONDAY, "23:00", first.id) is False

    slot = store.find(MONDAY, "18:00")
    assert slot.status == "booked"
    assert slot.booking_id == first.id


def test_release_returns_slot(db, seeded, store, make_booking):
    booking = make_booking(on_date=MONDAY, start_time="20:00")
    assert store.release(booking.id) == 1
    db.commit()

    slot = store.find(MONDAY, "20:00")
    assert slot.status == "available"
    assert slot.booking_id is None


def test_concurrent_claims_exactly_one_wins(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine, autoflush=False)

    setup = Session()
    WeeklyScheduleRepository(setup).seed_defaults()
    SlotGenerator(setup, BookingConfig()).generate_for_date(MONDAY)
    setup.commit()
    setup.close()

    attempts = 8
    barrier = threading.Barrier(attempts)
    results = []
    lock = threading.Lock()

    def worker(booking_id):
        session = Session()
        try:
            barrier.wait()
            won = SlotStore(session).claim(MONDAY, "18:00", booking_id)
            session.commit()
            with lock:
                results.append(won)
        finally:
            session.close()

    threads = [threading.Thread(target=worker, args=(i + 1,)) for i in range(attempts)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == attempts
    assert results.count(True) == 1
    assert results.count(False) == attempts - 1

    check = Session()
    slot = SlotStore(check).find(MONDAY, "18:00")
    assert slot.status == "booked"
    assert slot.booking_id in range(1, attempts + 1)
    check.close()
    engine.dispose()


# ── Availability ─────────────────────────────────────────────────────────


def test_available_slots_respect_lead_time(db, seeded, config, clock):
    clock.set(datetime(2026, 3, 6, 10, 30))
    availability = AvailabilityService(db, config, now=clock)

    slots = availability.available_slots(FRIDAY)
    # 13:30 is the earliest allowed start, so 14:00 is the first bookable slot
    assert slots[0].start_time == "14:00"
    assert [s.start_time for s in slots][-1] == "21:00"


def test_available_slots_exclude_booked(db, seeded, config, clock, make_booking):
    make_booking(on_date=TUESDAY, start_time="19:00")
    slots = AvailabilityService(db, config, now=clock).available_slots(TUESDAY)
    assert [s.start_time for s in slots] == ["18:00", "20:00", "21:00"]


def test_available_dates_lists_bookable_days(db, seeded, config, clock):
    WeeklyScheduleRepository(db).toggle_active("wed")
    db.commit()

    days = AvailabilityService(db, config, now=clock).available_dates(MONDAY, FRIDAY)
    assert [d["date"] for d in days] == [MONDAY, TUESDAY, date(2026, 3, 5), FRIDAY]
    assert days[-1]["available_slots"] == 14


def test_available_dates_default_window(db, seeded, config, clock):
    days = AvailabilityService(db, config, now=clock).available_dates()
    assert days[0]["date"] == NOW.date()
    assert days[-1]["date"] == NOW.date() + timedelta(days=config.advance_days)


def test_slots_by_date_includes_booking_code(db, seeded, config, clock, make_booking):
    booking = make_booking(on_date=MONDAY, start_time="21:00")
    rows = AvailabilityService(db, config, now=clock).slots_by_date(MONDAY)
    codes = {slot.start_time: code for slot, code in rows}
    assert codes["21:00"] == booking.booking_code
    assert codes["18:00"] is None


# ── Admin overrides ──────────────────────────────────────────────────────


@pytest.fixture
def slot_admin(db, config, store, generator):
    return SlotAdminService(db, config, store=store, generator=generator)


def test_block_and_unblock(db, seeded, generator, slot_admin, store):
    generator.generate_for_date(MONDAY)
    db.commit()
    slot = store.find(MONDAY, "18:00")

    blocked = slot_admin.block_slot(slot.id, "Provider training")
    assert blocked.status == "blocked_by_admin"
    assert blocked.note == "Provider training"

    with pytest.raises(ConflictError):
        slot_admin.block_slot(slot.id)

    assert slot_admin.unblock_slot(slot.id).status == "available"
    with pytest.raises(ConflictError):
        slot_admin.unblock_slot(slot.id)


def test_block_booked_slot_conflicts(db, seeded, slot_admin, store, make_booking):
    make_booking(on_date=MONDAY, start_time="18:00")
    slot = store.find(MONDAY, "18:00")
    with pytest.raises(ConflictError):
        slot_admin.block_slot(slot.id)
    assert store.find(MONDAY, "18:00").status == "booked"


def test_block_unknown_slot(seeded, slot_admin):
    with pytest.raises(NotFoundError):
        slot_admin.block_slot(999)


def test_holiday_keeps_booked_slot(db, seeded, slot_admin, make_booking):
    WeeklyScheduleRepository(db).update("tue", WeeklyScheduleUpdate(start_time="16:00"))
    db.commit()
    make_booking(on_date=TUESDAY, start_time="17:00")

    assert slot_admin.set_holiday(TUESDAY, "National holiday") == 5
    statuses = _statuses(db, TUESDAY)
    assert list(statuses.values()).count("holiday") == 5
    assert statuses["17:00"] == "booked"

    assert slot_admin.cancel_holiday(TUESDAY) == 5
    statuses = _statuses(db, TUESDAY)
    assert list(statuses.values()).count("available") == 5
    assert statuses["17:00"] == "booked"


def test_holiday_generates_missing_date_first(db, seeded, slot_admin):
    assert slot_admin.set_holiday(MONDAY) == 4
    assert set(_statuses(db, MONDAY).values()) == {"holiday"}


def test_delete_available_keeps_booked(db, seeded, slot_admin, make_booking):
    make_booking(on_date=MONDAY, start_time="18:00")
    assert slot_admin.delete_available(MONDAY) == 3
    assert _statuses(db, MONDAY) == {"18:00": "booked"}


# ── Weekly schedule ──────────────────────────────────────────────────────


def test_seed_defaults_creates_seven_rows_once(db):
    repo = WeeklyScheduleRepository(db)
    assert repo.seed_defaults() == 7
    assert repo.seed_defaults() == 0
    rows = repo.get_all()
    assert [r.weekday for r in rows] == ["mon", "tue", "wed", "thu", "fri", "sat", "sun"]
    assert (rows[4].start_time, rows[4].end_time) == ("08:00", "22:00")


def test_schedule_update_validates_order(db, seeded):
    repo = WeeklyScheduleRepository(db)
    with pytest.raises(ValidationFailedError):
        repo.update("mon", WeeklyScheduleUpdate(start_time="22:00"))

    row = repo.update("mon", WeeklyScheduleUpdate(end_time="23:00"))
    assert (row.start_time, row.end_time) == ("18:00", "23:00")


def test_schedule_update_only_writes_given_fields(db, seeded):
    repo = WeeklyScheduleRepository(db)
    row = repo.update("fri", WeeklyScheduleUpdate(is_active=False))
    assert row.is_active == 0
    assert (row.start_time, row.end_time) == ("08:00", "22:00")


def test_schedule_unknown_weekday(db, seeded):
    with pytest.raises(NotFoundError):
        WeeklyScheduleRepository(db).update("xyz", WeeklyScheduleUpdate(is_active=True))
