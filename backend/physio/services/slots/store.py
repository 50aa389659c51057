# backend/physio/services/slots/store.py
"""
Persisted per-date slots with conditional status writes.

Every status change is a single ``UPDATE ... WHERE status = <expected>``.
The affected row count is the precondition result; callers turn a zero
into a domain error. Slot rows are never written unconditionally.

The store never commits: the calling service owns the transaction.
"""

import logging
from datetime import date

from sqlalchemy import delete, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from ...models.generated import Bookings, Slots

logger = logging.getLogger(__name__)

AVAILABLE = "available"
BOOKED = "booked"
BLOCKED = "blocked_by_admin"
HOLIDAY = "holiday"


def _date_str(value: date | str) -> str:
    return value.isoformat() if isinstance(value, date) else value


class SlotStore:
    """SQL storage wrapper for the slots table."""

    def __init__(self, db: Session):
        self.db = db

    # ── Read ─────────────────────────────────────────────────────────────

    def get(self, slot_id: int) -> Slots | None:
        return self.db.get(Slots, slot_id)

    def find(self, target_date: date | str, start_time: str) -> Slots | None:
        return (
            self.db.query(Slots)
            .filter(Slots.date == _date_str(target_date), Slots.start_time == start_time)
            .first()
        )

    def exists_for_date(self, target_date: date | str) -> bool:
        return (
            self.db.query(Slots.id)
            .filter(Slots.date == _date_str(target_date))
            .first()
        ) is not None

    def list_for_date(self, target_date: date | str) -> list[tuple[Slots, str | None]]:
        """All slots of a date (any status) with the owning booking code."""
        return (
            self.db.query(Slots, Bookings.booking_code)
            .outerjoin(Bookings, Slots.booking_id == Bookings.id)
            .filter(Slots.date == _date_str(target_date))
            .order_by(Slots.start_time)
            .all()
        )

    def list_available(self, target_date: date | str) -> list[Slots]:
        return (
            self.db.query(Slots)
            .filter(Slots.date == _date_str(target_date), Slots.status == AVAILABLE)
            .order_by(Slots.start_time)
            .all()
        )

    def owned_by(self, booking_id: int) -> list[Slots]:
        return self.db.query(Slots).filter(Slots.booking_id == booking_id).all()

    # ── Write ────────────────────────────────────────────────────────────

    def insert_missing(self, target_date: date | str, slots: list[tuple[str, str]]) -> int:
        """
        Bulk insert (start_time, end_time) pairs for a date as available.

        Existing (date, start_time) rows are left untouched whatever
        their status. Returns number of rows inserted.
        """
        if not slots:
            return 0

        date_str = _date_str(target_date)
        rows = [
            {"date": date_str, "start_time": start, "end_time": end, "status": AVAILABLE}
            for start, end in slots
        ]
        stmt = (
            sqlite_insert(Slots.__table__)
            .values(rows)
            .on_conflict_do_nothing(index_elements=["date", "start_time"])
        )
        result = self.db.execute(stmt)
        return max(result.rowcount or 0, 0)

    def claim(self, target_date: date | str, start_time: str, booking_id: int) -> bool:
        """Compare-and-set available → booked for one (date, start_time)."""
        stmt = (
            update(Slots)
            .where(
                Slots.date == _date_str(target_date),
                Slots.start_time == start_time,
                Slots.status == AVAILABLE,
            )
            .values(status=BOOKED, booking_id=booking_id)
            .execution_options(synchronize_session=False)
        )
        claimed = self._execute(stmt) == 1
        if claimed:
            logger.info(f"Slot claimed: {_date_str(target_date)} {start_time} booking={booking_id}")
        else:
            logger.warning(f"Slot claim lost: {_date_str(target_date)} {start_time} booking={booking_id}")
        return claimed

    def release(self, booking_id: int) -> int:
        """Return every slot owned by the booking to available."""
        stmt = (
            update(Slots)
            .where(Slots.booking_id == booking_id)
            .values(status=AVAILABLE, booking_id=None, note=None)
            .execution_options(synchronize_session=False)
        )
        count = self._execute(stmt)
        logger.info(f"Released {count} slot(s) of booking={booking_id}")
        return count

    def block(self, slot_id: int, note: str | None = None) -> bool:
        stmt = (
            update(Slots)
            .where(Slots.id == slot_id, Slots.status == AVAILABLE)
            .values(status=BLOCKED, note=note)
            .execution_options(synchronize_session=False)
        )
        return self._execute(stmt) == 1

    def unblock(self, slot_id: int) -> bool:
        stmt = (
            update(Slots)
            .where(Slots.id == slot_id, Slots.status == BLOCKED)
            .values(status=AVAILABLE, note=None)
            .execution_options(synchronize_session=False)
        )
        return self._execute(stmt) == 1

    def set_holiday(self, target_date: date | str, note: str | None = None) -> int:
        """Mark every available slot of the date as holiday."""
        stmt = (
            update(Slots)
            .where(Slots.date == _date_str(target_date), Slots.status == AVAILABLE)
            .values(status=HOLIDAY, note=note)
            .execution_options(synchronize_session=False)
        )
        return self._execute(stmt)

    def cancel_holiday(self, target_date: date | str) -> int:
        stmt = (
            update(Slots)
            .where(Slots.date == _date_str(target_date), Slots.status == HOLIDAY)
            .values(status=AVAILABLE, note=None)
            .execution_options(synchronize_session=False)
        )
        return self._execute(stmt)

    def delete_available_for_date(self, target_date: date | str) -> int:
        stmt = (
            delete(Slots)
            .where(Slots.date == _date_str(target_date), Slots.status == AVAILABLE)
            .execution_options(synchronize_session=False)
        )
        return self._execute(stmt)

    # ── Helpers ──────────────────────────────────────────────────────────

    def _execute(self, stmt) -> int:
        result = self.db.execute(stmt)
        self._expire_loaded_slots()
        return result.rowcount

    def _expire_loaded_slots(self) -> None:
        # Bulk statements bypass the identity map; drop cached slot state
        for obj in list(self.db.identity_map.values()):
            if isinstance(obj, Slots):
                self.db.expire(obj)
