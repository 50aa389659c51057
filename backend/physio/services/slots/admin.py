# backend/physio/services/slots/admin.py
"""
Manual schedule management: block / unblock / holiday / prune / generate.
"""

import logging
from datetime import date

from sqlalchemy.orm import Session

from ...errors import ConflictError, NotFoundError
from ...models.generated import Slots
from .config import BookingConfig, get_booking_config
from .generator import SlotGenerator
from .store import SlotStore

logger = logging.getLogger(__name__)


class SlotAdminService:

    def __init__(
        self,
        db: Session,
        config: BookingConfig | None = None,
        store: SlotStore | None = None,
        generator: SlotGenerator | None = None,
    ):
        self.db = db
        self.config = config or get_booking_config()
        self.store = store or SlotStore(db)
        self.generator = generator or SlotGenerator(db, self.config, store=self.store)

    def _get_slot(self, slot_id: int) -> Slots:
        slot = self.store.get(slot_id)
        if not slot:
            raise NotFoundError("Slot not found")
        return slot

    def block_slot(self, slot_id: int, note: str | None = None) -> Slots:
        slot = self._get_slot(slot_id)
        if not self.store.block(slot_id, note):
            self.db.rollback()
            logger.warning(f"Block rejected for slot {slot_id}: status={slot.status}")
            raise ConflictError("Slot cannot be blocked because it is not available")
        self.db.commit()
        logger.info(f"Slot {slot_id} blocked ({note or 'no note'})")
        return self._get_slot(slot_id)

    def unblock_slot(self, slot_id: int) -> Slots:
        self._get_slot(slot_id)
        if not self.store.unblock(slot_id):
            self.db.rollback()
            raise ConflictError("Slot is not blocked")
        self.db.commit()
        logger.info(f"Slot {slot_id} unblocked")
        return self._get_slot(slot_id)

    def set_holiday(self, target_date: date, note: str | None = None) -> int:
        self.generator.generate_for_date(target_date)
        count = self.store.set_holiday(target_date, note)
        self.db.commit()
        logger.info(f"Holiday set for {target_date.isoformat()}: {count} slot(s)")
        return count

    def cancel_holiday(self, target_date: date) -> int:
        count = self.store.cancel_holiday(target_date)
        self.db.commit()
        logger.info(f"Holiday cancelled for {target_date.isoformat()}: {count} slot(s)")
        return count

    def delete_available(self, target_date: date) -> int:
        count = self.store.delete_available_for_date(target_date)
        self.db.commit()
        logger.info(f"Deleted {count} available slot(s) for {target_date.isoformat()}")
        return count

    def generate_range(self, start_date: date, end_date: date) -> list[dict]:
        results = self.generator.generate_for_range(start_date, end_date)
        self.db.commit()
        return results
