"""
Client side of slot booking

SlotAvailabilityResolver keeps the availability of one (blood bank, date)
pair. Only the most recently issued refresh may update it, so a slow
response to an older query can never overwrite a newer one. book() does an
optimistic pre-check against that state, but the server decides: a 409 on
create triggers a re-fetch and is then re-raised.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from donorlink.errors import DonorLinkError, PreconditionFailed

logger = logging.getLogger(__name__)


def _iso(value):
    return value.isoformat() if isinstance(value, date) else str(value)


@dataclass(frozen=True)
class AvailabilitySnapshot:
    blood_bank_id: int
    date: str
    slots: tuple

    def is_available(self, time_slot):
        return any(slot['timeSlot'] == time_slot and slot['available'] for slot in self.slots)

    @property
    def free_slots(self):
        return [slot['timeSlot'] for slot in self.slots if slot['available']]

    def matches(self, blood_bank_id, on_date):
        return self.blood_bank_id == blood_bank_id and self.date == _iso(on_date)


class SlotAvailabilityResolver:

    def __init__(self, client):
        self.client = client
        self.current: Optional[AvailabilitySnapshot] = None
        self._issued = 0

    def _is_latest(self, ticket):
        return ticket == self._issued

    async def refresh(self, blood_bank_id, on_date) -> Optional[AvailabilitySnapshot]:
        """
        Fetch availability and make it current. Returns None, without touching
        ``current``, when a newer refresh was issued in the meantime.
        """
        self._issued += 1
        ticket = self._issued
        try:
            slots = await asyncio.to_thread(self.client.slot_availability, blood_bank_id, _iso(on_date))
        except DonorLinkError:
            if not self._is_latest(ticket):
                logger.debug("Ignoring failure of superseded availability request #%s", ticket)
                return None
            raise

        if not self._is_latest(ticket):
            logger.debug("Discarding stale availability response #%s", ticket)
            return None

        self.current = AvailabilitySnapshot(blood_bank_id, _iso(on_date), tuple(slots))
        return self.current

    async def book(self, donor_id, blood_bank_id, on_date, time_slot, **details) -> dict:
        """
        Create a schedule in ``time_slot``. ``details`` are extra camelCase
        fields (donationType, purpose, notes, ...).
        """
        snapshot = self.current
        if snapshot is None or not snapshot.matches(blood_bank_id, on_date):
            snapshot = await self.refresh(blood_bank_id, on_date)

        if snapshot is not None and not snapshot.is_available(time_slot):
            raise PreconditionFailed('Time slot unavailable', detail=f"{time_slot} on {_iso(on_date)} is already booked")

        payload = {
            'donor': donor_id,
            'bloodBank': blood_bank_id,
            'scheduledDate': _iso(on_date),
            'timeSlot': time_slot,
            **details,
        }
        try:
            return await asyncio.to_thread(self.client.create_schedule, payload)
        except PreconditionFailed:
            logger.info("Slot %s on %s lost to another booking, refreshing", time_slot, _iso(on_date))
            try:
                await self.refresh(blood_bank_id, on_date)
            except DonorLinkError as exc:
                logger.warning("Could not refresh availability after conflict: %s", exc)
            raise
