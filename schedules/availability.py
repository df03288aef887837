"""
Slot availability - which of the ten one-hour windows at a blood bank are still free on a date
"""
from dataclasses import dataclass

from bloodbanks.models import BloodBank
from donorlink.errors import NotFound
from .models import ACTIVE_STATUSES, DonationSchedule, TimeSlot


@dataclass(frozen=True)
class SlotAvailability:
    slot: TimeSlot
    available: bool

    def to_json(self):
        return {
            'timeSlot': self.slot.value,
            'label': self.slot.label,
            'available': self.available,
        }


def _active_schedules(blood_bank_id, scheduled_date):
    return DonationSchedule.objects.filter(
        blood_bank_id=blood_bank_id,
        scheduled_date=scheduled_date,
        status__in=ACTIVE_STATUSES,
    )


def occupied_slots(blood_bank_id, scheduled_date):
    return set(_active_schedules(blood_bank_id, scheduled_date).values_list('time_slot', flat=True))


def is_slot_free(blood_bank_id, scheduled_date, time_slot, exclude_schedule_id=None):
    """
    Optimistic pre-check only. The unique_active_slot constraint decides
    when two writers race for the same slot.
    """
    queryset = _active_schedules(blood_bank_id, scheduled_date).filter(time_slot=time_slot)
    if exclude_schedule_id is not None:
        queryset = queryset.exclude(id=exclude_schedule_id)
    return not queryset.exists()


def available_slots(blood_bank_id, scheduled_date):
    """Every TimeSlot in order, each flagged free or taken."""
    if not BloodBank.objects.filter(id=blood_bank_id).exists():
        raise NotFound('Blood bank not found', detail=f"No blood bank with id {blood_bank_id}")

    taken = occupied_slots(blood_bank_id, scheduled_date)
    return [SlotAvailability(slot, slot.value not in taken) for slot in TimeSlot]
