"""
Reminder bookkeeping

reminder_status only ever moves NOT_SENT -> SENT or NOT_SENT -> FAILED. An
edit that touches one of REMINDER_TRIGGER_FIELDS resets it to NOT_SENT and a
new dispatch is queued once the surrounding transaction commits.
"""
import logging

from django.db import transaction
from django.utils import timezone
from kombu.exceptions import OperationalError

from .models import DonationSchedule, ReminderStatus

logger = logging.getLogger(__name__)

REMINDER_TRIGGER_FIELDS = frozenset({'scheduled_date', 'time_slot', 'send_reminders'})


def should_dispatch(schedule) -> bool:
    return (
        schedule.send_reminders
        and not schedule.is_terminal
        and schedule.reminder_status == ReminderStatus.NOT_SENT
    )


def reset(schedule):
    schedule.reminder_status = ReminderStatus.NOT_SENT
    schedule.reminder_sent_at = None


def record_dispatch(schedule, delivered, now=None) -> bool:
    """Stamp the outcome of a dispatch attempt. Returns False if one was already recorded."""
    if schedule.reminder_status != ReminderStatus.NOT_SENT:
        return False

    if delivered:
        schedule.reminder_status = ReminderStatus.SENT
        schedule.reminder_sent_at = now or timezone.now()
    else:
        schedule.reminder_status = ReminderStatus.FAILED
    return True


def queue_reminder(schedule):
    """Dispatch a reminder for ``schedule`` after commit if it wants one."""
    if not should_dispatch(schedule):
        return False

    schedule_id = schedule.id
    transaction.on_commit(lambda: send_to_broker(schedule_id))
    logger.info("Reminder queued for schedule #%s", schedule_id)
    return True


def send_to_broker(schedule_id):
    """
    Hand the dispatch to Celery. The schedule change is already committed, so
    an unreachable broker only marks the reminder FAILED.
    """
    from .tasks import dispatch_schedule_reminder

    try:
        dispatch_schedule_reminder.delay(schedule_id)
    except (OperationalError, OSError) as e:
        logger.warning("Could not queue reminder for schedule #%s: %s", schedule_id, e)
        DonationSchedule.objects.filter(
            id=schedule_id, reminder_status=ReminderStatus.NOT_SENT
        ).update(reminder_status=ReminderStatus.FAILED, updated_at=timezone.now())
        return False
    return True
