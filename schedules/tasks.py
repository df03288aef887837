# schedules/tasks.py
"""
Celery tasks for appointment reminders
"""
import logging
from smtplib import SMTPException

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail
from django.db import transaction

from .models import DonationSchedule
from .reminders import record_dispatch, should_dispatch

logger = logging.getLogger(__name__)


def _locked(schedule_id):
    return (
        DonationSchedule.objects.select_for_update()
        .select_related('donor', 'blood_bank')
        .filter(id=schedule_id)
        .first()
    )


@shared_task
def dispatch_schedule_reminder(schedule_id):
    """
    Send the appointment reminder for one schedule and record the outcome.
    The row lock is held only to read and to record; the mail goes out in
    between. A failed delivery marks the reminder FAILED and never touches
    the schedule status.
    """
    with transaction.atomic():
        schedule = _locked(schedule_id)
        if schedule is None:
            return f"Schedule {schedule_id} not found"
        if not should_dispatch(schedule):
            return f"Schedule {schedule_id}: nothing to send ({schedule.reminder_status})"

    delivered = send_reminder_email(schedule)

    with transaction.atomic():
        schedule = _locked(schedule_id)
        if schedule is None or not should_dispatch(schedule):
            logger.info("Schedule #%s changed while its reminder was sent, outcome not recorded", schedule_id)
            return f"Schedule {schedule_id}: changed during dispatch"
        record_dispatch(schedule, delivered)
        schedule.save(update_fields=['reminder_status', 'reminder_sent_at', 'updated_at'])

    if delivered:
        logger.info("Reminder sent for schedule #%s", schedule_id)
    else:
        logger.warning("Reminder failed for schedule #%s", schedule_id)
    return f"Schedule {schedule_id}: {schedule.reminder_status}"


def send_reminder_email(schedule):
    """Email the donor about the appointment. Returns True on delivery."""
    donor = schedule.donor
    email = donor.email or (donor.user.email if donor.user_id else '')
    if not email:
        logger.warning("Donor #%s has no email address, reminder for schedule #%s not sent", donor.id, schedule.id)
        return False

    blood_bank = schedule.blood_bank
    message = f"""
Hello {donor.first_name},

This is a reminder of your blood donation appointment.

Blood Bank: {blood_bank.name}
Address: {blood_bank.address or '-'}
Date: {schedule.scheduled_date:%A, %d %B %Y}
Time: {schedule.time_slot_label}
Donation Type: {schedule.donation_type}
{f"Instructions: {schedule.special_instructions}" if schedule.special_instructions else ''}
Manage your appointment: {settings.SITE_URL}/donation-schedules/{schedule.id}/

Thank you for saving lives!
DonorLink
    """.strip()

    try:
        send_mail(
            subject=f"Reminder: blood donation on {schedule.scheduled_date:%d %b} ({schedule.time_slot})",
            message=message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[email],
            fail_silently=False,
        )
    except (SMTPException, OSError) as e:
        logger.warning("Reminder email to %s failed: %s", email, e)
        return False
    return True
