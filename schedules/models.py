# schedules/models.py
from django.conf import settings
from django.db import models
from django.db.models import Q


class ScheduleStatus(models.TextChoices):
    SCHEDULED = 'SCHEDULED', 'Scheduled'
    CONFIRMED = 'CONFIRMED', 'Confirmed'
    CANCELLED = 'CANCELLED', 'Cancelled'
    COMPLETED = 'COMPLETED', 'Completed'
    NO_SHOW = 'NO_SHOW', 'No Show'


class ReminderStatus(models.TextChoices):
    NOT_SENT = 'NOT_SENT', 'Not Sent'
    SENT = 'SENT', 'Sent'
    FAILED = 'FAILED', 'Failed'


class TimeSlot(models.TextChoices):
    SLOT_08 = '08:00-09:00', '8:00 AM - 9:00 AM'
    SLOT_09 = '09:00-10:00', '9:00 AM - 10:00 AM'
    SLOT_10 = '10:00-11:00', '10:00 AM - 11:00 AM'
    SLOT_11 = '11:00-12:00', '11:00 AM - 12:00 PM'
    SLOT_12 = '12:00-13:00', '12:00 PM - 1:00 PM'
    SLOT_13 = '13:00-14:00', '1:00 PM - 2:00 PM'
    SLOT_14 = '14:00-15:00', '2:00 PM - 3:00 PM'
    SLOT_15 = '15:00-16:00', '3:00 PM - 4:00 PM'
    SLOT_16 = '16:00-17:00', '4:00 PM - 5:00 PM'
    SLOT_17 = '17:00-18:00', '5:00 PM - 6:00 PM'

    @property
    def start_hour(self):
        return int(self.value[:2])


class DonationType(models.TextChoices):
    WHOLE_BLOOD = 'Whole Blood', 'Whole Blood'
    PLASMA = 'Plasma', 'Plasma'
    PLATELETS = 'Platelets', 'Platelets'
    DOUBLE_RED_CELLS = 'Double Red Cells', 'Double Red Cells'
    POWER_RED = 'Power Red', 'Power Red'


class Purpose(models.TextChoices):
    REGULAR = 'Regular Donation', 'Regular Donation'
    EMERGENCY = 'Emergency Request', 'Emergency Request'
    BLOOD_DRIVE = 'Blood Drive', 'Blood Drive'
    REPLACEMENT = 'Replacement Donation', 'Replacement Donation'
    DIRECTED = 'Directed Donation', 'Directed Donation'


class ContactMethod(models.TextChoices):
    PHONE = 'Phone', 'Phone'
    EMAIL = 'Email', 'Email'
    SMS = 'SMS', 'SMS'
    MOBILE_APP = 'Mobile App', 'Mobile App'


class RecurringPattern(models.TextChoices):
    WEEKLY = 'weekly', 'Weekly'
    MONTHLY = 'monthly', 'Monthly'
    EVERY_2_MONTHS = 'every-2-months', 'Every 2 Months'
    EVERY_3_MONTHS = 'every-3-months', 'Every 3 Months'
    EVERY_6_MONTHS = 'every-6-months', 'Every 6 Months'
    YEARLY = 'yearly', 'Yearly'


# Statuses that hold on to their (blood bank, date, slot)
ACTIVE_STATUSES = (ScheduleStatus.SCHEDULED, ScheduleStatus.CONFIRMED)
TERMINAL_STATUSES = (ScheduleStatus.CANCELLED, ScheduleStatus.COMPLETED, ScheduleStatus.NO_SHOW)

DEFAULT_DURATION = 60


class DonationSchedule(models.Model):
    donor = models.ForeignKey(
        'donors.DonorProfile',
        on_delete=models.CASCADE,
        related_name='schedules'
    )
    blood_bank = models.ForeignKey(
        'bloodbanks.BloodBank',
        on_delete=models.CASCADE,
        related_name='schedules'
    )

    scheduled_date = models.DateField(db_index=True)
    time_slot = models.CharField(max_length=11, choices=TimeSlot.choices)
    status = models.CharField(max_length=10, choices=ScheduleStatus.choices, default=ScheduleStatus.SCHEDULED)

    donation_type = models.CharField(max_length=20, choices=DonationType.choices, default=DonationType.WHOLE_BLOOD)
    purpose = models.CharField(max_length=25, choices=Purpose.choices, default=Purpose.REGULAR)
    contact_method = models.CharField(max_length=10, choices=ContactMethod.choices, default=ContactMethod.EMAIL)

    # Reminder bookkeeping, independent of status
    send_reminders = models.BooleanField(default=True)
    reminder_status = models.CharField(max_length=8, choices=ReminderStatus.choices, default=ReminderStatus.NOT_SENT)
    reminder_sent_at = models.DateTimeField(null=True, blank=True)

    scheduled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='scheduled_donations'
    )

    confirmed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(blank=True)

    special_instructions = models.TextField(blank=True)
    notes = models.TextField(blank=True)

    completed_donation = models.ForeignKey(
        'donors.Donation',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='schedules'
    )

    estimated_duration = models.PositiveIntegerField(default=DEFAULT_DURATION, help_text="Minutes")
    is_recurring = models.BooleanField(default=False)
    recurring_pattern = models.CharField(max_length=15, choices=RecurringPattern.choices, blank=True)
    parent_schedule = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='occurrences'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def is_terminal(self):
        return self.status in TERMINAL_STATUSES

    @property
    def time_slot_label(self):
        return TimeSlot(self.time_slot).label if self.time_slot in TimeSlot.values else self.time_slot

    def __str__(self):
        return f"{self.donor} @ {self.blood_bank} | {self.scheduled_date} {self.time_slot} ({self.status})"

    class Meta:
        ordering = ['-scheduled_date', 'time_slot']
        verbose_name = 'Donation Schedule'
        verbose_name_plural = 'Donation Schedules'
        constraints = [
            models.UniqueConstraint(
                fields=['blood_bank', 'scheduled_date', 'time_slot'],
                condition=Q(status__in=['SCHEDULED', 'CONFIRMED']),
                name='unique_active_slot',
            ),
        ]
