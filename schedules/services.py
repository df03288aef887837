# schedules/services.py
"""
Schedule operations

Every mutation runs in one transaction with the schedule row locked. The
slot pre-check (is_slot_free) gives a friendly error; the unique_active_slot
constraint is what actually keeps two active schedules out of one slot, so an
IntegrityError on save is reported as PreconditionFailed too.
"""
import logging
import math
from datetime import date, datetime, time, timedelta

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Count, Q
from django.utils import timezone
from django.utils.dateparse import parse_date

from bloodbanks.models import BloodBank
from donorlink.errors import InvalidRequest, NotFound, PreconditionFailed
from donors.models import Donation, DonorProfile
from . import reminders
from .availability import is_slot_free
from .lifecycle import Operation, apply_transition, ensure_allowed
from .models import (
    ACTIVE_STATUSES, ContactMethod, DonationSchedule, DonationType, Purpose,
    RecurringPattern, ReminderStatus, ScheduleStatus, TimeSlot,
)

logger = logging.getLogger(__name__)

CREATE_OPTIONS = frozenset({
    'donation_type', 'purpose', 'contact_method', 'send_reminders',
    'special_instructions', 'notes', 'estimated_duration',
    'is_recurring', 'recurring_pattern', 'parent_schedule_id',
})

EDITABLE_FIELDS = frozenset({
    'scheduled_date', 'time_slot', 'donation_type', 'purpose', 'contact_method',
    'send_reminders', 'special_instructions', 'notes', 'estimated_duration',
})

CHOICE_FIELDS = {
    'time_slot': TimeSlot,
    'donation_type': DonationType,
    'purpose': Purpose,
    'contact_method': ContactMethod,
    'recurring_pattern': RecurringPattern,
}


def to_date(value, field='date'):
    """Accept a date or an ISO ``YYYY-MM-DD`` string (a datetime string keeps its date part)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = parse_date(str(value)[:10]) if value else None
    if parsed is None:
        raise InvalidRequest(f'Invalid {field}', detail=f"Expected YYYY-MM-DD, got {value!r}")
    return parsed


def to_id(value, field='id'):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidRequest(f'Invalid {field}', detail=f"{value!r} is not an id")


def _check_choices(values):
    for field, choices in CHOICE_FIELDS.items():
        value = values.get(field)
        if value and value not in choices.values:
            raise InvalidRequest(f'Invalid {field.replace("_", " ")}', detail=f"{value!r} is not one of {choices.values}")


def _check_not_past(scheduled_date, today=None):
    today = today or timezone.localdate()
    if scheduled_date < today:
        raise InvalidRequest('Invalid scheduled date', detail="Scheduled date must not be in the past")


def _check_slot(blood_bank_id, scheduled_date, time_slot, exclude_schedule_id=None):
    if not is_slot_free(blood_bank_id, scheduled_date, time_slot, exclude_schedule_id=exclude_schedule_id):
        logger.warning("Slot %s on %s at blood bank #%s is taken", time_slot, scheduled_date, blood_bank_id)
        raise PreconditionFailed('Time slot unavailable', detail=f"{time_slot} on {scheduled_date} is already booked")


def _save_claiming_slot(schedule, **save_kwargs):
    """Save inside a savepoint so a lost slot race surfaces as PreconditionFailed."""
    try:
        with transaction.atomic():
            schedule.save(**save_kwargs)
    except IntegrityError:
        logger.warning(
            "Slot %s on %s at blood bank #%s was taken concurrently",
            schedule.time_slot, schedule.scheduled_date, schedule.blood_bank_id,
        )
        raise PreconditionFailed(
            'Time slot unavailable',
            detail=f"{schedule.time_slot} on {schedule.scheduled_date} was booked by someone else",
        )


def _lock(schedule_id):
    schedule = DonationSchedule.objects.select_for_update().filter(id=schedule_id).first()
    if schedule is None:
        raise NotFound('Schedule not found', detail=f"No donation schedule with id {schedule_id}")
    return schedule


def _guard(schedule, operation):
    try:
        ensure_allowed(schedule.status, operation)
    except PreconditionFailed:
        logger.warning("Rejected %s on schedule #%s (%s)", Operation(operation).value, schedule.id, schedule.status)
        raise


# ---------------------------
# Mutations
# ---------------------------

def create_schedule(donor_id, blood_bank_id, scheduled_date, time_slot, scheduled_by=None, today=None, **options):
    """Book a new SCHEDULED appointment in a free slot."""
    unknown = set(options) - CREATE_OPTIONS
    if unknown:
        raise InvalidRequest('Unknown fields', detail=', '.join(sorted(unknown)))

    scheduled_date = to_date(scheduled_date, 'scheduled date')
    if not time_slot:
        raise InvalidRequest('Invalid time slot', detail="Time slot selection is required")
    _check_choices({'time_slot': time_slot, **options})
    _check_not_past(scheduled_date, today)
    if options.get('is_recurring') and not options.get('recurring_pattern'):
        raise InvalidRequest('Invalid recurring pattern', detail="Recurring schedules need a pattern")

    with transaction.atomic():
        if not DonorProfile.objects.filter(id=donor_id).exists():
            raise NotFound('Donor not found', detail=f"No donor with id {donor_id}")
        if not BloodBank.objects.filter(id=blood_bank_id).exists():
            raise NotFound('Blood bank not found', detail=f"No blood bank with id {blood_bank_id}")
        parent_id = options.get('parent_schedule_id')
        if parent_id is not None and not DonationSchedule.objects.filter(id=parent_id).exists():
            raise NotFound('Schedule not found', detail=f"No parent schedule with id {parent_id}")

        _check_slot(blood_bank_id, scheduled_date, time_slot)

        schedule = DonationSchedule(
            donor_id=donor_id,
            blood_bank_id=blood_bank_id,
            scheduled_date=scheduled_date,
            time_slot=time_slot,
            scheduled_by=scheduled_by,
            status=None,
            **options,
        )
        apply_transition(schedule, Operation.CREATE)
        _save_claiming_slot(schedule)
        reminders.queue_reminder(schedule)

    logger.info(
        "Schedule #%s created: donor #%s at blood bank #%s on %s %s",
        schedule.id, donor_id, blood_bank_id, scheduled_date, time_slot,
    )
    return schedule


def update_schedule(schedule_id, changes, today=None):
    """
    Edit a SCHEDULED or CONFIRMED appointment. Moving it to another date or
    slot re-runs the slot check; touching date, slot or send_reminders resets
    the reminder and queues a new one.
    """
    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        raise InvalidRequest('Field cannot be edited', detail=', '.join(sorted(unknown)))

    changes = dict(changes)
    if 'scheduled_date' in changes:
        changes['scheduled_date'] = to_date(changes['scheduled_date'], 'scheduled date')
    if 'time_slot' in changes and not changes['time_slot']:
        raise InvalidRequest('Invalid time slot', detail="Time slot selection is required")
    _check_choices(changes)

    with transaction.atomic():
        schedule = _lock(schedule_id)
        _guard(schedule, Operation.EDIT)

        changed = {field for field, value in changes.items() if getattr(schedule, field) != value}
        if not changed:
            return schedule

        moved = changed & {'scheduled_date', 'time_slot'}
        if moved:
            new_date = changes.get('scheduled_date', schedule.scheduled_date)
            _check_not_past(new_date, today)
            _check_slot(
                schedule.blood_bank_id, new_date, changes.get('time_slot', schedule.time_slot),
                exclude_schedule_id=schedule.id,
            )

        for field in changed:
            setattr(schedule, field, changes[field])

        resend = bool(changed & reminders.REMINDER_TRIGGER_FIELDS)
        if resend:
            reminders.reset(schedule)

        _save_claiming_slot(schedule)
        if resend:
            reminders.queue_reminder(schedule)

    logger.info("Schedule #%s updated: %s", schedule.id, ', '.join(sorted(changed)))
    return schedule


def _transition(schedule_id, operation, **kwargs):
    with transaction.atomic():
        schedule = _lock(schedule_id)
        _guard(schedule, operation)
        apply_transition(schedule, operation, **kwargs)
        schedule.save()

    logger.info("Schedule #%s -> %s", schedule.id, schedule.status)
    return schedule


def confirm_schedule(schedule_id):
    return _transition(schedule_id, Operation.CONFIRM)


def cancel_schedule(schedule_id, reason=None):
    return _transition(schedule_id, Operation.CANCEL, reason=reason)


def mark_no_show(schedule_id):
    return _transition(schedule_id, Operation.MARK_NO_SHOW)


def complete_schedule(schedule_id, donation_id):
    """
    CONFIRMED -> COMPLETED, linking the donation that took place. The donation
    must belong to the schedule's donor; the donor's donation stats and
    eligibility are updated in the same transaction.
    """
    if donation_id in (None, ''):
        raise InvalidRequest('Donation ID is required for completion')

    with transaction.atomic():
        schedule = _lock(schedule_id)
        _guard(schedule, Operation.COMPLETE)

        donation = Donation.objects.filter(id=donation_id).first()
        if donation is None:
            raise NotFound('Donation not found', detail=f"No donation with id {donation_id}")
        if donation.donor_id != schedule.donor_id:
            raise PreconditionFailed('Donation belongs to another donor', detail=f"Donation {donation_id} was given by donor #{donation.donor_id}")
        if DonationSchedule.objects.filter(completed_donation=donation).exclude(id=schedule.id).exists():
            raise PreconditionFailed('Donation already linked', detail=f"Donation {donation_id} already completes another schedule")

        apply_transition(schedule, Operation.COMPLETE)
        schedule.completed_donation = donation
        schedule.save()

        donor = DonorProfile.objects.select_for_update().get(id=schedule.donor_id)
        donor.record_donation(donation.donated_at)
        donor.save(update_fields=['last_donation_date', 'donation_count', 'is_eligible', 'updated_at'])

    logger.info("Schedule #%s completed with donation #%s", schedule.id, donation.id)
    return schedule


# ---------------------------
# Queries
# ---------------------------

def _with_related(queryset):
    return queryset.select_related('donor', 'blood_bank', 'completed_donation', 'scheduled_by')


def get_schedule(schedule_id):
    schedule = _with_related(DonationSchedule.objects.filter(id=schedule_id)).first()
    if schedule is None:
        raise NotFound('Schedule not found', detail=f"No donation schedule with id {schedule_id}")
    return schedule


def list_schedules(status=None, donor_id=None, blood_bank_id=None, start_date=None,
                   end_date=None, time_slot=None, reminder_status=None):
    """Schedules matching every given filter, latest date first."""
    _check_choices({'time_slot': time_slot})
    queryset = _with_related(DonationSchedule.objects.all())

    if status:
        if status not in ScheduleStatus.values:
            raise InvalidRequest('Invalid status', detail=f"{status!r} is not one of {ScheduleStatus.values}")
        queryset = queryset.filter(status=status)
    if reminder_status:
        if reminder_status not in ReminderStatus.values:
            raise InvalidRequest('Invalid reminder status', detail=f"{reminder_status!r} is not one of {ReminderStatus.values}")
        queryset = queryset.filter(reminder_status=reminder_status)
    if donor_id:
        queryset = queryset.filter(donor_id=to_id(donor_id, 'donorId'))
    if blood_bank_id:
        queryset = queryset.filter(blood_bank_id=to_id(blood_bank_id, 'bloodBankId'))
    if start_date:
        queryset = queryset.filter(scheduled_date__gte=to_date(start_date, 'start date'))
    if end_date:
        queryset = queryset.filter(scheduled_date__lte=to_date(end_date, 'end date'))
    if time_slot:
        queryset = queryset.filter(time_slot=time_slot)

    return queryset.order_by('-scheduled_date', 'time_slot', 'id')


def schedule_stats(blood_bank_id=None, today=None):
    today = today or timezone.localdate()
    queryset = DonationSchedule.objects.all()
    if blood_bank_id:
        queryset = queryset.filter(blood_bank_id=to_id(blood_bank_id, 'bloodBankId'))

    counts = queryset.aggregate(
        total=Count('id'),
        scheduled=Count('id', filter=Q(status=ScheduleStatus.SCHEDULED)),
        confirmed=Count('id', filter=Q(status=ScheduleStatus.CONFIRMED)),
        cancelled=Count('id', filter=Q(status=ScheduleStatus.CANCELLED)),
        completed=Count('id', filter=Q(status=ScheduleStatus.COMPLETED)),
        no_show=Count('id', filter=Q(status=ScheduleStatus.NO_SHOW)),
        upcoming=Count('id', filter=Q(status__in=ACTIVE_STATUSES, scheduled_date__gte=today)),
    )
    return {
        'totalSchedules': counts['total'],
        'scheduledCount': counts['scheduled'],
        'confirmedCount': counts['confirmed'],
        'cancelledCount': counts['cancelled'],
        'completedCount': counts['completed'],
        'noShowCount': counts['no_show'],
        'upcomingSchedules': counts['upcoming'],
    }


def slot_start(schedule):
    """Aware datetime at which the schedule's slot opens, in the project time zone."""
    start = datetime.combine(schedule.scheduled_date, time(TimeSlot(schedule.time_slot).start_hour))
    return timezone.make_aware(start)


def upcoming_schedules(hours=None, now=None):
    """Active schedules whose slot opens within the next ``hours`` hours, soonest first."""
    if hours is None:
        hours = settings.UPCOMING_SCHEDULE_HOURS
    if not 0 < hours < math.inf:
        raise InvalidRequest('Invalid hours', detail="hours must be a positive number")

    now = now or timezone.now()
    until = now + timedelta(hours=hours)
    local_now, local_until = timezone.localtime(now), timezone.localtime(until)

    candidates = _with_related(DonationSchedule.objects.filter(
        status__in=ACTIVE_STATUSES,
        scheduled_date__gte=local_now.date(),
        scheduled_date__lte=local_until.date(),
    ))
    upcoming = [schedule for schedule in candidates if now <= slot_start(schedule) <= until]
    upcoming.sort(key=lambda schedule: (slot_start(schedule), schedule.id))
    return upcoming
