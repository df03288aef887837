from smtplib import SMTPException
from types import SimpleNamespace

import pytest
from kombu.exceptions import OperationalError

from donorlink.results import capture
from schedules import reminders, services, tasks
from schedules.models import ReminderStatus, ScheduleStatus

pytestmark = pytest.mark.django_db


@pytest.fixture
def queued(monkeypatch):
    """Record reminder dispatches instead of sending them to the broker."""
    ids = []
    monkeypatch.setattr(tasks, 'dispatch_schedule_reminder', SimpleNamespace(delay=ids.append))
    return ids


def test_create_queues_reminder_after_commit(donor, blood_bank, future_date, queued, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        schedule = services.create_schedule(donor.id, blood_bank.id, future_date, '08:00-09:00')

    assert len(callbacks) == 1
    assert queued == [schedule.id]


def test_no_reminder_when_disabled(donor, blood_bank, future_date, queued, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        services.create_schedule(donor.id, blood_bank.id, future_date, '08:00-09:00', send_reminders=False)
    assert queued == []


def test_rescheduling_resets_and_requeues(make_schedule, queued, django_capture_on_commit_callbacks):
    schedule = make_schedule(send_reminders=True, reminder_status=ReminderStatus.SENT)

    with django_capture_on_commit_callbacks(execute=True):
        services.update_schedule(schedule.id, {'notes': 'bring ID'})
    schedule.refresh_from_db()
    assert schedule.reminder_status == ReminderStatus.SENT
    assert queued == []

    with django_capture_on_commit_callbacks(execute=True):
        services.update_schedule(schedule.id, {'time_slot': '15:00-16:00'})
    schedule.refresh_from_db()
    assert schedule.reminder_status == ReminderStatus.NOT_SENT
    assert schedule.reminder_sent_at is None
    assert queued == [schedule.id]


def test_dispatch_sends_email_and_marks_sent(make_schedule, donor, mailoutbox):
    schedule = make_schedule(send_reminders=True)
    tasks.dispatch_schedule_reminder(schedule.id)

    schedule.refresh_from_db()
    assert schedule.reminder_status == ReminderStatus.SENT
    assert schedule.reminder_sent_at is not None
    assert schedule.status == ScheduleStatus.SCHEDULED
    assert len(mailoutbox) == 1
    assert mailoutbox[0].to == [donor.email]
    assert '10:00 AM - 11:00 AM' in mailoutbox[0].body

    # Already recorded: nothing more to send
    tasks.dispatch_schedule_reminder(schedule.id)
    assert len(mailoutbox) == 1


def test_dispatch_without_email_marks_failed(make_schedule, other_donor, mailoutbox):
    schedule = make_schedule(donor=other_donor, send_reminders=True)
    tasks.dispatch_schedule_reminder(schedule.id)

    schedule.refresh_from_db()
    assert schedule.reminder_status == ReminderStatus.FAILED
    assert schedule.reminder_sent_at is None
    assert mailoutbox == []


def test_smtp_failure_marks_failed(make_schedule, monkeypatch):
    def broken_send_mail(**kwargs):
        raise SMTPException('relay down')

    monkeypatch.setattr(tasks, 'send_mail', broken_send_mail)
    schedule = make_schedule(send_reminders=True)
    tasks.dispatch_schedule_reminder(schedule.id)

    schedule.refresh_from_db()
    assert schedule.reminder_status == ReminderStatus.FAILED
    assert schedule.status == ScheduleStatus.SCHEDULED


def test_dispatch_skips_cancelled_and_missing(make_schedule, mailoutbox):
    schedule = make_schedule(send_reminders=True, status=ScheduleStatus.CANCELLED)
    tasks.dispatch_schedule_reminder(schedule.id)
    schedule.refresh_from_db()
    assert schedule.reminder_status == ReminderStatus.NOT_SENT

    assert 'not found' in tasks.dispatch_schedule_reminder(424242)
    assert mailoutbox == []


def test_record_dispatch_only_from_not_sent():
    schedule = SimpleNamespace(reminder_status=ReminderStatus.NOT_SENT, reminder_sent_at=None)
    assert reminders.record_dispatch(schedule, delivered=False)
    assert schedule.reminder_status == ReminderStatus.FAILED

    assert not reminders.record_dispatch(schedule, delivered=True)
    assert schedule.reminder_status == ReminderStatus.FAILED

    reminders.reset(schedule)
    assert reminders.record_dispatch(schedule, delivered=True)
    assert schedule.reminder_status == ReminderStatus.SENT
    assert schedule.reminder_sent_at is not None


@pytest.mark.parametrize('failure', [OperationalError('connection refused'), ConnectionError('broker down')])
def test_unreachable_broker_keeps_the_edit(make_schedule, monkeypatch, django_capture_on_commit_callbacks, failure):
    def broker_down(schedule_id):
        raise failure

    monkeypatch.setattr(tasks, 'dispatch_schedule_reminder', SimpleNamespace(delay=broker_down))
    schedule = make_schedule(send_reminders=True)

    with django_capture_on_commit_callbacks(execute=True):
        result = capture(services.update_schedule, schedule.id, {'time_slot': '15:00-16:00'})

    assert result.ok
    schedule.refresh_from_db()
    assert schedule.time_slot == '15:00-16:00'
    assert schedule.status == ScheduleStatus.SCHEDULED
    assert schedule.reminder_status == ReminderStatus.FAILED


def test_unreachable_broker_keeps_a_new_booking(donor, blood_bank, future_date, monkeypatch, django_capture_on_commit_callbacks):
    def broker_down(schedule_id):
        raise OperationalError('connection refused')

    monkeypatch.setattr(tasks, 'dispatch_schedule_reminder', SimpleNamespace(delay=broker_down))
    with django_capture_on_commit_callbacks(execute=True):
        schedule = services.create_schedule(donor.id, blood_bank.id, future_date, '08:00-09:00')

    schedule.refresh_from_db()
    assert schedule.status == ScheduleStatus.SCHEDULED
    assert schedule.reminder_status == ReminderStatus.FAILED


def test_change_during_send_is_not_overwritten(make_schedule, monkeypatch):
    schedule = make_schedule(send_reminders=True)

    def cancel_then_send(**kwargs):
        services.cancel_schedule(schedule.id)
        return 1

    monkeypatch.setattr(tasks, 'send_mail', cancel_then_send)
    assert 'changed during dispatch' in tasks.dispatch_schedule_reminder(schedule.id)

    schedule.refresh_from_db()
    assert schedule.status == ScheduleStatus.CANCELLED
    assert schedule.reminder_status == ReminderStatus.NOT_SENT
