from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from donorlink.errors import PreconditionFailed
from schedules.lifecycle import Operation, allowed_operations, apply_transition, ensure_allowed
from schedules.models import ScheduleStatus

NOW = datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc)
LATER = datetime(2025, 6, 2, 9, 0, tzinfo=timezone.utc)


def schedule(status):
    return SimpleNamespace(status=status, confirmed_at=None, cancelled_at=None, cancellation_reason='')


@pytest.mark.parametrize('status, operation', [
    (ScheduleStatus.CANCELLED, Operation.CONFIRM),
    (ScheduleStatus.COMPLETED, Operation.CANCEL),
    (ScheduleStatus.SCHEDULED, Operation.COMPLETE),
    (ScheduleStatus.SCHEDULED, Operation.MARK_NO_SHOW),
    (ScheduleStatus.CONFIRMED, Operation.CONFIRM),
    (ScheduleStatus.NO_SHOW, Operation.CANCEL),
])
def test_disallowed_operations_fail(status, operation):
    with pytest.raises(PreconditionFailed):
        ensure_allowed(status, operation)


@pytest.mark.parametrize('status', [ScheduleStatus.CANCELLED, ScheduleStatus.COMPLETED, ScheduleStatus.NO_SHOW])
def test_terminal_states_allow_nothing(status):
    assert allowed_operations(status) == []
    with pytest.raises(PreconditionFailed) as excinfo:
        ensure_allowed(status, Operation.EDIT)
    assert 'can no longer be changed' in excinfo.value.detail


def test_allowed_operations_per_state():
    assert allowed_operations(ScheduleStatus.SCHEDULED) == [Operation.CONFIRM, Operation.CANCEL, Operation.EDIT]
    assert allowed_operations(ScheduleStatus.CONFIRMED) == [
        Operation.CANCEL, Operation.COMPLETE, Operation.MARK_NO_SHOW, Operation.EDIT,
    ]
    assert allowed_operations(None) == [Operation.CREATE]


def test_plain_strings_are_accepted():
    assert ensure_allowed('SCHEDULED', 'confirm') == ScheduleStatus.CONFIRMED


def test_confirm_then_complete():
    s = schedule(ScheduleStatus.SCHEDULED)
    apply_transition(s, Operation.CONFIRM, now=NOW)
    assert s.status == ScheduleStatus.CONFIRMED
    assert s.confirmed_at == NOW

    apply_transition(s, Operation.COMPLETE, now=LATER)
    assert s.status == ScheduleStatus.COMPLETED
    assert s.confirmed_at == NOW
    assert s.cancelled_at is None


def test_cancel_stamps_once_with_reason():
    s = schedule(ScheduleStatus.CONFIRMED)
    apply_transition(s, Operation.CANCEL, now=NOW, reason='Feeling unwell')
    assert s.status == ScheduleStatus.CANCELLED
    assert s.cancelled_at == NOW
    assert s.cancellation_reason == 'Feeling unwell'

    with pytest.raises(PreconditionFailed):
        apply_transition(s, Operation.CANCEL, now=LATER)
    assert s.cancelled_at == NOW


def test_edit_keeps_status():
    s = schedule(ScheduleStatus.CONFIRMED)
    apply_transition(s, Operation.EDIT, now=NOW)
    assert s.status == ScheduleStatus.CONFIRMED
    assert s.confirmed_at is None


def test_no_show_from_confirmed():
    s = schedule(ScheduleStatus.CONFIRMED)
    apply_transition(s, Operation.MARK_NO_SHOW)
    assert s.status == ScheduleStatus.NO_SHOW
