"""
Donation schedule state machine

    SCHEDULED -> CONFIRMED -> COMPLETED
    SCHEDULED | CONFIRMED -> CANCELLED
    CONFIRMED -> NO_SHOW

CANCELLED, COMPLETED and NO_SHOW are terminal. Every guard lives in
TRANSITIONS so that a stale client cannot push a schedule through an
operation its current status does not allow.
"""
from enum import Enum

from django.utils import timezone

from donorlink.errors import PreconditionFailed
from .models import ScheduleStatus, TERMINAL_STATUSES


class Operation(str, Enum):
    CREATE = 'create'
    CONFIRM = 'confirm'
    CANCEL = 'cancel'
    COMPLETE = 'complete'
    MARK_NO_SHOW = 'mark-no-show'
    EDIT = 'edit'


# operation -> (statuses it may start from, resulting status; None keeps the current one)
TRANSITIONS = {
    Operation.CREATE: (frozenset({None}), ScheduleStatus.SCHEDULED),
    Operation.CONFIRM: (frozenset({ScheduleStatus.SCHEDULED}), ScheduleStatus.CONFIRMED),
    Operation.CANCEL: (frozenset({ScheduleStatus.SCHEDULED, ScheduleStatus.CONFIRMED}), ScheduleStatus.CANCELLED),
    Operation.COMPLETE: (frozenset({ScheduleStatus.CONFIRMED}), ScheduleStatus.COMPLETED),
    Operation.MARK_NO_SHOW: (frozenset({ScheduleStatus.CONFIRMED}), ScheduleStatus.NO_SHOW),
    Operation.EDIT: (frozenset({ScheduleStatus.SCHEDULED, ScheduleStatus.CONFIRMED}), None),
}

TERMINAL_STATES = frozenset(TERMINAL_STATUSES)


def is_allowed(status, operation) -> bool:
    allowed_from, _ = TRANSITIONS[Operation(operation)]
    return status in allowed_from


def allowed_operations(status):
    """Operations a schedule in ``status`` may go through, in declaration order."""
    return [operation for operation in Operation if is_allowed(status, operation)]


def ensure_allowed(status, operation):
    """Raise PreconditionFailed unless ``operation`` may start from ``status``."""
    operation = Operation(operation)
    if is_allowed(status, operation):
        return TRANSITIONS[operation][1]

    if status in TERMINAL_STATES:
        detail = f"Schedule is {status} and can no longer be changed"
    else:
        detail = f"Cannot {operation.value} a schedule that is {status}"
    raise PreconditionFailed(f"Cannot {operation.value} schedule", detail=detail)


def apply_transition(schedule, operation, now=None, reason=None):
    """
    Move ``schedule`` through ``operation`` in memory; the caller saves.

    confirmed_at and cancelled_at are stamped on entering CONFIRMED and
    CANCELLED and never touched afterwards.
    """
    target = ensure_allowed(schedule.status, operation)
    if target is None:
        return schedule

    now = now or timezone.now()
    schedule.status = target
    if target == ScheduleStatus.CONFIRMED and schedule.confirmed_at is None:
        schedule.confirmed_at = now
    elif target == ScheduleStatus.CANCELLED and schedule.cancelled_at is None:
        schedule.cancelled_at = now
        schedule.cancellation_reason = reason or ''
    return schedule
