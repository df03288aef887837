from django.contrib import admin, messages

from donorlink.results import capture
from . import services
from .models import DonationSchedule


@admin.register(DonationSchedule)
class DonationScheduleAdmin(admin.ModelAdmin):
    list_display  = ['donor', 'blood_bank', 'scheduled_date', 'time_slot', 'status', 'reminder_status']
    list_filter   = ['status', 'reminder_status', 'time_slot', 'blood_bank']
    search_fields = ['donor__first_name', 'donor__last_name', 'blood_bank__name']
    date_hierarchy = 'scheduled_date'
    raw_id_fields = ['donor', 'blood_bank', 'completed_donation', 'parent_schedule', 'scheduled_by']
    readonly_fields = [
        'status', 'reminder_status', 'reminder_sent_at', 'confirmed_at', 'cancelled_at',
        'completed_donation', 'created_at', 'updated_at',
    ]

    fieldsets = (
        ('Appointment', {
            'fields': ('donor', 'blood_bank', 'scheduled_date', 'time_slot', 'status')
        }),
        ('Details', {
            'fields': ('donation_type', 'purpose', 'contact_method', 'estimated_duration',
                       'special_instructions', 'notes', 'scheduled_by')
        }),
        ('Reminders', {
            'fields': ('send_reminders', 'reminder_status', 'reminder_sent_at')
        }),
        ('Recurrence', {
            'fields': ('is_recurring', 'recurring_pattern', 'parent_schedule'),
            'classes': ('collapse',),
        }),
        ('Status History', {
            'fields': ('confirmed_at', 'cancelled_at', 'cancellation_reason', 'completed_donation',
                       'created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    actions = ['confirm_selected', 'cancel_selected', 'mark_no_show_selected']

    def _run(self, request, queryset, operation, label):
        done = 0
        for schedule in queryset:
            result = capture(operation, schedule.id)
            if result.ok:
                done += 1
            else:
                self.message_user(request, f'#{schedule.id}: {result.error}', level=messages.WARNING)
        self.message_user(request, f'{label} {done} schedule(s).')

    @admin.action(description='Confirm selected schedules')
    def confirm_selected(self, request, queryset):
        self._run(request, queryset, services.confirm_schedule, 'Confirmed')

    @admin.action(description='Cancel selected schedules')
    def cancel_selected(self, request, queryset):
        self._run(request, queryset, services.cancel_schedule, 'Cancelled')

    @admin.action(description='Mark selected schedules as no-show')
    def mark_no_show_selected(self, request, queryset):
        self._run(request, queryset, services.mark_no_show, 'Marked as no-show')
