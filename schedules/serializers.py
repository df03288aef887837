# schedules/serializers.py
from rest_framework import serializers

from bloodbanks.serializers import BloodBankSummarySerializer
from donors.serializers import DonorSummarySerializer
from .lifecycle import allowed_operations
from .models import ContactMethod, DonationSchedule, DonationType, Purpose, RecurringPattern, TimeSlot


class DonationScheduleSerializer(serializers.ModelSerializer):
    donor = DonorSummarySerializer(read_only=True)
    bloodBank = BloodBankSummarySerializer(source='blood_bank', read_only=True)
    scheduledDate = serializers.DateField(source='scheduled_date')
    timeSlot = serializers.CharField(source='time_slot')
    timeSlotLabel = serializers.CharField(source='time_slot_label', read_only=True)
    donationType = serializers.CharField(source='donation_type')
    contactMethod = serializers.CharField(source='contact_method')
    sendReminders = serializers.BooleanField(source='send_reminders')
    reminderStatus = serializers.CharField(source='reminder_status')
    reminderSentAt = serializers.DateTimeField(source='reminder_sent_at')
    scheduledBy = serializers.SerializerMethodField()
    confirmedAt = serializers.DateTimeField(source='confirmed_at')
    cancelledAt = serializers.DateTimeField(source='cancelled_at')
    cancellationReason = serializers.CharField(source='cancellation_reason')
    specialInstructions = serializers.CharField(source='special_instructions')
    completedDonation = serializers.SerializerMethodField()
    estimatedDuration = serializers.IntegerField(source='estimated_duration')
    isRecurring = serializers.BooleanField(source='is_recurring')
    recurringPattern = serializers.CharField(source='recurring_pattern')
    parentSchedule = serializers.IntegerField(source='parent_schedule_id')
    allowedOperations = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source='created_at')
    updatedAt = serializers.DateTimeField(source='updated_at')

    class Meta:
        model = DonationSchedule
        fields = [
            'id', 'donor', 'bloodBank', 'scheduledDate', 'timeSlot', 'timeSlotLabel', 'status',
            'donationType', 'purpose', 'contactMethod', 'sendReminders', 'reminderStatus',
            'reminderSentAt', 'scheduledBy', 'confirmedAt', 'cancelledAt', 'cancellationReason',
            'specialInstructions', 'notes', 'completedDonation', 'estimatedDuration',
            'isRecurring', 'recurringPattern', 'parentSchedule', 'allowedOperations',
            'createdAt', 'updatedAt',
        ]

    def get_scheduledBy(self, obj):
        user = obj.scheduled_by
        if user is None:
            return None
        return {'id': user.id, 'email': user.email, 'name': user.get_full_name() or user.get_username()}

    def get_completedDonation(self, obj):
        donation = obj.completed_donation
        if donation is None:
            return None
        return {
            'id': donation.id,
            'bagNumber': donation.bag_number,
            'volumeCollected': donation.volume_collected,
            'donatedAt': donation.donated_at.isoformat(),
        }

    def get_allowedOperations(self, obj):
        return [operation.value for operation in allowed_operations(obj.status)]


class ScheduleUpdateSerializer(serializers.Serializer):
    """camelCase PATCH body -> keyword arguments for update_schedule()"""
    # Dates go through services.to_date, which also accepts full ISO timestamps
    scheduledDate = serializers.CharField(source='scheduled_date', required=False)
    timeSlot = serializers.ChoiceField(choices=TimeSlot.choices, source='time_slot', required=False)
    donationType = serializers.ChoiceField(choices=DonationType.choices, source='donation_type', required=False)
    purpose = serializers.ChoiceField(choices=Purpose.choices, required=False)
    contactMethod = serializers.ChoiceField(choices=ContactMethod.choices, source='contact_method', required=False)
    sendReminders = serializers.BooleanField(source='send_reminders', required=False)
    specialInstructions = serializers.CharField(source='special_instructions', required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    estimatedDuration = serializers.IntegerField(source='estimated_duration', required=False, min_value=5, max_value=480)

    def validate(self, attrs):
        if 'status' in self.initial_data:
            raise serializers.ValidationError(
                {'status': 'Status changes go through the confirm, cancel and complete endpoints.'}
            )
        return attrs


class ScheduleCreateSerializer(ScheduleUpdateSerializer):
    """camelCase POST body -> keyword arguments for create_schedule()"""
    donor = serializers.IntegerField(source='donor_id')
    bloodBank = serializers.IntegerField(source='blood_bank_id')
    scheduledDate = serializers.CharField(source='scheduled_date')
    timeSlot = serializers.ChoiceField(choices=TimeSlot.choices, source='time_slot')
    isRecurring = serializers.BooleanField(source='is_recurring', required=False)
    recurringPattern = serializers.ChoiceField(
        choices=RecurringPattern.choices, source='recurring_pattern', required=False, allow_blank=True
    )
    parentSchedule = serializers.IntegerField(source='parent_schedule_id', required=False, allow_null=True)


class CancelScheduleSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=500)


class CompleteScheduleSerializer(serializers.Serializer):
    donationId = serializers.IntegerField()
