from rest_framework import serializers

from apps.accounts.serializers import UserMinimalSerializer
from .models import (
    Call,
    CallOutcome,
    CallStatus,
    FollowUp,
    FollowUpStatus,
    PhoneNumber,
    PhoneNumberStatus,
)


# ==========================================
# PHONE NUMBER SERIALIZERS
# ==========================================

class PhoneNumberSerializer(serializers.ModelSerializer):
    class Meta:
        model = PhoneNumber
        fields = [
            'phone_number',
            'assigned_to',
            'status',
            'assigned_at',
            'batch_id',
            'name',
            'address',
            'area_code',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class PhoneNumberCreateSerializer(serializers.Serializer):
    phone_number = serializers.CharField(max_length=30)
    area_code = serializers.CharField(max_length=50)
    name = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    address = serializers.CharField(required=False, allow_blank=True, default='')


class PhoneNumberUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)


class PhoneNumberFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=PhoneNumberStatus.choices, required=False)
    assigned_to = serializers.CharField(required=False)
    area_code = serializers.CharField(required=False)
    name = serializers.CharField(required=False)
    address = serializers.CharField(required=False)
    batch_id = serializers.UUIDField(required=False)
    assigned_at_start = serializers.DateField(required=False)
    assigned_at_end = serializers.DateField(required=False)
    created_at_start = serializers.DateField(required=False)
    created_at_end = serializers.DateField(required=False)


class BulkEntrySerializer(serializers.Serializer):
    # Left lenient so bad entries are reported per item, not rejected wholesale
    phone_number = serializers.CharField(required=False, allow_blank=True, default='')
    area_code = serializers.CharField(required=False, allow_blank=True, default='')
    name = serializers.CharField(required=False, allow_blank=True, default='')
    address = serializers.CharField(required=False, allow_blank=True, default='')


class BulkImportSerializer(serializers.Serializer):
    phone_numbers = BulkEntrySerializer(many=True)


class InvalidEntrySerializer(serializers.Serializer):
    phone_number = serializers.CharField(allow_blank=True)
    error = serializers.CharField()


class BatchResultSerializer(serializers.Serializer):
    batch_number = serializers.IntegerField()
    batch_size = serializers.IntegerField()
    created = serializers.SerializerMethodField()
    duplicates = serializers.SerializerMethodField()
    invalid = serializers.SerializerMethodField()
    errors = serializers.IntegerField()
    processing_time_ms = serializers.IntegerField()

    def get_created(self, obj):
        return len(obj.created)

    def get_duplicates(self, obj):
        return len(obj.duplicates)

    def get_invalid(self, obj):
        return len(obj.invalid)


class BulkImportResultSerializer(serializers.Serializer):
    """Outcome of a bulk import, overall and per batch."""

    created = PhoneNumberSerializer(many=True)
    duplicates = serializers.ListField(child=serializers.CharField())
    invalid = InvalidEntrySerializer(many=True)
    summary = serializers.DictField(child=serializers.IntegerField())
    total = serializers.IntegerField()
    batch_size = serializers.IntegerField()
    total_batches = serializers.IntegerField()
    processing_time_ms = serializers.IntegerField()
    batch_results = BatchResultSerializer(many=True)


class AssignRequestSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    count = serializers.IntegerField(min_value=1, max_value=1000, default=10)
    area_code = serializers.CharField(required=False, allow_blank=True)


class AssignmentSerializer(serializers.Serializer):
    assigned_numbers = PhoneNumberSerializer(many=True)
    batch_id = serializers.UUIDField()
    requested_count = serializers.IntegerField()
    actual_count = serializers.IntegerField()
    message = serializers.CharField(allow_null=True)


class SkippedNumberSerializer(serializers.Serializer):
    phone_number = serializers.CharField()
    reason = serializers.CharField()


class FailedNumberSerializer(serializers.Serializer):
    phone_number = serializers.CharField()
    error = serializers.CharField()


class AreaCodeDeletionSerializer(serializers.Serializer):
    area_code = serializers.CharField()
    total_numbers = serializers.IntegerField()
    deleted_count = serializers.IntegerField()
    skipped_count = serializers.IntegerField()
    error_count = serializers.IntegerField()
    deleted = serializers.ListField(child=serializers.CharField())
    skipped = SkippedNumberSerializer(many=True)
    errors = FailedNumberSerializer(many=True)


class AreaCodeCountSerializer(serializers.Serializer):
    area_code = serializers.CharField()
    count = serializers.IntegerField()


class PhoneNumberStatsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    available = serializers.IntegerField()
    assigned = serializers.IntegerField()
    in_use = serializers.IntegerField()
    completed = serializers.IntegerField()


# ==========================================
# CALL SERIALIZERS
# ==========================================

class CallSerializer(serializers.ModelSerializer):
    user = UserMinimalSerializer(read_only=True)

    class Meta:
        model = Call
        fields = [
            'id',
            'user',
            'phone_number',
            'status',
            'outcome',
            'notes',
            'duration',
            'created_at',
            'updated_at',
            'completed_at',
        ]
        read_only_fields = fields


class CallCreateSerializer(serializers.Serializer):
    phone_number = serializers.CharField(max_length=10)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class QuickCallSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class CallUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=CallStatus.choices, required=False)
    # Blank or null clears the outcome
    outcome = serializers.ChoiceField(
        choices=CallOutcome.choices, required=False, allow_blank=True, allow_null=True
    )
    notes = serializers.CharField(required=False, allow_blank=True)
    duration = serializers.IntegerField(min_value=0, required=False, allow_null=True)


class CallFilterSerializer(serializers.Serializer):
    user_id = serializers.UUIDField(required=False)
    status = serializers.ChoiceField(choices=CallStatus.choices, required=False)
    outcome = serializers.ChoiceField(choices=CallOutcome.choices, required=False)
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)


class CallStatsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    completed = serializers.IntegerField()
    pending = serializers.IntegerField()
    in_progress = serializers.IntegerField()
    successful = serializers.IntegerField()
    callback_requests = serializers.IntegerField()
    no_answer = serializers.IntegerField()
    average_duration = serializers.FloatField()
    success_rate = serializers.FloatField()


# ==========================================
# FOLLOW-UP SERIALIZERS
# ==========================================

class FollowUpSerializer(serializers.ModelSerializer):
    user = UserMinimalSerializer(read_only=True)
    is_overdue = serializers.BooleanField(read_only=True)

    class Meta:
        model = FollowUp
        fields = [
            'id',
            'call',
            'user',
            'phone_number',
            'scheduled_date',
            'status',
            'notes',
            'priority',
            'reminder_sent',
            'is_overdue',
            'created_at',
            'updated_at',
            'completed_at',
        ]
        read_only_fields = fields


class FollowUpCreateSerializer(serializers.Serializer):
    call_id = serializers.UUIDField()
    scheduled_date = serializers.DateTimeField()
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    priority = serializers.IntegerField(min_value=1, max_value=5, default=2)


class FollowUpUpdateSerializer(serializers.Serializer):
    scheduled_date = serializers.DateTimeField(required=False)
    status = serializers.ChoiceField(choices=FollowUpStatus.choices, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    priority = serializers.IntegerField(min_value=1, max_value=5, required=False)
    reminder_sent = serializers.BooleanField(required=False)


class FollowUpFilterSerializer(serializers.Serializer):
    user_id = serializers.UUIDField(required=False)
    status = serializers.ChoiceField(choices=FollowUpStatus.choices, required=False)
    priority = serializers.IntegerField(min_value=1, max_value=5, required=False)
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    overdue = serializers.BooleanField(required=False, default=False)
