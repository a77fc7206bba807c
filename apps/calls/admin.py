# ==========================================
# apps/calls/admin.py
# ==========================================

from django.contrib import admin
from django.utils.html import format_html
from .models import (
    Call,
    CallOutcome,
    CallStatus,
    FollowUp,
    PhoneNumber,
    PhoneNumberStatus,
)


STATUS_COLORS = {
    PhoneNumberStatus.AVAILABLE: '#6B8E5E',
    PhoneNumberStatus.ASSIGNED: '#4A7FB0',
    PhoneNumberStatus.IN_USE: '#E0A800',
    PhoneNumberStatus.COMPLETED: '#999999',
}

OUTCOME_COLORS = {
    CallOutcome.INTERESTED: '#6B8E5E',
    CallOutcome.CALLBACK: '#4A7FB0',
    CallOutcome.NOT_INTERESTED: '#B85C5C',
    CallOutcome.WRONG_NUMBER: '#B85C5C',
    CallOutcome.NO_ANSWER: '#999999',
}


def _badge(color, label):
    return format_html(
        '<span style="background: {}; color: white; padding: 3px 8px; '
        'border-radius: 10px; font-size: 11px;">{}</span>',
        color, label
    )


@admin.register(PhoneNumber)
class PhoneNumberAdmin(admin.ModelAdmin):
    """
    Admin interface for the phone number pool.

    Numbers are added and assigned through the API; the admin is for
    lookups and contact detail fixes.
    """

    list_display = ['phone_number', 'name', 'area_code', 'status_badge', 'assigned_to', 'assigned_at']
    list_filter = ['status', 'area_code']
    search_fields = ['phone_number', 'name', 'address', 'assigned_to']
    readonly_fields = ['assigned_to', 'assigned_at', 'batch_id', 'created_at', 'updated_at']
    ordering = ['-created_at']

    def status_badge(self, obj):
        return _badge(STATUS_COLORS.get(obj.status, '#ccc'), obj.get_status_display())
    status_badge.short_description = 'Status'
    status_badge.admin_order_field = 'status'


class FollowUpInline(admin.TabularInline):
    model = FollowUp
    extra = 0
    fields = ['scheduled_date', 'status', 'priority', 'notes', 'completed_at']
    readonly_fields = ['completed_at']


@admin.register(Call)
class CallAdmin(admin.ModelAdmin):
    list_display = ['phone_number', 'user', 'status', 'outcome_badge', 'duration', 'created_at']
    list_filter = ['status', 'outcome', 'created_at']
    search_fields = ['phone_number', 'user__email', 'notes']
    date_hierarchy = 'created_at'
    readonly_fields = ['created_at', 'updated_at', 'completed_at']
    inlines = [FollowUpInline]

    def outcome_badge(self, obj):
        if not obj.outcome:
            if obj.status == CallStatus.COMPLETED:
                return '-'
            return _badge('#E0A800', obj.get_status_display())
        return _badge(OUTCOME_COLORS.get(obj.outcome, '#ccc'), obj.get_outcome_display())
    outcome_badge.short_description = 'Outcome'
    outcome_badge.admin_order_field = 'outcome'


@admin.register(FollowUp)
class FollowUpAdmin(admin.ModelAdmin):
    list_display = ['phone_number', 'user', 'scheduled_date', 'status', 'priority', 'is_overdue']
    list_filter = ['status', 'priority', 'reminder_sent']
    search_fields = ['phone_number', 'user__email', 'notes']
    date_hierarchy = 'scheduled_date'
    readonly_fields = ['created_at', 'updated_at', 'completed_at']
    raw_id_fields = ['call']

    @admin.display(boolean=True, description='Overdue')
    def is_overdue(self, obj):
        return obj.is_overdue
