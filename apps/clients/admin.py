# ==========================================
# apps/clients/admin.py
# ==========================================

from django.contrib import admin
from django.utils.html import format_html
from .models import Client, ClientStatus, ClientStep, ClientSubStep, StepData, StepStatus


STATUS_COLORS = {
    ClientStatus.ACTIVE: '#4A7FB0',
    ClientStatus.COMPLETED: '#6B8E5E',
    ClientStatus.ON_HOLD: '#E0A800',
    ClientStatus.CANCELLED: '#B85C5C',
    StepStatus.PENDING: '#999999',
    StepStatus.IN_PROGRESS: '#4A7FB0',
}


def _badge(color, label):
    return format_html(
        '<span style="background: {}; color: white; padding: 3px 8px; '
        'border-radius: 10px; font-size: 11px;">{}</span>',
        color, label
    )


class ClientStepInline(admin.TabularInline):
    """Inline admin for workflow steps within a client."""
    model = ClientStep
    extra = 0
    fields = ['step_number', 'step_name', 'status', 'assigned_to', 'due_date', 'completed_at']
    readonly_fields = ['step_number', 'step_name', 'completed_at']
    ordering = ['step_number']

    def has_add_permission(self, request, obj=None):
        """Steps are created with the client."""
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    """
    Admin interface for Clients.

    Provides:
    - Client listing with status badge and current step
    - Inline workflow steps
    - Filtering by status, step and assignee
    """

    list_display = [
        'name',
        'mobile',
        'status_badge',
        'current_step',
        'assigned_to',
        'created_at',
    ]
    list_filter = ['status', 'current_step', 'assigned_to', 'created_at']
    search_fields = ['name', 'mobile', 'address']
    ordering = ['-created_at']
    date_hierarchy = 'created_at'
    readonly_fields = ['current_step', 'created_by', 'created_at', 'updated_at']
    inlines = [ClientStepInline]

    def status_badge(self, obj):
        """Display client status as colored badge."""
        return _badge(STATUS_COLORS.get(obj.status, '#ccc'), obj.get_status_display())
    status_badge.short_description = 'Status'
    status_badge.admin_order_field = 'status'


class ClientSubStepInline(admin.TabularInline):
    model = ClientSubStep
    fk_name = 'step'
    extra = 0
    fields = ['sort_order', 'name', 'status', 'assigned_to', 'due_date', 'completed_at']
    readonly_fields = ['completed_at']


@admin.register(ClientStep)
class ClientStepAdmin(admin.ModelAdmin):
    """Admin interface for client steps."""

    list_display = [
        'client',
        'step_number',
        'step_name',
        'status_badge',
        'assigned_to',
        'due_date',
        'is_overdue',
    ]
    list_filter = ['status', 'step_number']
    search_fields = ['client__name', 'step_name']
    readonly_fields = ['completed_at', 'created_at', 'updated_at']
    inlines = [ClientSubStepInline]

    def status_badge(self, obj):
        if obj.is_overdue:
            return _badge(STATUS_COLORS[ClientStatus.CANCELLED], 'Overdue')
        return _badge(STATUS_COLORS.get(obj.status, '#6B8E5E'), obj.get_status_display())
    status_badge.short_description = 'Status'

    @admin.display(boolean=True, description='Overdue')
    def is_overdue(self, obj):
        return obj.is_overdue


@admin.register(StepData)
class StepDataAdmin(admin.ModelAdmin):
    list_display = ['client', 'step_number', 'updated_by', 'updated_at']
    list_filter = ['step_number']
    search_fields = ['client__name']
    readonly_fields = ['created_by', 'updated_by', 'created_at', 'updated_at']
