from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.html import format_html
from .models import User, UserRole

ROLE_COLORS = {
    UserRole.ADMIN: '#E0A800',
    UserRole.CALLER: '#4A7FB0',
}


def _badge(color, label):
    return format_html(
        '<span style="background: {}; color: white; padding: 3px 8px; '
        'border-radius: 10px; font-size: 11px;">{}</span>',
        color, label
    )


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Back-office staff: admins manage everything, callers work their clients and numbers."""

    list_display = ['email', 'full_name', 'role_badge', 'active_badge', 'created_at', 'last_login']
    list_filter = ['role', 'is_active', 'is_staff']
    search_fields = ['email', 'first_name', 'last_name']
    ordering = ['-created_at']

    # BaseUserAdmin expects a username field
    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        ('Name', {'fields': ('first_name', 'last_name')}),
        ('Access', {'fields': ('role', 'is_active', 'is_staff', 'is_superuser')}),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at', 'last_login'),
            'classes': ('collapse',),
        }),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'first_name', 'last_name', 'role', 'password1', 'password2'),
        }),
    )
    readonly_fields = ['created_at', 'updated_at', 'last_login']
    filter_horizontal = []

    actions = ['deactivate_users', 'make_callers', 'make_admins']

    @admin.display(description='Name')
    def full_name(self, obj):
        return obj.get_full_name()

    @admin.display(description='Role', ordering='role')
    def role_badge(self, obj):
        return _badge(ROLE_COLORS.get(obj.role, '#999999'), obj.get_role_display())

    @admin.display(description='Status', ordering='is_active')
    def active_badge(self, obj):
        if obj.is_active:
            return _badge('#6B8E5E', 'Active')
        return _badge('#B85C5C', 'Inactive')

    @admin.action(description='Deactivate selected users')
    def deactivate_users(self, request, queryset):
        """Superusers are never deactivated from here."""
        count = queryset.filter(is_superuser=False).update(is_active=False)
        self.message_user(request, f'Deactivated {count} user(s).')

    @admin.action(description='Set role to caller')
    def make_callers(self, request, queryset):
        count = queryset.filter(is_superuser=False).update(role=UserRole.CALLER)
        self.message_user(request, f'{count} user(s) are now callers.')

    @admin.action(description='Set role to admin')
    def make_admins(self, request, queryset):
        count = queryset.update(role=UserRole.ADMIN)
        self.message_user(request, f'{count} user(s) are now admins.')
