# ==========================================
# apps/documents/admin.py
# ==========================================

from django.contrib import admin
from django.utils.html import format_html
from .models import DocumentFile, GpsImage


@admin.register(DocumentFile)
class DocumentFileAdmin(admin.ModelAdmin):
    """
    Admin interface for uploaded documents.

    Records are read-only here; uploads and deletions go through the API so
    stored objects stay in sync.
    """

    list_display = [
        'original_name',
        'client',
        'step_number',
        'category',
        'size_kb',
        'uploaded_by',
        'uploaded_at',
    ]
    list_filter = ['step_number', 'category', 'mime_type']
    search_fields = ['original_name', 'client__name']
    date_hierarchy = 'uploaded_at'
    readonly_fields = [
        'client', 'step_number', 'category', 'original_name', 'storage_key',
        'size', 'mime_type', 'uploaded_by', 'uploaded_at',
    ]

    def size_kb(self, obj):
        return f"{obj.size / 1024:.1f} KB"
    size_kb.short_description = 'Size'
    size_kb.admin_order_field = 'size'

    def has_add_permission(self, request):
        return False


@admin.register(GpsImage)
class GpsImageAdmin(admin.ModelAdmin):
    list_display = [
        'original_name',
        'client',
        'category',
        'gps_badge',
        'latitude',
        'longitude',
        'uploaded_at',
    ]
    list_filter = ['category', 'has_valid_gps']
    search_fields = ['original_name', 'client__name', 'address']
    readonly_fields = ['storage_key', 'uploaded_by', 'uploaded_at']

    def gps_badge(self, obj):
        """Display GPS validity as colored badge."""
        bg, label = ('#6B8E5E', 'GPS') if obj.has_valid_gps else ('#B85C5C', 'No GPS')
        return format_html(
            '<span style="background: {}; color: white; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            bg, label
        )
    gps_badge.short_description = 'Location'
    gps_badge.admin_order_field = 'has_valid_gps'

    def has_add_permission(self, request):
        return False
