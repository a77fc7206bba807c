# ==========================================
# apps/finance/admin.py
# ==========================================

from django.contrib import admin
from .models import PaymentLog, Expense, ExpenseDocument


@admin.register(PaymentLog)
class PaymentLogAdmin(admin.ModelAdmin):
    list_display = ['client', 'amount', 'receiver', 'timestamp', 'created_by']
    list_filter = ['timestamp']
    search_fields = ['client__name', 'client__mobile', 'receiver', 'notes']
    date_hierarchy = 'timestamp'
    readonly_fields = ['created_by', 'created_at', 'updated_at']
    raw_id_fields = ['client']


class ExpenseDocumentInline(admin.TabularInline):
    model = ExpenseDocument
    extra = 0
    fields = ['original_name', 'size', 'mime_type', 'uploaded_by', 'uploaded_at']
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        """Receipts are uploaded through the API."""
        return False


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    """
    Admin interface for client expenses.

    Receipts are listed inline and can only be uploaded through the API.
    """

    list_display = ['client', 'get_type', 'amount', 'document_count', 'created_by', 'created_at']
    list_filter = ['expense_type', 'created_at']
    search_fields = ['client__name', 'custom_expense_type', 'description']
    date_hierarchy = 'created_at'
    readonly_fields = ['created_by', 'updated_at']
    raw_id_fields = ['client']
    inlines = [ExpenseDocumentInline]

    def get_type(self, obj):
        return obj.type_label
    get_type.short_description = 'Type'
    get_type.admin_order_field = 'expense_type'

    def document_count(self, obj):
        return obj.documents.count()
    document_count.short_description = 'Receipts'
