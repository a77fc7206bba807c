from decimal import Decimal

from rest_framework import serializers

from apps.accounts.serializers import UserMinimalSerializer
from apps.documents.services.storage import signed_url
from .models import Expense, ExpenseDocument, ExpenseType, PaymentLog, PaymentStatus


# ==========================================
# PAYMENT SERIALIZERS
# ==========================================

class PaymentLogSerializer(serializers.ModelSerializer):
    created_by = UserMinimalSerializer(read_only=True)

    class Meta:
        model = PaymentLog
        fields = [
            'id',
            'client',
            'amount',
            'receiver',
            'notes',
            'timestamp',
            'created_by',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class PaymentCreateSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
    receiver = serializers.CharField(max_length=200)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    timestamp = serializers.DateTimeField(required=False)

    def validate_receiver(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Receiver is required")
        return value


class PaymentUpdateSerializer(PaymentCreateSerializer):
    amount = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal('0.01'), required=False
    )
    receiver = serializers.CharField(max_length=200, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


# ==========================================
# EXPENSE SERIALIZERS
# ==========================================

class ExpenseDocumentSerializer(serializers.ModelSerializer):
    url = serializers.SerializerMethodField()

    class Meta:
        model = ExpenseDocument
        fields = ['id', 'original_name', 'size', 'mime_type', 'url', 'uploaded_at']
        read_only_fields = fields

    def get_url(self, obj):
        return signed_url(obj.storage_key)


class ExpenseSerializer(serializers.ModelSerializer):
    """Expense with its receipts."""

    type_label = serializers.CharField(read_only=True)
    created_by = UserMinimalSerializer(read_only=True)
    documents = ExpenseDocumentSerializer(many=True, read_only=True)

    class Meta:
        model = Expense
        fields = [
            'id',
            'client',
            'expense_type',
            'custom_expense_type',
            'type_label',
            'amount',
            'description',
            'documents',
            'created_by',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class ExpenseCreateSerializer(serializers.Serializer):
    expense_type = serializers.ChoiceField(choices=ExpenseType.choices)
    custom_expense_type = serializers.CharField(
        max_length=100, required=False, allow_blank=True, default=''
    )
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
    description = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, attrs):
        if (attrs.get('expense_type') == ExpenseType.OTHER
                and not attrs.get('custom_expense_type', '').strip()):
            raise serializers.ValidationError({
                'custom_expense_type': "Required when expense type is 'other'"
            })
        return attrs


class ExpenseUpdateSerializer(serializers.Serializer):
    # The 'other' rule needs the stored row, so the service checks it
    expense_type = serializers.ChoiceField(choices=ExpenseType.choices, required=False)
    custom_expense_type = serializers.CharField(max_length=100, required=False, allow_blank=True)
    amount = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal('0.01'), required=False
    )
    description = serializers.CharField(required=False, allow_blank=True)


class ExpenseDocumentUploadSerializer(serializers.Serializer):
    files = serializers.ListField(child=serializers.FileField(), allow_empty=False)


class ExpenseTypeTotalSerializer(serializers.Serializer):
    total = serializers.DecimalField(max_digits=14, decimal_places=2)
    count = serializers.IntegerField()


class ExpenseSummarySerializer(serializers.Serializer):
    total = serializers.DecimalField(max_digits=14, decimal_places=2)
    count = serializers.IntegerField()
    by_type = serializers.DictField(child=ExpenseTypeTotalSerializer())


# ==========================================
# OVERVIEW SERIALIZERS
# ==========================================

class DateRangeQuerySerializer(serializers.Serializer):
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)

    def validate(self, attrs):
        start, end = attrs.get('start_date'), attrs.get('end_date')
        if start and end and end < start:
            raise serializers.ValidationError({
                'end_date': "End date must not be before start date"
            })
        return attrs


class ClientFinancialsSerializer(serializers.Serializer):
    """Financial figures of one client."""

    client_id = serializers.UUIDField()
    client_name = serializers.CharField()
    mobile = serializers.CharField()
    status = serializers.CharField()
    price_finalized = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_payments_received = serializers.DecimalField(max_digits=14, decimal_places=2)
    outstanding_balance = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_expenses = serializers.DecimalField(max_digits=14, decimal_places=2)
    net_profit_loss = serializers.DecimalField(max_digits=14, decimal_places=2)
    last_payment_date = serializers.DateTimeField(allow_null=True)
    payment_status = serializers.ChoiceField(choices=PaymentStatus.choices)
    payment_count = serializers.IntegerField()
    expense_count = serializers.IntegerField()
    payments_in_range = serializers.DecimalField(max_digits=14, decimal_places=2, allow_null=True)
    expenses_in_range = serializers.DecimalField(max_digits=14, decimal_places=2, allow_null=True)
    net_cash_flow_in_range = serializers.DecimalField(
        max_digits=14, decimal_places=2, allow_null=True
    )


class OverviewSummarySerializer(serializers.Serializer):
    total_clients = serializers.IntegerField()
    total_price_finalized = serializers.DecimalField(max_digits=16, decimal_places=2)
    total_payments_received = serializers.DecimalField(max_digits=16, decimal_places=2)
    total_outstanding = serializers.DecimalField(max_digits=16, decimal_places=2)
    total_expenses = serializers.DecimalField(max_digits=16, decimal_places=2)
    total_net_profit_loss = serializers.DecimalField(max_digits=16, decimal_places=2)
    fully_paid_clients = serializers.IntegerField()
    partially_paid_clients = serializers.IntegerField()
    overdue_clients = serializers.IntegerField()
    unpaid_clients = serializers.IntegerField()
    clients_with_payments = serializers.IntegerField()
    clients_with_expenses = serializers.IntegerField()


class DateRangeTotalsSerializer(serializers.Serializer):
    start_date = serializers.DateField(allow_null=True)
    end_date = serializers.DateField(allow_null=True)
    payments_in_range = serializers.IntegerField()
    payments_in_range_total = serializers.DecimalField(max_digits=16, decimal_places=2)
    expenses_in_range = serializers.IntegerField()
    expenses_in_range_total = serializers.DecimalField(max_digits=16, decimal_places=2)
    net_cash_flow_in_range = serializers.DecimalField(max_digits=16, decimal_places=2)
    clients_with_payments_in_range = serializers.IntegerField()
    clients_with_expenses_in_range = serializers.IntegerField()


class FinancialOverviewSerializer(serializers.Serializer):
    clients = ClientFinancialsSerializer(many=True)
    summary = OverviewSummarySerializer()
    date_range = DateRangeTotalsSerializer(allow_null=True)
