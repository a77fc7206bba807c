from django.conf import settings
from rest_framework import status
from rest_framework.decorators import api_view, parser_classes, permission_classes
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter

from apps.clients.exceptions import ClientNotFoundError, ClientAccessDeniedError
from apps.documents.serializers import DownloadUrlSerializer
from apps.documents.services import DocumentValidationError, ExternalStorageError
from apps.documents.views import ERROR_RESPONSES
from .exceptions import (
    ExpenseDocumentNotFoundError,
    ExpenseNotFoundError,
    FinanceAccessDeniedError,
    InvalidDateRangeError,
    InvalidExpenseError,
    PaymentNotFoundError,
)
from .serializers import (
    ClientFinancialsSerializer,
    DateRangeQuerySerializer,
    ExpenseCreateSerializer,
    ExpenseDocumentSerializer,
    ExpenseDocumentUploadSerializer,
    ExpenseSerializer,
    ExpenseSummarySerializer,
    ExpenseUpdateSerializer,
    FinancialOverviewSerializer,
    PaymentCreateSerializer,
    PaymentLogSerializer,
    PaymentUpdateSerializer,
)
from . import services

ERROR_STATUS = {
    InvalidExpenseError: status.HTTP_400_BAD_REQUEST,
    InvalidDateRangeError: status.HTTP_400_BAD_REQUEST,
    DocumentValidationError: status.HTTP_400_BAD_REQUEST,
    FinanceAccessDeniedError: status.HTTP_403_FORBIDDEN,
    ClientAccessDeniedError: status.HTTP_403_FORBIDDEN,
    ClientNotFoundError: status.HTTP_404_NOT_FOUND,
    PaymentNotFoundError: status.HTTP_404_NOT_FOUND,
    ExpenseNotFoundError: status.HTTP_404_NOT_FOUND,
    ExpenseDocumentNotFoundError: status.HTTP_404_NOT_FOUND,
    ExternalStorageError: status.HTTP_502_BAD_GATEWAY,
}
HANDLED_ERRORS = tuple(ERROR_STATUS)


def _error_response(exc):
    return Response({'error': str(exc)}, status=ERROR_STATUS[type(exc)])


# ==========================================
# PAYMENTS
# ==========================================

@extend_schema(
    methods=['GET'],
    responses={200: PaymentLogSerializer(many=True), **ERROR_RESPONSES},
    description="List a client's payments, newest first. Admin only.",
    tags=['payments'],
)
@extend_schema(
    methods=['POST'],
    request=PaymentCreateSerializer,
    responses={201: PaymentLogSerializer, **ERROR_RESPONSES},
    description="Record a payment received from a client. Admin only.",
    tags=['payments'],
)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def payment_list(request, client_id):
    """List or record payments of a client."""
    if request.method == 'GET':
        try:
            payments = services.list_payments(client_id=client_id, user=request.user)
        except HANDLED_ERRORS as e:
            return _error_response(e)
        return Response(PaymentLogSerializer(payments, many=True).data)

    serializer = PaymentCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        payment = services.add_payment(
            client_id=client_id,
            user=request.user,
            **serializer.validated_data
        )
    except HANDLED_ERRORS as e:
        return _error_response(e)

    return Response(PaymentLogSerializer(payment).data, status=status.HTTP_201_CREATED)


@extend_schema(
    methods=['PATCH'],
    request=PaymentUpdateSerializer,
    responses={200: PaymentLogSerializer, **ERROR_RESPONSES},
    description="Update a payment. Admin only.",
    tags=['payments'],
)
@extend_schema(
    methods=['DELETE'],
    responses={204: None, **ERROR_RESPONSES},
    description="Delete a payment. Admin only.",
    tags=['payments'],
)
@api_view(['PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def payment_detail(request, payment_id):
    """Update or delete a payment."""
    try:
        if request.method == 'DELETE':
            services.delete_payment(payment_id=payment_id, user=request.user)
            return Response(status=status.HTTP_204_NO_CONTENT)

        serializer = PaymentUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        payment = services.update_payment(
            payment_id=payment_id,
            user=request.user,
            **serializer.validated_data
        )
    except HANDLED_ERRORS as e:
        return _error_response(e)

    return Response(PaymentLogSerializer(payment).data)


# ==========================================
# EXPENSES
# ==========================================

@extend_schema(
    methods=['GET'],
    parameters=[
        OpenApiParameter('expense_type', str, description='Only expenses of this type'),
    ],
    responses={200: ExpenseSerializer(many=True), **ERROR_RESPONSES},
    description="List a client's expenses with their receipts.",
    tags=['expenses'],
)
@extend_schema(
    methods=['POST'],
    request=ExpenseCreateSerializer,
    responses={201: ExpenseSerializer, **ERROR_RESPONSES},
    description="Record an expense. Type 'other' requires custom_expense_type.",
    tags=['expenses'],
)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def expense_list(request, client_id):
    """List or record expenses of a client."""
    try:
        if request.method == 'GET':
            expenses = services.list_expenses(
                client_id=client_id,
                user=request.user,
                expense_type=request.query_params.get('expense_type')
            )
            return Response(ExpenseSerializer(expenses, many=True).data)

        serializer = ExpenseCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        expense = services.add_expense(
            client_id=client_id,
            user=request.user,
            **serializer.validated_data
        )
        data = ExpenseSerializer(expense).data
    except HANDLED_ERRORS as e:
        return _error_response(e)

    return Response(data, status=status.HTTP_201_CREATED)


@extend_schema(
    responses={200: ExpenseSummarySerializer, **ERROR_RESPONSES},
    description="Total and per-type totals of a client's expenses.",
    tags=['expenses'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def expense_summary(request, client_id):
    """Get expense totals of a client."""
    try:
        summary = services.expense_summary(client_id=client_id, user=request.user)
    except HANDLED_ERRORS as e:
        return _error_response(e)

    return Response(ExpenseSummarySerializer(summary).data)


@extend_schema(
    methods=['GET'],
    responses={200: ExpenseSerializer, **ERROR_RESPONSES},
    tags=['expenses'],
)
@extend_schema(
    methods=['PATCH'],
    request=ExpenseUpdateSerializer,
    responses={200: ExpenseSerializer, **ERROR_RESPONSES},
    tags=['expenses'],
)
@extend_schema(
    methods=['DELETE'],
    responses={204: None, **ERROR_RESPONSES},
    description="Delete an expense and its receipts. Admin only.",
    tags=['expenses'],
)
@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def expense_detail(request, expense_id):
    """Get, update or delete an expense."""
    try:
        if request.method == 'GET':
            expense = services.get_expense(expense_id=expense_id, user=request.user)
        elif request.method == 'PATCH':
            serializer = ExpenseUpdateSerializer(data=request.data, partial=True)
            serializer.is_valid(raise_exception=True)
            expense = services.update_expense(
                expense_id=expense_id,
                user=request.user,
                **serializer.validated_data
            )
        else:
            services.delete_expense(expense_id=expense_id, user=request.user)
            return Response(status=status.HTTP_204_NO_CONTENT)

        data = ExpenseSerializer(expense).data
    except HANDLED_ERRORS as e:
        return _error_response(e)

    return Response(data)


@extend_schema(
    request={'multipart/form-data': ExpenseDocumentUploadSerializer},
    responses={201: ExpenseDocumentSerializer(many=True), **ERROR_RESPONSES},
    description="Attach receipts (multipart key `files`) to an expense.",
    tags=['expenses'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def expense_documents(request, expense_id):
    """Upload receipts to an expense."""
    serializer = ExpenseDocumentUploadSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        documents = services.upload_expense_documents(
            expense_id=expense_id,
            files=serializer.validated_data['files'],
            user=request.user
        )
        data = ExpenseDocumentSerializer(documents, many=True).data
    except HANDLED_ERRORS as e:
        return _error_response(e)

    return Response(data, status=status.HTTP_201_CREATED)


@extend_schema(
    responses={204: None, **ERROR_RESPONSES},
    tags=['expenses'],
)
@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def expense_document_detail(request, document_id):
    """Delete a receipt."""
    try:
        services.delete_expense_document(document_id=document_id, user=request.user)
    except HANDLED_ERRORS as e:
        return _error_response(e)

    return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(
    responses={200: DownloadUrlSerializer, **ERROR_RESPONSES},
    description="Get a signed, time-limited URL for a receipt.",
    tags=['expenses'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def expense_document_url(request, document_id):
    """Get a signed URL for a receipt."""
    try:
        url = services.get_expense_document_url(document_id=document_id, user=request.user)
    except HANDLED_ERRORS as e:
        return _error_response(e)

    return Response({'url': url, 'expires_in': settings.SOLARTRACK_SIGNED_URL_EXPIRY})


# ==========================================
# OVERVIEW
# ==========================================

DATE_RANGE_PARAMETERS = [
    OpenApiParameter('start_date', str, description='Inclusive range start (YYYY-MM-DD)'),
    OpenApiParameter('end_date', str, description='Inclusive range end (YYYY-MM-DD)'),
]


@extend_schema(
    parameters=DATE_RANGE_PARAMETERS,
    responses={200: ClientFinancialsSerializer, **ERROR_RESPONSES},
    description="Financial figures of one client. Admin only.",
    tags=['finance'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def client_overview(request, client_id):
    """Get the financial overview of a client."""
    query = DateRangeQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)

    try:
        overview = services.compute_overview(
            client_id=client_id,
            user=request.user,
            **query.validated_data
        )
    except HANDLED_ERRORS as e:
        return _error_response(e)

    return Response(ClientFinancialsSerializer(overview).data)


@extend_schema(
    parameters=DATE_RANGE_PARAMETERS,
    responses={200: FinancialOverviewSerializer, **ERROR_RESPONSES},
    description=(
        "Financial overview of all clients, sorted by outstanding balance. "
        "Range totals are included when start_date or end_date is given. Admin only."
    ),
    tags=['finance'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def financial_overview(request):
    """Get the financial overview across clients."""
    query = DateRangeQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)

    try:
        overview = services.financial_overview(user=request.user, **query.validated_data)
    except HANDLED_ERRORS as e:
        return _error_response(e)

    return Response(FinancialOverviewSerializer(overview).data)
