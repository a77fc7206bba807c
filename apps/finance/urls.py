from django.urls import path
from . import views

app_name = 'finance'

urlpatterns = [
    # Payments (admin only)
    # GET    /api/finance/clients/{id}/payments/     - List payments
    # POST   /api/finance/clients/{id}/payments/     - Record payment
    # PATCH  /api/finance/payments/{payment_id}/     - Update payment
    # DELETE /api/finance/payments/{payment_id}/     - Delete payment
    path('clients/<uuid:client_id>/payments/', views.payment_list, name='payment-list'),
    path('payments/<uuid:payment_id>/', views.payment_detail, name='payment-detail'),

    # Expenses
    # GET    /api/finance/clients/{id}/expenses/           - List (?expense_type=)
    # POST   /api/finance/clients/{id}/expenses/           - Record expense
    # GET    /api/finance/clients/{id}/expenses/summary/   - Totals by type
    # GET    /api/finance/expenses/{expense_id}/           - Expense detail
    # PATCH  /api/finance/expenses/{expense_id}/           - Update expense
    # DELETE /api/finance/expenses/{expense_id}/           - Delete (admin only)
    # POST   /api/finance/expenses/{expense_id}/documents/ - Upload receipts (key: files)
    path('clients/<uuid:client_id>/expenses/', views.expense_list, name='expense-list'),
    path(
        'clients/<uuid:client_id>/expenses/summary/',
        views.expense_summary,
        name='expense-summary'
    ),
    path('expenses/<uuid:expense_id>/', views.expense_detail, name='expense-detail'),
    path(
        'expenses/<uuid:expense_id>/documents/',
        views.expense_documents,
        name='expense-documents'
    ),
    path(
        'expense-documents/<uuid:document_id>/',
        views.expense_document_detail,
        name='expense-document-detail'
    ),
    path(
        'expense-documents/<uuid:document_id>/url/',
        views.expense_document_url,
        name='expense-document-url'
    ),

    # Overview (admin only)
    # GET /api/finance/clients/{id}/overview/   - One client (?start_date=&end_date=)
    # GET /api/finance/overview/                - All clients
    path('clients/<uuid:client_id>/overview/', views.client_overview, name='client-overview'),
    path('overview/', views.financial_overview, name='financial-overview'),
]
