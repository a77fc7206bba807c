from django.urls import path
from . import views

app_name = 'calls'

urlpatterns = [
    # Phone numbers
    # GET    /api/phone-numbers/                     - Paginated list (filters in query)
    # POST   /api/phone-numbers/                     - Add one number (admin only)
    # POST   /api/phone-numbers/bulk/                - Bulk import (admin only)
    # POST   /api/phone-numbers/assign/              - Assign to a caller (admin only)
    # GET    /api/phone-numbers/area-codes/          - Available counts per area code
    # DELETE /api/phone-numbers/area-codes/{code}/   - Delete an area code (?force=true)
    # GET    /api/phone-numbers/stats/               - Counts per status
    # GET    /api/phone-numbers/{number}/            - Number detail
    # PATCH  /api/phone-numbers/{number}/            - Update name/address
    # DELETE /api/phone-numbers/{number}/            - Delete number
    path('phone-numbers/', views.phone_number_list, name='phone-number-list'),
    path('phone-numbers/bulk/', views.phone_number_bulk, name='phone-number-bulk'),
    path('phone-numbers/assign/', views.phone_number_assign, name='phone-number-assign'),
    path('phone-numbers/area-codes/', views.area_code_list, name='area-code-list'),
    path(
        'phone-numbers/area-codes/<str:area_code>/',
        views.area_code_delete,
        name='area-code-delete'
    ),
    path('phone-numbers/stats/', views.phone_number_stats, name='phone-number-stats'),
    path('phone-numbers/<str:phone_number>/', views.phone_number_detail, name='phone-number-detail'),

    # Calls
    # GET    /api/calls/                - List calls
    # POST   /api/calls/                - Start a call to a given number
    # POST   /api/calls/quick-create/   - Start a call to the next uncalled number
    # GET    /api/calls/stats/          - Call statistics
    # GET    /api/calls/{id}/           - Call detail
    # PATCH  /api/calls/{id}/           - Update status/outcome
    # DELETE /api/calls/{id}/           - Delete (admin only)
    path('calls/', views.call_list, name='call-list'),
    path('calls/quick-create/', views.call_quick_create, name='call-quick-create'),
    path('calls/stats/', views.call_stats, name='call-stats'),
    path('calls/<uuid:call_id>/', views.call_detail, name='call-detail'),

    # Follow-ups
    path('follow-ups/', views.follow_up_list, name='follow-up-list'),
    path('follow-ups/<uuid:follow_up_id>/', views.follow_up_detail, name='follow-up-detail'),
]
