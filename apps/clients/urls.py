from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'clients'

router = DefaultRouter()
router.register(r'clients', views.ClientViewSet, basename='client')

urlpatterns = [
    # Client ViewSet routes
    # GET    /api/clients/                  - List clients (filters, paginated)
    # POST   /api/clients/                  - Create client with its steps
    # GET    /api/clients/{id}/             - Get client
    # PATCH  /api/clients/{id}/             - Update client
    # DELETE /api/clients/{id}/             - Delete client (admin)
    # GET    /api/clients/{id}/steps/       - Client workflow steps
    # GET    /api/clients/stats/            - Dashboard statistics
    # GET    /api/clients/step-templates/   - Fixed step templates

    # Step form data
    path(
        'clients/<uuid:client_id>/step-data/<int:step_number>/',
        views.step_data_detail,
        name='step-data'
    ),

    # Steps and sub-steps
    path('client-steps/<uuid:step_id>/', views.step_detail, name='step-detail'),
    path('client-steps/<uuid:step_id>/sub-steps/', views.sub_step_list, name='sub-step-list'),
    path('client-sub-steps/<uuid:sub_step_id>/', views.sub_step_detail, name='sub-step-detail'),

    path('', include(router.urls)),
]
