from django.urls import path
from . import views

app_name = 'documents'

urlpatterns = [
    # Category documents
    # GET    /api/documents/clients/{id}/                              - All documents, grouped
    # GET    /api/documents/clients/{id}/steps/{n}/                    - Category checklist
    # GET    /api/documents/clients/{id}/steps/{n}/{category}/         - List category files
    # POST   /api/documents/clients/{id}/steps/{n}/{category}/         - Upload (key: files)
    # DELETE /api/documents/{document_id}/                             - Delete document
    # GET    /api/documents/{document_id}/download/                    - Signed download URL
    path('clients/<uuid:client_id>/', views.client_documents, name='client-documents'),
    path(
        'clients/<uuid:client_id>/steps/<int:step_number>/',
        views.category_checklist,
        name='category-checklist'
    ),
    path(
        'clients/<uuid:client_id>/steps/<int:step_number>/<str:category>/',
        views.category_documents,
        name='category-documents'
    ),
    path('<uuid:document_id>/', views.document_detail, name='document-detail'),
    path('<uuid:document_id>/download/', views.document_download, name='document-download'),

    # GPS images
    # GET    /api/documents/clients/{id}/gps/               - List (?category=)
    # POST   /api/documents/clients/{id}/gps/{category}/    - Upload (key: file)
    # DELETE /api/documents/gps/{image_id}/                 - Delete image
    # GET    /api/documents/gps/{image_id}/url/             - Signed URL
    path('clients/<uuid:client_id>/gps/', views.gps_image_list, name='gps-image-list'),
    path(
        'clients/<uuid:client_id>/gps/<str:category>/',
        views.gps_image_upload,
        name='gps-image-upload'
    ),
    path('gps/<uuid:image_id>/', views.gps_image_detail, name='gps-image-detail'),
    path('gps/<uuid:image_id>/url/', views.gps_image_url, name='gps-image-url'),
]
