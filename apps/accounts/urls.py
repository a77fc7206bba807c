from django.urls import path
from . import views

app_name = 'users'

urlpatterns = [
    # Authentication
    path('register/', views.register, name='register'),
    path('login/', views.login, name='login'),

    # Current user
    path('user/', views.get_current_user, name='current-user'),

    # User management
    # GET    /api/auth/users/            - List users (admin)
    # GET    /api/auth/users/active/     - List active users (admin)
    # GET    /api/auth/users/{id}/       - Get user (admin or self)
    # PATCH  /api/auth/users/{id}/       - Update user (admin or self)
    path('users/', views.user_list, name='user-list'),
    path('users/active/', views.active_user_list, name='user-active-list'),
    path('users/<uuid:pk>/', views.user_detail, name='user-detail'),
]
