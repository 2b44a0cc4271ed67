from django.urls import path
from . import views

app_name = 'users'

urlpatterns = [
    # GET   /api/auth/user/ - Current user profile
    # PATCH /api/auth/user/ - Update profile & privacy
    path('user/', views.current_user, name='current-user'),
]
