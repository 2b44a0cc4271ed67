from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'pours'

router = DefaultRouter()
router.register(r'pours', views.PourViewSet, basename='pour')
router.register(r'pour-sessions', views.PourSessionViewSet, basename='pour-session')

urlpatterns = [
    # GET    /api/pours/                  - Pour history
    # POST   /api/pours/                  - Log a pour
    # GET    /api/pours/{id}/             - Get pour
    # PATCH  /api/pours/{id}/             - Edit pour
    # DELETE /api/pours/{id}/             - Delete pour

    # GET    /api/pour-sessions/          - Sessions + orphaned pour summary
    # GET    /api/pour-sessions/current/  - Open session
    # GET    /api/pour-sessions/{id}/     - Session with pours
    # PATCH  /api/pour-sessions/{id}/     - Edit session

    # Scheduled maintenance (Bearer CRON_SECRET)
    path('cron/pour-sessions/', views.cron_pour_sessions, name='cron-pour-sessions'),

    path('', include(router.urls)),
]
