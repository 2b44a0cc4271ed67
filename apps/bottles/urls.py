from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'bottles'

router = DefaultRouter()
router.register(r'master-bottles', views.MasterBottleViewSet, basename='master-bottle')
router.register(r'user-bottles', views.UserBottleViewSet, basename='user-bottle')

urlpatterns = [
    # Catalogue
    # GET    /api/master-bottles/               - Search catalogue
    # POST   /api/master-bottles/               - Add catalogue entry
    # GET    /api/master-bottles/{id}/          - Catalogue entry

    # Collection
    # GET    /api/user-bottles/                 - List collection
    # POST   /api/user-bottles/                 - Add bottle
    # GET    /api/user-bottles/{id}/            - Get bottle
    # PATCH  /api/user-bottles/{id}/            - Update bottle
    # DELETE /api/user-bottles/{id}/            - Remove bottle
    # POST   /api/user-bottles/{id}/open/       - Open bottle
    # PATCH  /api/user-bottles/{id}/fill-level/ - Adjust fill level
    # POST   /api/user-bottles/{id}/print-label/ - Mark label printed
    # GET    /api/user-bottles/{id}/label-qr/   - Label QR code (PNG)
    # DELETE /api/user-bottles/clear/           - Clear collection

    # Labels
    path('labels/bottles/', views.label_bottles, name='label-bottles'),
    path('labels/count/', views.label_count, name='label-count'),

    # Dashboard & storage locations
    path('dashboard/stats/', views.dashboard_stats, name='dashboard-stats'),
    path('locations/areas/', views.location_areas, name='location-areas'),
    path('locations/bins/', views.location_bins, name='location-bins'),

    path('', include(router.urls)),
]
