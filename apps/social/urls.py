from django.urls import path
from . import views

app_name = 'social'

urlpatterns = [
    # Friends
    path('friends/', views.friends, name='friend-list'),
    path('friends/pending/', views.pending_requests, name='friend-pending'),
    path('friends/request/', views.send_request, name='friend-request'),
    path('friends/search/', views.search, name='friend-search'),
    path('friends/stats/', views.companion_stats, name='friend-stats'),
    path('friends/<str:friendship_id>/accept/', views.accept_request, name='friend-accept'),
    path('friends/<str:friendship_id>/', views.remove_friend, name='friend-remove'),

    # Friends who own a catalogue bottle
    path('master-bottles/<str:master_bottle_id>/friends/', views.bottle_friends, name='bottle-friends'),

    # Activity feed
    path('feed/', views.feed, name='feed'),

    # Public profiles
    path('users/<str:username>/', views.public_profile, name='public-profile'),
    path('users/<str:username>/collection/', views.public_collection, name='public-collection'),

    # Cheers
    path('pours/<str:pour_id>/cheers/', views.cheer, name='pour-cheers'),
]
