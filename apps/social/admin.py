# ==========================================
# apps/social/admin.py
# ==========================================

from django.contrib import admin
from apps.social.models import Friendship, PourCheer


@admin.register(Friendship)
class FriendshipAdmin(admin.ModelAdmin):
    list_display = ['requester', 'recipient', 'status', 'created_at', 'accepted_at']
    list_filter = ['status', 'created_at']
    search_fields = ['requester__email', 'requester__username', 'recipient__email', 'recipient__username']
    raw_id_fields = ['requester', 'recipient']
    readonly_fields = ['pair_key', 'accepted_at', 'created_at', 'updated_at']


@admin.register(PourCheer)
class PourCheerAdmin(admin.ModelAdmin):
    list_display = ['user', 'pour', 'created_at']
    search_fields = ['user__email', 'user__username']
    raw_id_fields = ['user', 'pour']
    readonly_fields = ['created_at']
