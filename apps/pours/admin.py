# ==========================================
# apps/pours/admin.py
# ==========================================

from django.contrib import admin
from apps.pours.models import Pour, PourSession


class PourInline(admin.TabularInline):
    """Inline admin for the pours of a session."""
    model = Pour
    extra = 0
    fields = ['poured_at', 'user_bottle', 'amount', 'rating', 'location']
    readonly_fields = fields
    can_delete = False


@admin.register(PourSession)
class PourSessionAdmin(admin.ModelAdmin):
    list_display = [
        'name',
        'user',
        'started_at',
        'ended_at',
        'total_pours',
        'total_amount',
        'average_rating'
    ]
    list_filter = ['started_at', 'location']
    search_fields = ['name', 'user__email', 'notes']
    raw_id_fields = ['user']
    readonly_fields = ['total_pours', 'total_amount', 'total_cost', 'average_rating', 'created_at', 'updated_at']
    inlines = [PourInline]


@admin.register(Pour)
class PourAdmin(admin.ModelAdmin):
    list_display = ['user', 'user_bottle', 'poured_at', 'amount', 'rating', 'session']
    list_filter = ['location', 'poured_at']
    search_fields = ['user__email', 'user_bottle__master_bottle__name', 'notes']
    raw_id_fields = ['user', 'user_bottle', 'session']
    readonly_fields = ['cost_per_pour', 'created_at', 'updated_at']
