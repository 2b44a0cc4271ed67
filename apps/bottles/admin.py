# ==========================================
# apps/bottles/admin.py
# ==========================================

from django.contrib import admin
from apps.bottles.models import MasterBottle, UserBottle


@admin.register(MasterBottle)
class MasterBottleAdmin(admin.ModelAdmin):
    """Admin interface for the shared catalogue."""

    list_display = [
        'name',
        'distillery',
        'brand',
        'category',
        'age',
        'proof',
        'is_active',
        'created_at'
    ]
    list_filter = ['category', 'is_active', 'created_at']
    search_fields = ['name', 'brand', 'distillery', 'region', 'description']
    readonly_fields = [
        'name_normalized',
        'distillery_normalized',
        'created_at',
        'updated_at'
    ]


@admin.register(UserBottle)
class UserBottleAdmin(admin.ModelAdmin):
    """Admin interface for collection bottles."""

    list_display = [
        'master_bottle',
        'user',
        'status',
        'fill_level',
        'total_pours',
        'location_area',
        'last_label_printed_at',
        'created_at'
    ]
    list_filter = ['status', 'created_at']
    search_fields = ['master_bottle__name', 'user__email', 'barcode', 'vault_barcode']
    raw_id_fields = ['user', 'master_bottle']
    readonly_fields = [
        'total_pours',
        'average_rating',
        'last_pour_date',
        'created_at',
        'updated_at'
    ]
