# damages/admin.py

from django.contrib import admin

from damages.models import DamageRecoveryLog


@admin.register(DamageRecoveryLog)
class DamageRecoveryLogAdmin(admin.ModelAdmin):
    list_display = ("created_at", "action_type", "barcode", "warehouse", "quantity", "dispatch", "reported_by")
    list_filter = ("action_type", "warehouse")
    search_fields = ("barcode", "product_name", "reason")
    readonly_fields = [f.name for f in DamageRecoveryLog._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
