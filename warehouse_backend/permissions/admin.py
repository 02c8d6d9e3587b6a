# permissions/admin.py

from django.contrib import admin

from permissions.models import Capability, Role


@admin.register(Capability)
class CapabilityAdmin(admin.ModelAdmin):
    list_display = ("code", "module", "description", "is_active")
    list_filter = ("module", "is_active")
    search_fields = ("code", "description")


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ("name", "display_name", "is_system", "is_active")
    list_filter = ("is_system", "is_active")
    search_fields = ("name", "display_name")
    filter_horizontal = ("capabilities",)

    def has_delete_permission(self, request, obj=None):
        if obj is not None and obj.is_system:
            return False
        return super().has_delete_permission(request, obj)
