# warehouses/admin.py

from django.contrib import admin

from warehouses.models import Executive, LogisticsPartner, Warehouse


@admin.register(Warehouse)
class WarehouseAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "kind", "city", "is_active")
    list_filter = ("kind", "is_active")
    search_fields = ("code", "name", "city")


@admin.register(LogisticsPartner)
class LogisticsPartnerAdmin(admin.ModelAdmin):
    list_display = ("name", "contact", "is_active")
    search_fields = ("name",)


@admin.register(Executive)
class ExecutiveAdmin(admin.ModelAdmin):
    list_display = ("name", "warehouse", "is_active")
    list_filter = ("warehouse", "is_active")
    search_fields = ("name",)
