# orders/admin.py

from django.contrib import admin

from orders.models import Order


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("id", "created_at", "customer", "product_name", "quantity", "warehouse", "status", "is_active")
    list_filter = ("status", "is_active", "warehouse")
    search_fields = ("customer", "product_name", "awb", "order_ref")
