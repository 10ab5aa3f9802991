from django.contrib import admin
from .models import Partner, SupplierProduct


@admin.register(Partner)
class PartnerAdmin(admin.ModelAdmin):
    list_display = ("partner_type", "name", "document_number", "email", "phone", "is_active", "created_at")
    list_filter = ("partner_type", "is_active")
    search_fields = ("name", "document_number", "email")


@admin.register(SupplierProduct)
class SupplierProductAdmin(admin.ModelAdmin):
    list_display = ("supplier", "product", "purchase_price", "sale_price", "available_stock", "priority", "is_available", "is_active")
    list_filter = ("supplier", "is_available", "is_active")
    search_fields = ("supplier__name", "product__sku", "supplier_sku")
