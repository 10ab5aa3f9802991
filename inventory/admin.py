from django.contrib import admin
from .models import Inventory, PriceList, ProductPrice, Warehouse


@admin.register(Warehouse)
class WarehouseAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "is_active")
    search_fields = ("code", "name")


@admin.register(Inventory)
class InventoryAdmin(admin.ModelAdmin):
    list_display = ("product", "warehouse", "available_stock", "reserved_stock", "average_cost", "is_active", "last_movement_at")
    list_filter = ("warehouse", "is_active")
    search_fields = ("product__sku", "product__name")
    list_per_page = 50


class ProductPriceInline(admin.TabularInline):
    model = ProductPrice
    extra = 0


@admin.register(PriceList)
class PriceListAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "is_active")
    inlines = [ProductPriceInline]


@admin.register(ProductPrice)
class ProductPriceAdmin(admin.ModelAdmin):
    list_display = ("product", "price_list", "warehouse", "price", "min_price", "min_quantity", "is_active")
    list_filter = ("price_list", "warehouse", "is_active")
    search_fields = ("product__sku", "product__name")
