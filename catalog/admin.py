from django.contrib import admin

from .models import Category, Product


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "parent", "level", "min_margin_percentage", "normal_margin_percentage", "is_active")
    list_filter = ("level", "is_active")
    search_fields = ("name",)


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("sku", "name", "brand", "category", "distribution_price", "is_active")
    list_filter = ("is_active", "category")
    search_fields = ("sku", "name", "brand")
    ordering = ("sku",)
    list_per_page = 50
