from django.contrib import admin

from .models import Sale, SaleLine


class SaleLineInline(admin.TabularInline):
    model = SaleLine
    extra = 0
    readonly_fields = (
        "product",
        "quantity",
        "unit_price",
        "discount",
        "subtotal",
        "tax_amount",
        "total",
        "unit_cost_snapshot",
        "source_type",
    )
    can_delete = False


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    list_display = ("id", "sale_date", "customer", "seller", "quotation_code", "currency", "total", "payment_status")
    list_filter = ("payment_status", "currency", "sale_date")
    search_fields = ("customer__name", "quotation__code")
    ordering = ("-sale_date", "-id")
    inlines = [SaleLineInline]

    @admin.display(description="Quotation")
    def quotation_code(self, obj):
        quotation = getattr(obj, "quotation", None)
        return quotation.code if quotation else ""
