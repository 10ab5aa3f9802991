from django.contrib import admin

from .models import Quotation, QuotationDetail, QuotationStatusHistory


class QuotationDetailInline(admin.TabularInline):
    model = QuotationDetail
    extra = 0
    fields = (
        "product",
        "quantity",
        "unit_price",
        "discount",
        "subtotal",
        "total",
        "unit_cost",
        "margin_percentage",
        "source_type",
        "warehouse",
        "supplier_product",
        "in_stock",
    )
    readonly_fields = fields
    can_delete = False


class QuotationStatusHistoryInline(admin.TabularInline):
    # append-only: 관리자 화면에서도 읽기 전용
    model = QuotationStatusHistory
    extra = 0
    fields = ("status", "user", "notes", "created_at")
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Quotation)
class QuotationAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "quotation_date",
        "customer_name",
        "seller",
        "status",
        "currency",
        "total",
        "margin_percentage",
        "valid_until",
        "is_deleted",
    )
    list_filter = ("status", "currency", "is_deleted", "commission_paid")
    search_fields = ("code", "customer_name", "customer_document")
    ordering = ("-quotation_date", "-id")
    readonly_fields = (
        "code",
        "status",
        "subtotal",
        "coupon_discount",
        "tax",
        "total",
        "total_cost",
        "total_margin",
        "margin_percentage",
        "commission_amount",
        "converted_sale",
        "converted_at",
        "sent_at",
    )
    inlines = [QuotationDetailInline, QuotationStatusHistoryInline]
