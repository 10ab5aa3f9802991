from django.contrib import admin
from .models import Coupon


@admin.register(Coupon)
class CouponAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "type",
        "value",
        "min_amount",
        "start_date",
        "end_date",
        "usage_count",
        "usage_limit",
        "is_active",
    )
    list_filter = ("type", "is_active")
    search_fields = ("code",)
    readonly_fields = ("usage_count",)
