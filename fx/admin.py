from django.contrib import admin

from .models import ExchangeRatePeriod


@admin.register(ExchangeRatePeriod)
class ExchangeRatePeriodAdmin(admin.ModelAdmin):
    list_display = ("currency", "start_date", "end_date", "rate_to_pen", "memo")
    list_filter = ("currency",)
