from django.contrib import admin

from .models import Setting


@admin.register(Setting)
class SettingAdmin(admin.ModelAdmin):
    list_display = ("group", "key", "value", "value_type", "updated_at")
    list_filter = ("group", "value_type")
    search_fields = ("group", "key", "description")
