from django.contrib import admin

from hm_core.catalog.models import Service


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "rate", "is_active", "tenant_id")
    list_filter = ("tenant_id", "is_active")
    search_fields = ("code", "name")
    ordering = ("code",)
