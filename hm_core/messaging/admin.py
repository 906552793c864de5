# hm_core/messaging/admin.py
from __future__ import annotations

from django.contrib import admin

from hm_core.messaging.models import MessageLog


@admin.register(MessageLog)
class MessageLogAdmin(admin.ModelAdmin):
    list_display = ("created_at", "channel", "to", "provider", "status", "invoice", "tenant_id")
    list_filter = ("tenant_id", "channel", "status", "provider")
    search_fields = ("to", "provider_id", "invoice__invoice_number")
    readonly_fields = ("body", "error", "provider_id")
    ordering = ("-created_at",)
