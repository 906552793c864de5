# hm_core/billing/admin.py
from __future__ import annotations

from django.contrib import admin

from hm_core.billing.models import Invoice, InvoiceItem, Payment


class InvoiceItemInline(admin.TabularInline):
    model = InvoiceItem
    extra = 0
    can_delete = False
    readonly_fields = ("position", "service", "description", "quantity", "rate", "amount")


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = (
        "invoice_number",
        "status",
        "patient",
        "subtotal",
        "discount",
        "tax",
        "total",
        "tenant_id",
        "created_at",
    )
    list_filter = ("tenant_id", "status", "created_at")
    search_fields = ("invoice_number", "patient__first_name", "patient__last_name")
    readonly_fields = ("subtotal", "discount", "tax", "total", "status")
    inlines = [InvoiceItemInline]
    ordering = ("-created_at",)


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("invoice", "amount", "mode", "reference", "tenant_id", "received_at")
    list_filter = ("tenant_id", "mode")
    search_fields = ("reference", "invoice__invoice_number")
    ordering = ("-received_at",)
