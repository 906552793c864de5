from django.contrib import admin

from hm_core.ledger.models import AccountingEntry


@admin.register(AccountingEntry)
class AccountingEntryAdmin(admin.ModelAdmin):
    list_display = ("account", "debit", "credit", "event_type", "invoice", "payment", "tenant_id", "posted_at")
    list_filter = ("tenant_id", "account", "event_type")
    ordering = ("-posted_at",)

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
