# hm_core/ledger/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet, Sum

from hm_core.billing.money import ZERO
from hm_core.ledger.models import AccountingEntry


def entries_for_invoice(*, tenant_id: UUID, invoice_id: UUID) -> QuerySet[AccountingEntry]:
    return AccountingEntry.objects.filter(tenant_id=tenant_id, invoice_id=invoice_id).order_by("posted_at", "account")


def entries_for_payment(*, tenant_id: UUID, payment_id: UUID) -> QuerySet[AccountingEntry]:
    return AccountingEntry.objects.filter(tenant_id=tenant_id, payment_id=payment_id).order_by("posted_at", "account")


def trial_balance(*, tenant_id: UUID) -> dict[str, dict]:
    """
    Per-account debit/credit totals for the tenant. Total debits always equal
    total credits when every posting balanced.
    """
    rows = (
        AccountingEntry.objects.filter(tenant_id=tenant_id)
        .values("account")
        .annotate(debit=Sum("debit"), credit=Sum("credit"))
        .order_by("account")
    )
    return {
        r["account"]: {"debit": r["debit"] or ZERO, "credit": r["credit"] or ZERO}
        for r in rows
    }
