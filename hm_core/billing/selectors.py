# hm_core/billing/selectors.py
from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from django.db.models import QuerySet, Sum

from hm_core.billing.models import Invoice, Payment
from hm_core.billing.money import ZERO
from hm_core.common.api.exceptions import InvoiceNotFound


def invoices_qs(*, tenant_id: UUID) -> QuerySet[Invoice]:
    return Invoice.objects.filter(tenant_id=tenant_id)


def invoices_filtered(
    *,
    tenant_id: UUID,
    patient_id: UUID | None = None,
    status: str | None = None,
) -> QuerySet[Invoice]:
    qs = invoices_qs(tenant_id=tenant_id).order_by("-created_at")

    if patient_id:
        qs = qs.filter(patient_id=patient_id)

    if status:
        qs = qs.filter(status=status)

    return qs


def get_invoice(*, tenant_id: UUID, invoice_id: UUID, for_update: bool = False) -> Invoice:
    qs = invoices_qs(tenant_id=tenant_id)
    if for_update:
        qs = qs.select_for_update()
    invoice = qs.filter(id=invoice_id).first()
    if invoice is None:
        raise InvoiceNotFound()
    return invoice


def payments_for_invoice(*, tenant_id: UUID, invoice_id: UUID) -> QuerySet[Payment]:
    return Payment.objects.filter(tenant_id=tenant_id, invoice_id=invoice_id).order_by("-received_at")


def paid_sum(*, tenant_id: UUID, invoice_id: UUID) -> Decimal:
    agg = Payment.objects.filter(tenant_id=tenant_id, invoice_id=invoice_id).aggregate(s=Sum("amount"))
    return agg["s"] or ZERO
