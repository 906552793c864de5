# hm_core/billing/services.py
from __future__ import annotations

import logging
import random
from decimal import Decimal
from uuid import UUID

from django.utils import timezone

from hm_core.billing import money
from hm_core.billing.models import (
    Invoice,
    InvoiceItem,
    InvoiceStatus,
    Payment,
    PaymentMode,
)
from hm_core.billing.selectors import get_invoice, paid_sum
from hm_core.catalog.selectors import services_by_id
from hm_core.common.api.exceptions import InvalidAmount, InvalidPayload
from hm_core.common.api.params import uuid_or_none
from hm_core.common.events import publish_on_commit
from hm_core.common.tenancy import TenantContext, tenant_scope
from hm_core.ledger.events import InvoiceIssued, PaymentReceived
from hm_core.ledger.services import LedgerPoster
from hm_core.patients.selectors import get_patient

logger = logging.getLogger(__name__)


def generate_invoice_number(now=None) -> str:
    """
    Date-stamped human reference, e.g. INV-2024-01-01-4821.
    Collisions are tolerated: the invoice UUID is the key.
    """
    now = now or timezone.now()
    return f"INV-{now:%Y-%m-%d}-{random.randint(1000, 9999)}"


def _parse_item(index: int, raw) -> dict:
    """
    DB-free validation of one requested line.
    Rate stays None when omitted so a referenced service can supply it.
    """
    prefix = f"items[{index}]"
    if not isinstance(raw, dict):
        raise InvalidPayload({prefix: "Each item must be an object."})

    service_id = uuid_or_none(raw.get("service_id"), f"{prefix}.service_id")
    description = (raw.get("description") or "").strip()
    if service_id is None and not description:
        raise InvalidPayload({prefix: "Provide service_id or description."})

    qty = money.to_quantity(raw.get("qty", raw.get("quantity")), f"{prefix}.qty")

    rate = raw.get("rate")
    rate = None if rate in (None, "") else money.to_money(rate, f"{prefix}.rate")

    return {"service_id": service_id, "description": description, "qty": qty, "rate": rate}


def derive_status(paid: Decimal, total: Decimal) -> str:
    if paid >= total:
        return InvoiceStatus.PAID
    if paid > 0:
        return InvoiceStatus.PARTIAL
    return InvoiceStatus.UNPAID


class InvoiceService:
    @staticmethod
    def create_invoice(
        *,
        ctx: TenantContext,
        patient_id: UUID,
        items: list[dict],
        discount=Decimal("0.00"),
        tax=Decimal("0.00"),
        notes: str = "",
    ) -> Invoice:
        """
        Builds and persists one invoice with its items and its ledger posting.

        Everything that can be checked without the database is checked first.
        Invoice, items and postings are written in a single unit of work:
        all rows exist afterwards or none do.
        """
        patient_id = uuid_or_none(patient_id, "patient_id")
        if patient_id is None:
            raise InvalidPayload({"patient_id": "This field is required."})
        if not items or not isinstance(items, (list, tuple)):
            raise InvalidPayload({"items": "At least one item is required."})

        lines = [_parse_item(i, raw) for i, raw in enumerate(items)]
        discount = money.to_money(discount, "discount", default=money.ZERO)
        tax = money.to_money(tax, "tax", default=money.ZERO)

        with tenant_scope(ctx):
            patient = get_patient(tenant_id=ctx.tenant_id, patient_id=patient_id)

            catalog = services_by_id(tenant_id=ctx.tenant_id, service_ids=[ln["service_id"] for ln in lines])
            for i, ln in enumerate(lines):
                service = None
                if ln["service_id"] is not None:
                    service = catalog.get(ln["service_id"])
                    if service is None:
                        raise InvalidPayload({f"items[{i}].service_id": "Unknown service."})
                ln["service"] = service
                ln["description"] = ln["description"] or service.name
                if ln["rate"] is None:
                    ln["rate"] = service.rate if service is not None else money.ZERO
                ln["amount"] = money.line_amount(ln["qty"], ln["rate"], f"items[{i}].amount")

            subtotal = money.subtotal(ln["amount"] for ln in lines)
            total = money.total(subtotal, discount, tax)

            invoice = Invoice.objects.create(
                tenant_id=ctx.tenant_id,
                patient=patient,
                invoice_number=generate_invoice_number(),
                status=derive_status(money.ZERO, total),
                subtotal=subtotal,
                discount=discount,
                tax=tax,
                total=total,
                notes=notes or "",
                created_by_user_id=ctx.actor_user_id,
            )

            InvoiceItem.objects.bulk_create(
                [
                    InvoiceItem(
                        tenant_id=ctx.tenant_id,
                        invoice=invoice,
                        position=i,
                        service=ln["service"],
                        description=ln["description"],
                        quantity=ln["qty"],
                        rate=ln["rate"],
                        amount=ln["amount"],
                    )
                    for i, ln in enumerate(lines)
                ]
            )

            LedgerPoster.post(
                ctx,
                InvoiceIssued(invoice_id=invoice.id, total=invoice.total, revenue=subtotal - discount),
            )

            publish_on_commit(
                "billing.invoice.created",
                {"tenant_id": str(ctx.tenant_id), "invoice_id": str(invoice.id), "actor_user_id": ctx.actor_user_id},
            )

        logger.info(
            "invoice created tenant=%s invoice=%s number=%s total=%s",
            ctx.tenant_id, invoice.id, invoice.invoice_number, invoice.total,
        )
        return invoice


class PaymentService:
    @staticmethod
    def _recompute_status(*, ctx: TenantContext, invoice: Invoice) -> str:
        """
        Status is a pure function of every payment recorded so far.
        Caller must hold the invoice row lock inside the same transaction.
        """
        new_status = derive_status(paid_sum(tenant_id=ctx.tenant_id, invoice_id=invoice.id), invoice.total)
        if new_status != invoice.status:
            invoice.status = new_status
            invoice.save(update_fields=["status", "updated_at"])
        return new_status

    @staticmethod
    def record_payment(
        *,
        ctx: TenantContext,
        invoice_id: UUID,
        amount,
        mode: str = PaymentMode.OTHER,
        reference: str | None = None,
    ) -> Payment:
        invoice_id = uuid_or_none(invoice_id, "invoice_id")
        if invoice_id is None:
            raise InvalidPayload({"invoice_id": "This field is required."})

        if amount is None or amount == "":
            raise InvalidPayload({"amount": "This field is required."})
        amount = money.to_money(amount, "amount")
        if amount <= 0:
            raise InvalidAmount({"amount": "Payment amount must be > 0."})

        mode = (mode or PaymentMode.OTHER).strip().upper()
        if mode not in PaymentMode.values:
            raise InvalidPayload({"mode": f"Invalid mode. Allowed: {list(PaymentMode.values)}"})

        with tenant_scope(ctx):
            # Row lock serializes concurrent payments on the same invoice.
            invoice = get_invoice(tenant_id=ctx.tenant_id, invoice_id=invoice_id, for_update=True)

            payment = Payment.objects.create(
                tenant_id=ctx.tenant_id,
                invoice=invoice,
                amount=amount,
                mode=mode,
                reference=(reference or "").strip() or None,
                recorded_by_user_id=ctx.actor_user_id,
            )

            LedgerPoster.post(ctx, PaymentReceived(payment_id=payment.id, amount=payment.amount, mode=payment.mode))

            new_status = PaymentService._recompute_status(ctx=ctx, invoice=invoice)

            publish_on_commit(
                "billing.payment.recorded",
                {
                    "tenant_id": str(ctx.tenant_id),
                    "invoice_id": str(invoice.id),
                    "payment_id": str(payment.id),
                    "status": new_status,
                },
            )

        logger.info(
            "payment recorded tenant=%s invoice=%s payment=%s amount=%s status=%s",
            ctx.tenant_id, invoice.id, payment.id, payment.amount, new_status,
        )
        return payment
