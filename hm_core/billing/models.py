# hm_core/billing/models.py
from __future__ import annotations

from decimal import Decimal

from django.db import models
from django.utils import timezone

from hm_core.catalog.models import Service
from hm_core.common.models import AppendOnlyModel, ScopedModel
from hm_core.patients.models import Patient


class InvoiceStatus(models.TextChoices):
    UNPAID = "UNPAID", "Unpaid"
    PARTIAL = "PARTIAL", "Partially Paid"
    PAID = "PAID", "Paid"


class Invoice(ScopedModel):
    """
    Created once, together with its items and ledger postings.
    `status` is the only mutable field and is derived from recorded payments.

    total = subtotal - discount + tax; subtotal = sum(item.amount)
    """
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name="invoices")

    # Human reference only (date + random suffix); the UUID is the key.
    invoice_number = models.CharField(max_length=32, db_index=True)
    status = models.CharField(max_length=16, choices=InvoiceStatus.choices, default=InvoiceStatus.UNPAID, db_index=True)

    currency = models.CharField(max_length=8, default="INR")

    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    tax = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    notes = models.TextField(blank=True)
    created_by_user_id = models.IntegerField(null=True, blank=True)

    class Meta:
        db_table = "billing_invoice"
        indexes = [
            models.Index(fields=["tenant_id", "status", "created_at"]),
            models.Index(fields=["tenant_id", "patient", "created_at"]),
        ]

    @property
    def revenue(self) -> Decimal:
        return self.subtotal - self.discount

    def __str__(self) -> str:
        return f"{self.invoice_number} ({self.status})"


class InvoiceItem(AppendOnlyModel):
    """
    Snapshot line: description and rate are copied at creation time
    (from the catalog service when one is referenced).
    """
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name="items")
    position = models.PositiveIntegerField(default=0)

    service = models.ForeignKey(
        Service,
        on_delete=models.PROTECT,
        related_name="invoice_items",
        null=True,
        blank=True,
    )

    description = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField(default=1)
    rate = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        db_table = "billing_invoice_item"
        ordering = ["position"]
        indexes = [
            models.Index(fields=["tenant_id", "invoice"]),
        ]


class PaymentMode(models.TextChoices):
    CASH = "CASH", "Cash"
    CARD = "CARD", "Card"
    UPI = "UPI", "UPI"
    BANK = "BANK", "Bank Transfer"
    INSURANCE = "INSURANCE", "Insurance"
    OTHER = "OTHER", "Other"


class Payment(AppendOnlyModel):
    invoice = models.ForeignKey(Invoice, on_delete=models.PROTECT, related_name="payments")
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    mode = models.CharField(max_length=16, choices=PaymentMode.choices, default=PaymentMode.OTHER)

    reference = models.CharField(max_length=64, null=True, blank=True)
    received_at = models.DateTimeField(default=timezone.now)
    recorded_by_user_id = models.IntegerField(null=True, blank=True)

    class Meta:
        db_table = "billing_payment"
        indexes = [
            models.Index(fields=["tenant_id", "invoice", "received_at"]),
        ]
