# hm_core/ledger/models.py
from __future__ import annotations

from decimal import Decimal

from django.db import models
from django.db.models import Q
from django.utils import timezone

from hm_core.common.models import AppendOnlyModel


class Account(models.TextChoices):
    ACCOUNTS_RECEIVABLE = "Accounts Receivable", "Accounts Receivable"
    SERVICE_REVENUE = "Service Revenue", "Service Revenue"
    TAX_PAYABLE = "Tax Payable", "Tax Payable"
    CASH = "Cash", "Cash"
    BANK = "Bank", "Bank"


class LedgerEventType(models.TextChoices):
    INVOICE_ISSUED = "INVOICE_ISSUED", "Invoice Issued"
    PAYMENT_RECEIVED = "PAYMENT_RECEIVED", "Payment Received"


class AccountingEntry(AppendOnlyModel):
    """
    One side of a balanced posting. Insert-only: corrections are future inverse
    postings, never edits. References an invoice or a payment, never both.
    """
    invoice = models.ForeignKey(
        "billing.Invoice",
        on_delete=models.PROTECT,
        related_name="accounting_entries",
        null=True,
        blank=True,
    )
    payment = models.ForeignKey(
        "billing.Payment",
        on_delete=models.PROTECT,
        related_name="accounting_entries",
        null=True,
        blank=True,
    )

    event_type = models.CharField(max_length=32, choices=LedgerEventType.choices, db_index=True)
    account = models.CharField(max_length=64, choices=Account.choices, db_index=True)

    debit = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    credit = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    posted_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "ledger_accounting_entry"
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(invoice__isnull=False, payment__isnull=True)
                    | Q(invoice__isnull=True, payment__isnull=False)
                ),
                name="ck_entry_invoice_xor_payment",
            ),
            models.CheckConstraint(
                condition=Q(debit__gte=0) & Q(credit__gte=0),
                name="ck_entry_non_negative",
            ),
            models.CheckConstraint(
                condition=Q(debit=0) | Q(credit=0),
                name="ck_entry_one_side",
            ),
        ]
        indexes = [
            models.Index(fields=["tenant_id", "account"]),
            models.Index(fields=["tenant_id", "posted_at"]),
        ]

    def __str__(self) -> str:
        side = f"Dr {self.debit}" if self.debit else f"Cr {self.credit}"
        return f"{self.account} {side}"
