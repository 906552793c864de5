# hm_core/ledger/events.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID


@dataclass(frozen=True)
class InvoiceIssued:
    invoice_id: UUID
    total: Decimal
    revenue: Decimal  # subtotal - discount


@dataclass(frozen=True)
class PaymentReceived:
    payment_id: UUID
    amount: Decimal
    mode: str


LedgerEvent = InvoiceIssued | PaymentReceived
