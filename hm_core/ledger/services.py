# hm_core/ledger/services.py
from __future__ import annotations

import logging
from decimal import Decimal

from hm_core.billing.money import ZERO, quantize
from hm_core.common.tenancy import TenantContext
from hm_core.ledger.events import InvoiceIssued, LedgerEvent, PaymentReceived
from hm_core.ledger.models import Account, AccountingEntry, LedgerEventType

logger = logging.getLogger(__name__)


def _entry(*, ctx: TenantContext, event_type: str, account: str, signed_debit: Decimal, **ref) -> AccountingEntry:
    """
    signed_debit > 0 is a debit, < 0 a credit of the magnitude.
    Magnitudes stay non-negative with one side zero.
    """
    amount = quantize(signed_debit)
    return AccountingEntry(
        tenant_id=ctx.tenant_id,
        event_type=event_type,
        account=account,
        debit=amount if amount > 0 else ZERO,
        credit=-amount if amount < 0 else ZERO,
        **ref,
    )


def assert_balanced(entries: list[AccountingEntry]) -> None:
    debits = sum((e.debit for e in entries), ZERO)
    credits = sum((e.credit for e in entries), ZERO)
    if debits != credits:
        raise ValueError(f"Unbalanced posting: debit={debits} credit={credits}")


class LedgerPoster:
    """
    Fixed posting scheme. Called by the invoice and payment engines from inside
    their own unit of work, so entries commit or roll back with the event.

    InvoiceIssued:   Dr Accounts Receivable total / Cr Service Revenue revenue
                     (+ Cr Tax Payable total - revenue when tax was charged)
    PaymentReceived: Dr Cash (CASH) or Bank (anything else) / Cr Accounts Receivable
    """

    @staticmethod
    def entries_for(ctx: TenantContext, event: LedgerEvent) -> list[AccountingEntry]:
        if isinstance(event, InvoiceIssued):
            ref = {"invoice_id": event.invoice_id}
            kind = LedgerEventType.INVOICE_ISSUED
            entries = [
                _entry(ctx=ctx, event_type=kind, account=Account.ACCOUNTS_RECEIVABLE, signed_debit=event.total, **ref),
                _entry(ctx=ctx, event_type=kind, account=Account.SERVICE_REVENUE, signed_debit=-event.revenue, **ref),
            ]
            tax = Decimal(event.total) - Decimal(event.revenue)
            if tax != 0:
                entries.append(
                    _entry(ctx=ctx, event_type=kind, account=Account.TAX_PAYABLE, signed_debit=-tax, **ref)
                )
            return entries

        if isinstance(event, PaymentReceived):
            ref = {"payment_id": event.payment_id}
            kind = LedgerEventType.PAYMENT_RECEIVED
            cash_account = Account.CASH if event.mode == "CASH" else Account.BANK
            return [
                _entry(ctx=ctx, event_type=kind, account=cash_account, signed_debit=event.amount, **ref),
                _entry(ctx=ctx, event_type=kind, account=Account.ACCOUNTS_RECEIVABLE, signed_debit=-event.amount, **ref),
            ]

        raise TypeError(f"Unsupported ledger event: {type(event).__name__}")

    @staticmethod
    def post(ctx: TenantContext, event: LedgerEvent) -> list[AccountingEntry]:
        entries = LedgerPoster.entries_for(ctx, event)
        assert_balanced(entries)
        created = AccountingEntry.objects.bulk_create(entries)
        logger.debug("posted %s entries for %s tenant=%s", len(created), type(event).__name__, ctx.tenant_id)
        return created
