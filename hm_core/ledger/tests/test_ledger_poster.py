# hm_core/ledger/tests/test_ledger_poster.py
import uuid
from decimal import Decimal

import pytest

from hm_core.common.models import ImmutableRecordError
from hm_core.common.tenancy import TenantContext
from hm_core.ledger.events import InvoiceIssued, PaymentReceived
from hm_core.ledger.models import Account
from hm_core.ledger.services import LedgerPoster, assert_balanced

CTX = TenantContext(tenant_id=uuid.UUID("00000000-0000-0000-0000-000000000001"))


def _by_account(entries):
    return {e.account: (e.debit, e.credit) for e in entries}


def test_invoice_issued_with_tax_books_tax_payable():
    entries = LedgerPoster.entries_for(
        CTX, InvoiceIssued(invoice_id=uuid.uuid4(), total=Decimal("1236.00"), revenue=Decimal("1150.00"))
    )
    assert _by_account(entries) == {
        Account.ACCOUNTS_RECEIVABLE: (Decimal("1236.00"), Decimal("0.00")),
        Account.SERVICE_REVENUE: (Decimal("0.00"), Decimal("1150.00")),
        Account.TAX_PAYABLE: (Decimal("0.00"), Decimal("86.00")),
    }
    assert_balanced(entries)


def test_invoice_issued_without_tax_has_two_entries():
    entries = LedgerPoster.entries_for(
        CTX, InvoiceIssued(invoice_id=uuid.uuid4(), total=Decimal("500.00"), revenue=Decimal("500.00"))
    )
    assert len(entries) == 2
    assert_balanced(entries)


@pytest.mark.parametrize("mode, account", [("CASH", Account.CASH), ("UPI", Account.BANK), ("CARD", Account.BANK)])
def test_payment_received_debits_cash_or_bank(mode, account):
    entries = LedgerPoster.entries_for(
        CTX, PaymentReceived(payment_id=uuid.uuid4(), amount=Decimal("500.00"), mode=mode)
    )
    assert _by_account(entries) == {
        account: (Decimal("500.00"), Decimal("0.00")),
        Account.ACCOUNTS_RECEIVABLE: (Decimal("0.00"), Decimal("500.00")),
    }


def test_every_entry_has_one_non_negative_side():
    entries = LedgerPoster.entries_for(
        CTX, InvoiceIssued(invoice_id=uuid.uuid4(), total=Decimal("-50.00"), revenue=Decimal("-50.00"))
    )
    for e in entries:
        assert e.debit >= 0 and e.credit >= 0
        assert (e.debit == 0) != (e.credit == 0)
    assert_balanced(entries)


def test_assert_balanced_rejects_mismatch():
    entries = LedgerPoster.entries_for(
        CTX, PaymentReceived(payment_id=uuid.uuid4(), amount=Decimal("10.00"), mode="CASH")
    )
    entries[0].debit = Decimal("11.00")
    with pytest.raises(ValueError):
        assert_balanced(entries)


def test_unknown_event_type_rejected():
    with pytest.raises(TypeError):
        LedgerPoster.entries_for(CTX, object())


@pytest.mark.django_db
def test_posted_entries_are_append_only(ctx, patient):
    from hm_core.billing.services import InvoiceService

    inv = InvoiceService.create_invoice(
        ctx=ctx,
        patient_id=patient.id,
        items=[{"description": "Consultation", "qty": 1, "rate": "500"}],
    )
    entry = inv.accounting_entries.first()
    entry.debit = Decimal("1.00")
    with pytest.raises(ImmutableRecordError):
        entry.save()
    with pytest.raises(ImmutableRecordError):
        entry.delete()
