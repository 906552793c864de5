# hm_core/messaging/tests/test_invoice_notifications.py
import pytest
from django.core import signing

from hm_core.billing.models import Invoice
from hm_core.billing.services import InvoiceService
from hm_core.common.api.exceptions import InvalidPayload, InvoiceNotFound
from hm_core.conftest import scope_headers
from hm_core.messaging.dispatchers import DispatchError, MessageDispatcher, NotConfiguredDispatcher
from hm_core.messaging.links import read_invoice_token, sign_invoice_token
from hm_core.messaging.models import MessageLog, MessageStatus
from hm_core.messaging.services import InvoiceNotificationService


class RecordingDispatcher(MessageDispatcher):
    provider = "FAKE"

    def __init__(self):
        self.sent = []

    def send(self, request):
        self.sent.append(request)
        return "fake-123"


class UnreachableDispatcher(MessageDispatcher):
    provider = "FAKE"

    def send(self, request):
        raise ConnectionError("provider unreachable")


class FailingDispatcher(MessageDispatcher):
    provider = "FAKE"

    def send(self, request):
        raise DispatchError("provider_error", "upstream rejected the message")


@pytest.fixture
def invoice(ctx, patient):
    return InvoiceService.create_invoice(
        ctx=ctx,
        patient_id=patient.id,
        items=[{"description": "Consultation", "qty": 1, "rate": "500"}],
    )


@pytest.mark.django_db
def test_send_invoice_marks_sent(ctx, invoice, patient):
    dispatcher = RecordingDispatcher()
    result = InvoiceNotificationService.send_invoice(ctx=ctx, invoice_id=invoice.id, dispatcher=dispatcher)

    assert result.ok is True
    assert result.log.status == MessageStatus.SENT
    assert result.log.provider_id == "fake-123"
    assert result.log.to == patient.phone

    [req] = dispatcher.sent
    assert req.invoice_id == invoice.id
    assert req.to == patient.phone
    assert invoice.invoice_number in req.rendered_body
    assert "500.00" in req.rendered_body
    assert result.link in req.rendered_body
    assert result.link.startswith("http://testserver/public/invoices/view/?token=")


@pytest.mark.django_db
def test_provider_not_configured_marks_failed(ctx, invoice):
    result = InvoiceNotificationService.send_invoice(
        ctx=ctx, invoice_id=invoice.id, dispatcher=NotConfiguredDispatcher()
    )
    assert result.ok is False
    assert result.log.status == MessageStatus.FAILED
    assert result.log.error == "provider_not_configured"
    assert result.link


@pytest.mark.django_db
def test_provider_error_text_is_recorded(ctx, invoice):
    result = InvoiceNotificationService.send_invoice(ctx=ctx, invoice_id=invoice.id, dispatcher=FailingDispatcher())
    assert result.log.status == MessageStatus.FAILED
    assert result.log.error == "upstream rejected the message"


@pytest.mark.django_db
def test_missing_phone_logs_failure_and_raises(ctx, invoice, patient):
    patient.phone = None
    patient.save()
    dispatcher = RecordingDispatcher()

    with pytest.raises(InvalidPayload):
        InvoiceNotificationService.send_invoice(ctx=ctx, invoice_id=invoice.id, dispatcher=dispatcher)

    log = MessageLog.objects.get(invoice=invoice)
    assert log.status == MessageStatus.FAILED
    assert log.error == "missing_patient_phone"
    assert dispatcher.sent == []


@pytest.mark.django_db
def test_other_tenant_cannot_send(other_ctx, invoice):
    with pytest.raises(InvoiceNotFound):
        InvoiceNotificationService.send_invoice(ctx=other_ctx, invoice_id=invoice.id, dispatcher=RecordingDispatcher())
    assert MessageLog.objects.count() == 0


@pytest.mark.django_db
def test_dispatcher_runs_outside_transaction(ctx, invoice):
    from django.db import connection

    seen = {}
    baseline = len(connection.savepoint_ids)

    class InspectingDispatcher(MessageDispatcher):
        provider = "FAKE"

        def send(self, request):
            seen["depth"] = len(connection.savepoint_ids) - baseline
            seen["pending"] = MessageLog.objects.get(invoice_id=request.invoice_id).status
            return "x"

    InvoiceNotificationService.send_invoice(ctx=ctx, invoice_id=invoice.id, dispatcher=InspectingDispatcher())
    assert seen == {"depth": 0, "pending": MessageStatus.PENDING}


def test_signed_token_round_trip_and_tamper():
    import uuid

    t, i = uuid.uuid4(), uuid.uuid4()
    token = sign_invoice_token(tenant_id=t, invoice_id=i)
    assert read_invoice_token(token) == (t, i)

    with pytest.raises(signing.BadSignature):
        read_invoice_token(token + "x")

    foreign = signing.dumps({"t": str(t), "i": str(i)}, salt="something-else")
    with pytest.raises(signing.BadSignature):
        read_invoice_token(foreign)


@pytest.mark.django_db
def test_public_invoice_view(client, ctx, invoice):
    token = sign_invoice_token(tenant_id=ctx.tenant_id, invoice_id=invoice.id)

    r = client.get("/public/invoices/view/", {"token": token})
    assert r.status_code == 200
    body = r.content.decode("utf-8")
    assert invoice.invoice_number in body
    assert "Consultation" in body
    assert "TOTAL: 500.00" in body

    r = client.get("/public/invoices/view/", {"token": "garbage"})
    assert r.status_code == 403


@pytest.mark.django_db
def test_public_invoice_view_expired_token(client, ctx, invoice, settings):
    token = sign_invoice_token(tenant_id=ctx.tenant_id, invoice_id=invoice.id)
    settings.PUBLIC_INVOICE_LINK_MAX_AGE = -1

    r = client.get("/public/invoices/view/", {"token": token})
    assert r.status_code == 403


@pytest.mark.django_db
def test_send_api(api_client, tenant, invoice, settings):
    settings.MESSAGING_DISPATCHER = "hm_core.messaging.dispatchers.ConsoleDispatcher"

    r = api_client.post(f"/api/v1/billing/invoices/{invoice.id}/send/", {}, format="json", **scope_headers(tenant))
    assert r.status_code == 200, r.data
    assert r.data["ok"] is True
    assert r.data["message"]["status"] == "SENT"
    assert r.data["message"]["provider"] == "CONSOLE"


@pytest.mark.django_db
def test_auto_send_on_invoice_created(ctx, patient, settings, django_capture_on_commit_callbacks):
    settings.MESSAGING_AUTO_SEND_INVOICE = True
    settings.MESSAGING_DISPATCHER = "hm_core.messaging.dispatchers.ConsoleDispatcher"

    with django_capture_on_commit_callbacks(execute=True):
        inv = InvoiceService.create_invoice(
            ctx=ctx,
            patient_id=patient.id,
            items=[{"description": "Consultation", "qty": 1, "rate": "500"}],
        )

    log = MessageLog.objects.get(invoice=inv)
    assert log.status == MessageStatus.SENT


@pytest.mark.django_db
def test_auto_send_off_by_default(ctx, patient, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        InvoiceService.create_invoice(
            ctx=ctx,
            patient_id=patient.id,
            items=[{"description": "Consultation", "qty": 1, "rate": "500"}],
        )
    assert MessageLog.objects.count() == 0


@pytest.mark.django_db
def test_transport_error_marks_failed_and_propagates(ctx, invoice):
    with pytest.raises(ConnectionError):
        InvoiceNotificationService.send_invoice(ctx=ctx, invoice_id=invoice.id, dispatcher=UnreachableDispatcher())

    log = MessageLog.objects.get(invoice=invoice)
    assert log.status == MessageStatus.FAILED
    assert log.error == "provider unreachable"


@pytest.mark.django_db
def test_auto_send_failure_never_reaches_invoice_caller(ctx, patient, settings, django_capture_on_commit_callbacks, monkeypatch):
    settings.MESSAGING_AUTO_SEND_INVOICE = True
    settings.MESSAGING_DISPATCHER = "hm_core.messaging.tests.test_invoice_notifications.UnreachableDispatcher"
    logged = []
    monkeypatch.setattr("hm_core.messaging.subscribers.logger.exception", lambda msg, *args: logged.append(msg % args))

    with django_capture_on_commit_callbacks(execute=True):
        inv = InvoiceService.create_invoice(
            ctx=ctx,
            patient_id=patient.id,
            items=[{"description": "Consultation", "qty": 1, "rate": "500"}],
        )

    assert Invoice.objects.filter(id=inv.id).count() == 1
    assert MessageLog.objects.get(invoice=inv).status == MessageStatus.FAILED
    assert logged == [f"auto-send failed invoice={inv.id}"]


@pytest.mark.django_db
def test_auto_send_runs_on_a_background_thread(ctx, patient, settings, django_capture_on_commit_callbacks, monkeypatch):
    settings.MESSAGING_AUTO_SEND_INVOICE = True
    settings.MESSAGING_AUTO_SEND_IN_BACKGROUND = True
    started = []

    class FakeThread:
        def __init__(self, *, target, args, name, daemon):
            self.target, self.args, self.daemon = target, args, daemon

        def start(self):
            started.append(self)

    monkeypatch.setattr("hm_core.messaging.subscribers.threading.Thread", FakeThread)

    with django_capture_on_commit_callbacks(execute=True):
        inv = InvoiceService.create_invoice(
            ctx=ctx,
            patient_id=patient.id,
            items=[{"description": "Consultation", "qty": 1, "rate": "500"}],
        )

    [thread] = started
    assert thread.daemon is True
    assert thread.args[0]["invoice_id"] == str(inv.id)
    assert MessageLog.objects.count() == 0
